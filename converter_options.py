"""
Shared configuration and constants for the HTML <-> JSON converters.
"""

import json
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple
from urllib.parse import parse_qsl


# Elements that never have children or a closing tag
VOID_ELEMENTS: FrozenSet[str] = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'param', 'source', 'track', 'wbr'
})

COMMENTS_KEY = 'comments'
CDATA_KEY = 'cdata'
NAMESPACE_KEY = '@xmlns'

XHTML_NAMESPACE = 'http://www.w3.org/1999/xhtml'
SVG_NAMESPACE = 'http://www.w3.org/2000/svg'
MATHML_NAMESPACE = 'http://www.w3.org/1998/Math/MathML'

# Roots of foreign content that switch namespace even without an xmlns attribute
FOREIGN_NAMESPACES = {
    'svg': SVG_NAMESPACE,
    'math': MATHML_NAMESPACE,
}


class UnsupportedModeError(ValueError):
    """Raised for a conversion mode the parser does not know."""


class MalformedJSONError(ValueError):
    """Raised when a JSON document cannot be rendered back to HTML."""


class ParserMode(str, Enum):
    GENERIC = 'generic'
    TABLE = 'table'
    JSONLD = 'jsonld'

    @classmethod
    def parse(cls, value: Any) -> 'ParserMode':
        """Resolve a mode from an enum member or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace('-', '').replace('_', '')
            for mode in cls:
                if mode.value == key:
                    return mode
        raise UnsupportedModeError(f"Unsupported parser mode: {value!r}")


class NewLineConversion(str, Enum):
    NONE = 'none'
    SPACE = 'space'
    COMMA = 'comma'
    COMMA_SPACE = 'comma_space'
    SEMICOLON = 'semicolon'
    SEMICOLON_SPACE = 'semicolon_space'

    @property
    def replacement(self) -> Optional[str]:
        return _NEWLINE_REPLACEMENTS[self]

    @classmethod
    def parse(cls, value: Any) -> 'NewLineConversion':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace('-', '_')
            # camelCase spellings: CommaSpace, SemiColon...
            key = _CAMEL_CONVERSIONS.get(key, key)
            for conversion in cls:
                if conversion.value == key:
                    return conversion
        raise ValueError(f"Unknown new line conversion: {value!r}")


_NEWLINE_REPLACEMENTS = {
    NewLineConversion.NONE: None,
    NewLineConversion.SPACE: ' ',
    NewLineConversion.COMMA: ',',
    NewLineConversion.COMMA_SPACE: ', ',
    NewLineConversion.SEMICOLON: ';',
    NewLineConversion.SEMICOLON_SPACE: '; ',
}

_CAMEL_CONVERSIONS = {
    'commaspace': 'comma_space',
    'semi_colon': 'semicolon',
    'semicolonspace': 'semicolon_space',
}

_TRUE_STRINGS = {'1', 'true', 'yes', 'on'}
_FALSE_STRINGS = {'0', 'false', 'no', 'off', ''}


@dataclass(frozen=True)
class ParserOptions:
    """Options for both conversion directions.

    The reverse mapper only reads ``attribute_prefix`` and
    ``text_property_name``; everything else drives the forward mapper.
    """

    attribute_prefix: str = '@'
    text_property_name: str = '#text'
    value_new_line_conversion: NewLineConversion = NewLineConversion.NONE
    indent: bool = True
    unescape_json: bool = False
    trim_inside_words: bool = False
    convert_all_tables: bool = False
    preserve_empty_attributes: bool = False
    boolean_attributes_as_flags: bool = False
    preserve_namespaces: bool = False
    skip_class_attributes: bool = False
    skip_all_attributes: bool = False
    parser: str = 'lxml'
    log_action: Optional[Callable[[str], None]] = None

    @classmethod
    def from_mapping(cls, config: Optional[Mapping[str, Any]] = None, **overrides: Any) -> 'ParserOptions':
        """Build options from a config dict (JSON file, query string...).

        Keys may be snake_case or camelCase
        (``attributePrefix``, ``valueNewLineConversion``...).
        Unknown keys raise ``ValueError``.
        """
        merged: Dict[str, Any] = {}
        for source in (config or {}, overrides):
            for key, value in source.items():
                merged[_canonical_name(key)] = value

        kwargs: Dict[str, Any] = {}
        for name, value in merged.items():
            if name not in _FIELD_NAMES:
                raise ValueError(f"Unknown option: {name}")
            kwargs[name] = _coerce(name, value)
        return cls(**kwargs)


_FIELD_NAMES = frozenset(f.name for f in fields(ParserOptions))

# Long-form option names
_OPTION_ALIASES = {
    'indent_output': 'indent',
    'unescape_json_first': 'unescape_json',
}


def _canonical_name(key: str) -> str:
    snake = ''.join('_' + ch.lower() if ch.isupper() else ch for ch in key).lstrip('_')
    snake = snake.replace('-', '_')
    return _OPTION_ALIASES.get(snake, snake)


def _coerce(name: str, value: Any) -> Any:
    if name == 'value_new_line_conversion':
        return NewLineConversion.parse(value)
    if name == 'log_action':
        if value is not None and not callable(value):
            raise ValueError("log_action must be callable")
        return value
    if name in ('attribute_prefix', 'text_property_name', 'parser'):
        return '' if value is None else str(value)
    return _to_bool(name, value)


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"Option {name} expects a boolean, got {value!r}")


def load_config(path: str) -> Dict[str, Any]:
    """Read a JSON config file holding a single object."""
    with open(path, 'r', encoding='utf-8') as f:
        config = json.load(f)
    if not isinstance(config, dict):
        raise ValueError("Config file must contain a JSON object")
    return config


def options_from_query(query: str) -> Tuple[ParserMode, ParserOptions]:
    """Split an HTTP query string into a mode and parser options."""
    params = dict(parse_qsl(query, keep_blank_values=True))
    mode = ParserMode.parse(params.pop('mode', ParserMode.GENERIC))
    return mode, ParserOptions.from_mapping(params)
