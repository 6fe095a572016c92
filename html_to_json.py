#!/usr/bin/env python3
"""
HTML to JSON Converter

Maps a parsed HTML document to a JSON value tree. Three modes are available:
the generic element walk, table flattening and JSON-LD extraction.
"""

import argparse
import json
import logging
import re
import sys
from typing import Any, Dict, List, Optional, Union

import requests
from bs4 import BeautifulSoup, CData, Comment, NavigableString, Tag
from bs4.element import PreformattedString

from converter_options import (
    CDATA_KEY,
    COMMENTS_KEY,
    FOREIGN_NAMESPACES,
    NAMESPACE_KEY,
    VOID_ELEMENTS,
    XHTML_NAMESPACE,
    ParserMode,
    ParserOptions,
    load_config,
)
from text_normalizer import normalize_text

logger = logging.getLogger(__name__)

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

# Whole numbers only: optional sign, ASCII digits, signed 32-bit range
INTEGER_CELL = re.compile(r'[+-]?[0-9]+')
INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1

URL_SCHEMES = ('http://', 'https://')


class HTMLToJSON:
    """Converts one HTML document to JSON."""

    def __init__(self, html_content: str, options: Optional[ParserOptions] = None):
        self.options = options or ParserOptions()
        if self.options.unescape_json:
            html_content = unescape_json_string(html_content)
        # Keep class="a b" as one string instead of a list
        self.soup = BeautifulSoup(html_content, self.options.parser, multi_valued_attributes=None)

    def convert(self, mode: Union[ParserMode, str] = ParserMode.GENERIC) -> JsonValue:
        """Convert the document with the given mode."""
        mode = ParserMode.parse(mode)
        logger.debug("Converting document in %s mode", mode.value)

        if mode is ParserMode.GENERIC:
            return self._convert_generic()
        if mode is ParserMode.TABLE:
            return self._convert_tables()
        return self._convert_json_ld()

    def to_json(self, mode: Union[ParserMode, str] = ParserMode.GENERIC) -> str:
        """Convert and serialize, honouring the ``indent`` option."""
        return dump_json(self.convert(mode), indent=self.options.indent)

    def _root_element(self) -> Optional[Tag]:
        for child in self.soup.contents:
            if isinstance(child, Tag):
                return child
        return None

    def _convert_generic(self) -> Dict[str, Any]:
        root = self._root_element()
        if root is None:
            return {}
        return element_to_json(root, self.options)

    def _convert_tables(self) -> List[Any]:
        """Flatten the first table, or every table when ``convert_all_tables`` is set."""
        tables = self.soup.find_all('table')
        if not self.options.convert_all_tables:
            return self._convert_table(tables[0] if tables else None)
        return [self._convert_table(table) for table in tables]

    def _convert_table(self, table: Optional[Tag]) -> List[Dict[str, Any]]:
        """Zip every data row against the header row of ``table``."""
        if table is None:
            return []

        rows = table.find_all('tr')
        if len(rows) < 2:
            return []

        headers = [normalize_text(th.get_text(), self.options) for th in rows[0].find_all('th')]
        records = []
        for row in rows[1:]:
            record: Dict[str, Any] = {}
            # zip() stops at the shorter side: extra cells or headers are dropped
            for header, cell in zip(headers, row.find_all('td')):
                if header in record:
                    continue
                record[header] = coerce_cell_value(normalize_text(cell.get_text(), self.options))
            records.append(record)

        return records

    def _convert_json_ld(self) -> List[Any]:
        """Collect every parseable JSON-LD block in document order."""
        result = []
        for index, script in enumerate(self.soup.find_all('script', type='application/ld+json')):
            try:
                result.append(json.loads(script.get_text(), parse_constant=_reject_constant))
            except ValueError as exc:
                logger.debug("Skipping malformed JSON-LD block %d: %s", index, exc)
        return result


def element_to_json(element: Tag, options: Optional[ParserOptions] = None) -> Dict[str, Any]:
    """Generic mapping of a single element and its subtree.

    Keys come out in a fixed order: attributes, ``@xmlns``, the content key
    (named after the tag), ``comments`` and ``cdata``.
    """
    options = options or ParserOptions()
    tag_name = element.name.lower()
    if options.log_action:
        options.log_action(f"Processing element: {tag_name}")

    result: Dict[str, Any] = {}

    if not options.skip_all_attributes:
        for name, value in element.attrs.items():
            name = name.lower()
            if options.skip_class_attributes and name == 'class':
                continue

            if value is None:
                value = ''
            elif isinstance(value, list):
                value = ' '.join(value)
            if not value and not options.preserve_empty_attributes:
                continue

            key = f"{options.attribute_prefix}{name}"
            result[key] = True if not value and options.boolean_attributes_as_flags else value

        if options.preserve_namespaces:
            result[NAMESPACE_KEY] = element_namespace(element)

    if tag_name in VOID_ELEMENTS:
        return result

    content = _convert_children(element, options)
    if content is not None:
        result[tag_name] = content

    comments = [str(child) for child in element.children if isinstance(child, Comment)]
    if comments:
        result[COMMENTS_KEY] = comments

    cdata = [str(child) for child in element.children if isinstance(child, CData)]
    if cdata:
        result[CDATA_KEY] = cdata

    return result


def element_namespace(element: Tag) -> str:
    """Namespace URI of ``element`` as an HTML5 parser would assign it.

    Builders that track namespaces (html5lib, lxml-xml) set ``Tag.namespace``;
    the lxml and html.parser HTML builders leave it empty, so the nearest
    xmlns declaration or foreign-content root (svg, math) decides, falling
    back to XHTML.
    """
    for node in [element, *element.parents]:
        if not isinstance(node, Tag) or node.name == BeautifulSoup.ROOT_TAG_NAME:
            continue
        if node.namespace:
            return node.namespace
        declared = node.get('xmlns')
        if declared:
            return declared
        foreign = FOREIGN_NAMESPACES.get(node.name.lower())
        if foreign:
            return foreign
    return XHTML_NAMESPACE


def _convert_children(element: Tag, options: ParserOptions) -> JsonValue:
    texts = [child for child in element.children if _is_meaningful_text(child)]
    has_elements = any(isinstance(child, Tag) for child in element.children)

    if not has_elements and len(texts) == 1:
        return normalize_text(str(texts[0]), options)

    items: List[Any] = []
    for child in element.children:
        if isinstance(child, Tag):
            items.append(element_to_json(child, options))
        elif _is_meaningful_text(child):
            items.append(normalize_text(str(child), options))

    if not items:
        return None
    # An element with one child reads as a nested object, not a singleton list
    if len(items) == 1:
        return items[0]
    return items


def _is_meaningful_text(node: Any) -> bool:
    # Comments, CDATA, doctypes and processing instructions are PreformattedStrings
    if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
        return False
    return bool(node.strip())


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON; keeping them would make the output invalid
    raise ValueError(f"Invalid JSON constant: {name}")


def coerce_cell_value(value: str) -> Union[int, str]:
    """Return ``value`` as an int when it is a whole 32-bit number."""
    if INTEGER_CELL.fullmatch(value):
        number = int(value)
        if INT32_MIN <= number <= INT32_MAX:
            return number
    return value


def unescape_json_string(value: str) -> str:
    """Decode a JSON string literal; anything else is returned unchanged."""
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError:
        return value
    return decoded if isinstance(decoded, str) else value


def dump_json(value: JsonValue, indent: bool = True) -> str:
    if indent:
        return json.dumps(value, indent=2, ensure_ascii=False)
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def parse_html_to_json(html_content: str,
                       mode: Union[ParserMode, str] = ParserMode.GENERIC,
                       options: Optional[ParserOptions] = None) -> str:
    """Convert HTML markup to serialized JSON text."""
    mode = ParserMode.parse(mode)
    return HTMLToJSON(html_content, options).to_json(mode)


def read_source(source: str, timeout: int = 30) -> str:
    """Read HTML from a file path or an http(s) URL."""
    if source.lower().startswith(URL_SCHEMES):
        response = requests.get(source, timeout=timeout)
        response.raise_for_status()
        return response.text

    with open(source, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Convert HTML to JSON')
    parser.add_argument('html_file', help='Input HTML file or http(s) URL')
    parser.add_argument('output_file', nargs='?', help='Output JSON file (optional, defaults to stdout)')
    parser.add_argument('-m', '--mode', default=ParserMode.GENERIC.value,
                        choices=[mode.value for mode in ParserMode], help='Conversion mode')
    parser.add_argument('-c', '--config', help='JSON config file path')
    parser.add_argument('--compact', action='store_true', help='Write compact JSON')
    parser.add_argument('-v', '--verbose', action='store_true', help='Report every visited element on stderr')
    args = parser.parse_args(argv)

    config = {}
    if args.config:
        try:
            config = load_config(args.config)
        except (OSError, ValueError) as e:
            print(f"Error reading config file: {e}", file=sys.stderr)
            sys.exit(1)

    overrides: Dict[str, Any] = {}
    if args.compact:
        overrides['indent'] = False
    if args.verbose:
        overrides['log_action'] = lambda message: print(message, file=sys.stderr)

    try:
        options = ParserOptions.from_mapping(config, **overrides)
    except ValueError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        html_content = read_source(args.html_file)
    except (OSError, requests.RequestException) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        sys.exit(1)

    json_output = parse_html_to_json(html_content, args.mode, options)

    if args.output_file:
        try:
            with open(args.output_file, 'w', encoding='utf-8') as f:
                f.write(json_output)
            print(f"Output saved to: {args.output_file}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output file: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(json_output)


if __name__ == '__main__':
    main()
