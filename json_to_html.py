#!/usr/bin/env python3
"""
JSON to HTML Converter

Renders a JSON object back to HTML markup. Object keys become elements,
prefixed keys become attributes of the element that owns the object, and the
text key holds the element's own text.
"""

import argparse
import html
import json
import re
import sys
from typing import Any, Dict, List, Optional

from converter_options import VOID_ELEMENTS, MalformedJSONError, ParserOptions, load_config

TAG_NAME_RE = re.compile(r'[A-Za-z][A-Za-z0-9._:-]*\Z')
# HTML attribute names: no whitespace, quotes, "<", ">", "/", "=" or control characters
ATTRIBUTE_NAME_RE = re.compile(r'[^\s"\'<>/=\x00-\x1f\x7f]+\Z')


class JSONToHTML:
    """Renders JSON values shaped like the generic HTML mapping."""

    def __init__(self, options: Optional[ParserOptions] = None):
        options = options or ParserOptions()
        self.attribute_prefix = options.attribute_prefix
        self.text_property_name = options.text_property_name

    def convert(self, document: Dict[str, Any]) -> str:
        """Render a top-level JSON object."""
        if not isinstance(document, dict):
            raise MalformedJSONError(
                f"Top-level JSON value must be an object, got {type(document).__name__}"
            )
        return self._render_members(document)

    def _is_attribute(self, key: str) -> bool:
        # An empty prefix would match every key
        return bool(self.attribute_prefix) and key.startswith(self.attribute_prefix)

    def _render_members(self, obj: Dict[str, Any], include_text: bool = True) -> str:
        """Render the keys of ``obj`` as sibling elements."""
        parts: List[str] = []
        for key, value in obj.items():
            if self._is_attribute(key):
                continue
            if key == self.text_property_name:
                if include_text:
                    parts.append(_escape_text(value))
                continue
            parts.append(self._render_element(key, value))
        return ''.join(parts)

    def _render_attributes(self, obj: Dict[str, Any]) -> str:
        parts: List[str] = []
        for key, value in obj.items():
            if not self._is_attribute(key):
                continue
            name = key[len(self.attribute_prefix):]
            if not ATTRIBUTE_NAME_RE.match(name):
                raise MalformedJSONError(f"Invalid attribute name: {key!r}")
            if value is True:
                parts.append(f" {name}")
            elif value is False or value is None:
                continue
            else:
                parts.append(f' {name}="{html.escape(_to_text(value), quote=True)}"')
        return ''.join(parts)

    def _render_element(self, name: str, value: Any) -> str:
        if not TAG_NAME_RE.match(name):
            raise MalformedJSONError(f"Invalid element name: {name!r}")
        is_void = name.lower() in VOID_ELEMENTS

        if isinstance(value, dict):
            open_tag = f"<{name}{self._render_attributes(value)}>"
            if is_void:
                return open_tag
            text = ''
            if self.text_property_name in value:
                text = _escape_text(value[self.text_property_name])
            return f"{open_tag}{text}{self._render_members(value, include_text=False)}</{name}>"

        if is_void:
            return f"<{name}>"

        if isinstance(value, list):
            return f"<{name}>{self._render_array(value)}</{name}>"

        return f"<{name}>{_escape_text(value)}</{name}>"

    def _render_array(self, items: List[Any]) -> str:
        """Render array entries side by side, without repeating the parent tag."""
        parts: List[str] = []
        for item in items:
            if isinstance(item, dict):
                parts.append(self._render_members(item))
            elif isinstance(item, list):
                parts.append(self._render_array(item))
            else:
                parts.append(_escape_text(item))
        return ''.join(parts)


def _to_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _escape_text(value: Any) -> str:
    return html.escape(_to_text(value), quote=False)


def convert_json_to_html(json_text: str, options: Optional[ParserOptions] = None) -> str:
    """Parse ``json_text`` and render it as HTML."""
    try:
        document = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise MalformedJSONError(f"Invalid JSON document: {exc}") from exc
    return JSONToHTML(options).convert(document)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Convert JSON to HTML')
    parser.add_argument('json_file', help='Input JSON file')
    parser.add_argument('output_file', nargs='?', help='Output HTML file (optional, defaults to stdout)')
    parser.add_argument('-c', '--config', help='JSON config file path')
    args = parser.parse_args(argv)

    options = None
    if args.config:
        try:
            options = ParserOptions.from_mapping(load_config(args.config))
        except (OSError, ValueError) as e:
            print(f"Error reading config file: {e}", file=sys.stderr)
            sys.exit(1)

    try:
        with open(args.json_file, 'r', encoding='utf-8') as f:
            json_content = f.read()
    except OSError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        html_output = convert_json_to_html(json_content, options)
    except MalformedJSONError as e:
        print(f"Error converting JSON: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output_file:
        try:
            with open(args.output_file, 'w', encoding='utf-8') as f:
                f.write(html_output)
            print(f"Output saved to: {args.output_file}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output file: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(html_output)


if __name__ == '__main__':
    main()
