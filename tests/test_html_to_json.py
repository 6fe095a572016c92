# tests/test_html_to_json.py
import json

import pytest
from bs4 import CData, Comment

from converter_options import (
    MATHML_NAMESPACE,
    SVG_NAMESPACE,
    XHTML_NAMESPACE,
    ParserMode,
    ParserOptions,
    UnsupportedModeError,
)
from html_to_json import HTMLToJSON, element_to_json, parse_html_to_json, unescape_json_string


def convert_first(html, tag, options=None):
    """Parse ``html`` and run the generic mapping on the first ``tag``."""
    converter = HTMLToJSON(html, options)
    return element_to_json(converter.soup.find(tag), converter.options)


def test_single_child_element_is_unwrapped():
    """<div id="x"><p>Hi</p></div> reads as a nested object."""
    assert convert_first('<div id="x"><p>Hi</p></div>', 'div') == {"@id": "x", "div": {"p": "Hi"}}


def test_whole_document_starts_at_root_element():
    output = parse_html_to_json('<div id="x"><p>Hi</p></div>', ParserMode.GENERIC, ParserOptions(indent=False))
    assert json.loads(output) == {"html": {"body": {"@id": "x", "div": {"p": "Hi"}}}}


def test_single_text_child_becomes_string():
    """An element with one text child maps to {tag: text}."""
    assert convert_first("<p>\n   Hello   world \n</p>", 'p') == {"p": "Hello   world"}
    options = ParserOptions(trim_inside_words=True)
    assert convert_first("<p>\n   Hello   world \n</p>", 'p', options) == {"p": "Hello world"}


def test_mixed_text_and_elements_keep_source_order():
    html = "<div>\n  Text before\n  <p>Paragraph</p>\n  Text after\n</div>"
    assert convert_first(html, 'div') == {"div": ["Text before", {"p": "Paragraph"}, "Text after"]}


def test_same_tag_siblings_are_not_grouped():
    """Repeated tags stay separate entries; whitespace text between them is dropped."""
    html = "<ul>\n  <li>a</li>\n  <li>b</li>\n  <li>c</li>\n</ul>"
    assert convert_first(html, 'ul') == {"ul": [{"li": "a"}, {"li": "b"}, {"li": "c"}]}


def test_empty_element_has_no_content_key():
    assert convert_first('<div id="empty">   </div>', 'div') == {"@id": "empty"}


def test_attribute_names_are_lowercased_and_class_kept_whole():
    result = convert_first('<p ID="i" class="a b" data-Role="note">t</p>', 'p')
    assert result == {"@id": "i", "@class": "a b", "@data-role": "note", "p": "t"}


def test_empty_attributes_dropped_by_default():
    assert convert_first('<input type="checkbox" checked="">', 'input') == {"@type": "checkbox"}


def test_preserve_empty_attributes():
    options = ParserOptions(preserve_empty_attributes=True)
    result = convert_first('<input type="checkbox" checked="">', 'input', options)
    assert result == {"@type": "checkbox", "@checked": ""}


def test_boolean_attributes_as_flags():
    options = ParserOptions(preserve_empty_attributes=True, boolean_attributes_as_flags=True)
    result = convert_first('<input type="checkbox" checked>', 'input', options)
    assert result == {"@type": "checkbox", "@checked": True}


def test_skip_class_attributes():
    options = ParserOptions(skip_class_attributes=True)
    assert convert_first('<p class="lead" id="i">t</p>', 'p', options) == {"@id": "i", "p": "t"}


def test_skip_all_attributes():
    options = ParserOptions(skip_all_attributes=True, preserve_namespaces=True)
    converter = HTMLToJSON("")
    svg = converter.soup.new_tag("svg", namespace="http://www.w3.org/2000/svg", attrs={"width": "10"})
    assert element_to_json(svg, options) == {}


def test_empty_attribute_prefix():
    html = "<div id='content' class='main'><p>Test</p></div>"
    result = convert_first(html, 'div', ParserOptions(attribute_prefix=""))
    assert result == {"id": "content", "class": "main", "div": {"p": "Test"}}


def test_custom_attribute_prefix():
    result = convert_first("<a href='/x'>link</a>", 'a', ParserOptions(attribute_prefix="_"))
    assert result == {"_href": "/x", "a": "link"}


def test_namespace_only_when_preserved():
    converter = HTMLToJSON("")
    svg = converter.soup.new_tag("svg", namespace="http://www.w3.org/2000/svg", attrs={"width": "10"})

    assert element_to_json(svg) == {"@width": "10"}
    options = ParserOptions(preserve_namespaces=True)
    assert element_to_json(svg, options) == {"@width": "10", "@xmlns": "http://www.w3.org/2000/svg"}


def test_parsed_elements_report_their_namespace():
    """Parsed trees carry no namespace on their tags; xmlns and foreign roots decide it."""
    html = '<div><svg xmlns="http://www.w3.org/2000/svg" width="10"><rect></rect></svg></div>'
    options = ParserOptions(preserve_namespaces=True)
    assert convert_first(html, 'div', options) == {
        "@xmlns": XHTML_NAMESPACE,
        "div": {"@xmlns": SVG_NAMESPACE, "@width": "10", "svg": {"@xmlns": SVG_NAMESPACE}},
    }


def test_foreign_root_without_xmlns_attribute():
    options = ParserOptions(preserve_namespaces=True)
    assert convert_first("<p><math><mi>x</mi></math></p>", 'p', options) == {
        "@xmlns": XHTML_NAMESPACE,
        "p": {"@xmlns": MATHML_NAMESPACE, "math": {"@xmlns": MATHML_NAMESPACE, "mi": "x"}},
    }


def test_parsed_namespace_omitted_by_default():
    assert convert_first("<p><math><mi>x</mi></math></p>", 'p') == {"p": {"math": {"mi": "x"}}}


def test_void_element_ignores_nested_content():
    """Void elements never get a content, comments or cdata key."""
    converter = HTMLToJSON("")
    img = converter.soup.new_tag("img", attrs={"src": "a.png"})
    img.append("stray text")
    img.append(Comment("stray comment"))
    img.append(converter.soup.new_tag("span"))

    assert element_to_json(img) == {"@src": "a.png"}


def test_comments_follow_content():
    result = convert_first("<div><!-- note --><p>x</p><!--second--></div>", 'div')
    assert result == {"div": {"p": "x"}, "comments": [" note ", "second"]}
    assert list(result) == ["div", "comments"]


def test_cdata_collected_separately():
    converter = HTMLToJSON("")
    div = converter.soup.new_tag("div", attrs={"id": "d"})
    div.append(CData("raw <data>"))
    div.append("text")
    div.append(Comment("c"))

    result = element_to_json(div)
    assert result == {"@id": "d", "div": "text", "comments": ["c"], "cdata": ["raw <data>"]}
    assert list(result) == ["@id", "div", "comments", "cdata"]


def test_log_action_called_for_every_element():
    messages = []
    options = ParserOptions(log_action=messages.append)
    convert_first("<div><p>a</p><span>b<br></span></div>", 'div', options)
    assert messages == [
        "Processing element: div",
        "Processing element: p",
        "Processing element: span",
        "Processing element: br",
    ]


def test_unsupported_mode_raises():
    with pytest.raises(UnsupportedModeError):
        parse_html_to_json("<p>x</p>", "xml")
    with pytest.raises(ValueError):
        HTMLToJSON("<p>x</p>").convert("markdown")


@pytest.mark.parametrize("mode", ["generic", "Generic", "TABLE", "json-ld", "JsonLd", ParserMode.JSONLD])
def test_mode_names_accepted(mode):
    HTMLToJSON("<p>x</p>").convert(mode)


def test_empty_document_is_empty_object():
    assert HTMLToJSON("").convert() == {}


def test_indent_option_controls_output():
    html = "<div><p>Test</p></div>"
    assert "\n" in parse_html_to_json(html)
    assert parse_html_to_json(html, options=ParserOptions(indent=False)) == '{"html":{"body":{"div":{"p":"Test"}}}}'


def test_non_ascii_kept_verbatim():
    output = parse_html_to_json("<p>café</p>", options=ParserOptions(indent=False))
    assert "café" in output


def test_unescape_json_first():
    escaped = json.dumps("<div>Test</div>")
    output = parse_html_to_json(escaped, options=ParserOptions(unescape_json=True, indent=False))
    assert json.loads(output) == {"html": {"body": {"div": "Test"}}}


def test_unescape_leaves_non_string_json_alone():
    assert unescape_json_string('{"html":"<div>Test</div>"}') == '{"html":"<div>Test</div>"}'
    assert unescape_json_string("<div>not json</div>") == "<div>not json</div>"
