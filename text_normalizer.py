"""
Whitespace and newline normalization applied to every text value that
enters the JSON tree.
"""

import re
from typing import Optional

from converter_options import ParserOptions


WHITESPACE_RUN = re.compile(r'\s+')
NEWLINE_RUN = re.compile(r'\s*\n\s*')


def normalize_text(text: str, options: Optional[ParserOptions] = None) -> str:
    """Collapse, trim and convert newlines in ``text``.

    The steps run in a fixed order: collapsing internal whitespace first means
    no newline survives for the conversion step when ``trim_inside_words`` is
    set.
    """
    options = options or ParserOptions()

    if options.trim_inside_words:
        text = WHITESPACE_RUN.sub(' ', text)

    text = text.strip()

    replacement = options.value_new_line_conversion.replacement
    if replacement is not None:
        text = NEWLINE_RUN.sub(replacement, text)

    return text
