"""
Text normalization utilities for template authoring.

Word splits text into runs whenever formatting, spell-checking or revision
marks change, so a placeholder typed as ``{{ name }}`` frequently ends up in
document.xml as ``{{</w:t></w:r><w:r><w:t>na</w:t>...me}}``. The helpers here
glue such placeholders back together and clean up the escaped authoring lines
that carry raw template syntax.
"""
from __future__ import annotations

import re

# A placeholder's braces may themselves be separated by run markup.
PLACEHOLDER_PATTERN = re.compile(r"\{(?:<[^>]+>)*?\{(.*?)\}(?:<[^>]+>)*?\}")
MARKUP_PATTERN = re.compile(r"<[^>]+>")

ESCAPE_SENTINEL = "#!"

TYPOGRAPHIC_QUOTES = {
    "\u201c": '"',      # Left double quotation mark
    "\u201d": '"',      # Right double quotation mark
    "\u2018": "'",      # Left single quotation mark
    "\u2019": "'",      # Right single quotation mark
}


def repair_placeholders(xml_text: str) -> str:
    """Collapse every ``{{ ... }}`` placeholder into a single clean token.

    Markup found between the delimiters is discarded and the expression is
    trimmed, so the result always reads ``{{ expr }}``. Running the repair on
    its own output returns it unchanged.
    """
    return PLACEHOLDER_PATTERN.sub(_clean_placeholder, xml_text)


def strip_markup(text: str) -> str:
    """Remove every ``<...>`` tag from ``text``."""
    return MARKUP_PATTERN.sub("", text)


def unescape_authoring_line(text: str) -> str:
    """Drop the first ``#!`` escape and straighten typographic quotes.

    Word's autocorrect turns quotes typed inside template statements
    (``{% if kind == "a" %}``) into curly ones, which Jinja cannot parse.
    """
    unescaped = text.replace(ESCAPE_SENTINEL, "", 1)
    for original, replacement in TYPOGRAPHIC_QUOTES.items():
        unescaped = unescaped.replace(original, replacement)
    return unescaped


def _clean_placeholder(match: re.Match) -> str:
    expression = strip_markup(match.group(1)).strip()
    return f"{{{{ {expression} }}}}"
