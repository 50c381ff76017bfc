"""Plain-text extraction from parsed HTML and feed markup."""

from __future__ import annotations

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

MAX_CONTENT_CHARS = 5000

# Element kinds whose text never counts as page content.
SKIPPED_TAGS = frozenset({"script", "style", "noscript", "iframe", "svg"})


def collapse_whitespace(text: str) -> str:
    return " ".join((text or "").split())


def truncate(text: str, limit: int = MAX_CONTENT_CHARS) -> str:
    return text[:limit] if len(text) > limit else text


def parse_html(markup) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def extract_text(doc: Tag, *, limit: int = MAX_CONTENT_CHARS) -> str:
    """Collect visible text from a parsed document.

    Text under script/style/noscript/iframe/svg is skipped, as are comments and
    doctype/processing nodes. Whitespace is collapsed and the result is capped at
    ``limit`` characters.
    """
    parts = []
    stack = [doc]
    while stack:
        node = stack.pop()
        if isinstance(node, Tag):
            if node.name in SKIPPED_TAGS:
                continue
            # reversed so children pop in document order
            stack.extend(reversed(node.contents))
        elif isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
            txt = node.strip()
            if txt:
                parts.append(txt)
    return truncate(collapse_whitespace(" ".join(parts)), limit)


def strip_markup(text: str, *, limit: int = MAX_CONTENT_CHARS) -> str:
    """Remove every ``<...>`` span with a single scan, then normalize whitespace.

    An unterminated ``<`` stops the scan and the rest of the string is kept as-is.
    """
    s = text or ""
    out = []
    pos = 0
    while True:
        start = s.find("<", pos)
        if start == -1:
            break
        end = s.find(">", start)
        if end == -1:
            break
        out.append(s[pos:start])
        out.append(" ")
        pos = end + 1
    out.append(s[pos:])
    return truncate(collapse_whitespace("".join(out)), limit)
