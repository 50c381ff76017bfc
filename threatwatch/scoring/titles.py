"""Rule-based title synthesis from scraped text."""

from __future__ import annotations

import re

UNTITLED = "Untitled Content"
MAX_TITLE_LENGTH = 100
MIN_TITLE_LENGTH = 10

_WS_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^\w\s.,\-:;!?]", re.ASCII)
SENTENCE_ENDERS = (". ", "! ", "? ")


def clean_content(content: str) -> str:
    content = _WS_RE.sub(" ", content)
    content = _DISALLOWED_RE.sub("", content)
    return content.strip()


def first_sentence(text: str) -> str:
    cut = len(text)
    for ender in SENTENCE_ENDERS:
        idx = text.find(ender)
        if idx != -1 and idx < cut:
            cut = idx
    return text[:cut]


def _cut_at_space(text: str, limit: int) -> str:
    truncated = text[:limit]
    last_space = max((i for i, ch in enumerate(truncated) if ch.isspace()), default=-1)
    if last_space > 0:
        return truncated[:last_space]
    return truncated


def apply_length_limit(text: str, limit: int = MAX_TITLE_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return _cut_at_space(text, limit)


def fallback_title(content: str, limit: int = MAX_TITLE_LENGTH) -> str:
    """Raw content, cut at a word boundary with an ellipsis when it had to be shortened."""
    if len(content) <= limit:
        return content.strip()
    return _cut_at_space(content, limit).strip() + "..."


def generate_title(content: str) -> str:
    """First sentence of the cleaned content, at most 100 characters.

    Titles shorter than 10 characters are replaced by the fallback. May return an
    empty string for whitespace-only content; callers substitute the source name.
    """
    if not content:
        return UNTITLED
    title = apply_length_limit(first_sentence(clean_content(content))).strip()
    if len(title) < MIN_TITLE_LENGTH:
        return fallback_title(content)
    return title
