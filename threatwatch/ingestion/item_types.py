"""Shared ingestion data types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Source:
    """A configured content origin."""

    name: str
    url: str


@dataclass(frozen=True)
class ScrapedItem:
    """Raw plain-text content pulled from one page or feed entry.

    ``source.url`` is the URL the content actually came from (a feed entry link or a
    forum thread), not necessarily the configured source URL.
    """

    source: Source
    content: str
    published_at: datetime
