"""Acquisition strategies for ordinary web pages and RSS feeds.

Both fetchers turn one configured Source into ScrapedItem records:
- WebFetcher: one GET, whole-page text, a single item stamped "now"
- RSSFetcher: one GET, one item per ``channel/item`` entry, dated from the feed
"""

from __future__ import annotations

import logging
import xml.sax
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import feedparser
import requests

from threatwatch.ingestion.dates import parse_feed_date
from threatwatch.ingestion.item_types import ScrapedItem, Source
from threatwatch.ingestion.sessions import MAX_BODY_BYTES, build_session, fetch_body
from threatwatch.ingestion.text_extract import extract_text, parse_html, strip_markup

logger = logging.getLogger(__name__)


class FeedParseError(ValueError):
    """Raised when a feed body is not well-formed XML."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseFetcher:
    name: str = "base"

    def fetch(self, source: Source) -> List[ScrapedItem]:
        raise NotImplementedError


@dataclass
class WebFetcher(BaseFetcher):
    """Whole-page HTML scrape."""

    session: requests.Session = field(default_factory=build_session)
    timeout: float = 60.0
    max_bytes: int = MAX_BODY_BYTES

    name: str = "web"

    def scrape(self, source: Source) -> ScrapedItem:
        body = fetch_body(self.session, source.url, timeout=self.timeout, max_bytes=self.max_bytes)
        doc = parse_html(body)
        # Pages carry no reliable timestamp
        return ScrapedItem(source=source, content=extract_text(doc), published_at=_utcnow())

    def fetch(self, source: Source) -> List[ScrapedItem]:
        return [self.scrape(source)]

    def fetch_all(self, sources: Sequence[Source]) -> List[ScrapedItem]:
        """Scrape every source, skipping the ones that fail."""
        out: List[ScrapedItem] = []
        for source in sources:
            try:
                out.append(self.scrape(source))
            except Exception as e:
                logger.warning(f"[web] skipped source={source.name} error={e}")
        return out


def _entry_field(entry: Any, key: str) -> Optional[str]:
    value = entry.get(key) if hasattr(entry, "get") else None
    return value if isinstance(value, str) and value else None


def _entry_body(entry: Any) -> str:
    """``content:encoded`` when present, else ``description``."""
    for block in entry.get("content") or []:
        value = block.get("value") if hasattr(block, "get") else None
        if value:
            return value
    return _entry_field(entry, "description") or _entry_field(entry, "summary") or ""


@dataclass
class RSSFetcher(BaseFetcher):
    """RSS 2.0 feed fetcher."""

    session: requests.Session = field(default_factory=build_session)
    timeout: float = 60.0
    max_bytes: int = MAX_BODY_BYTES

    name: str = "rss"

    def fetch(self, source: Source) -> List[ScrapedItem]:
        body = fetch_body(self.session, source.url, timeout=self.timeout, max_bytes=self.max_bytes)
        return self.parse(body, source)

    def parse(self, body: bytes, source: Source) -> List[ScrapedItem]:
        parsed = feedparser.parse(body)
        # feedparser recovers from broken XML with a loose parser; partial feeds are not accepted
        exc = parsed.get("bozo_exception")
        if parsed.get("bozo") and isinstance(exc, xml.sax.SAXException):
            raise FeedParseError(f"malformed feed from {source.url}: {exc}")

        out: List[ScrapedItem] = []
        for entry in parsed.entries or []:
            link = _entry_field(entry, "link") or ""
            out.append(
                ScrapedItem(
                    source=Source(name=source.name, url=link.strip()),
                    content=strip_markup(_entry_body(entry)),
                    published_at=parse_feed_date(_entry_field(entry, "published")),
                )
            )
        return out
