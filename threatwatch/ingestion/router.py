"""Per-source choice of acquisition strategy.

- ``.onion`` hosts are deep-crawled as forums, nothing else is tried
- feed-looking URLs try RSS first
- everything else, and any RSS attempt that fails or comes back empty, falls
  back to a whole-page HTML scrape
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List
from urllib.parse import urlparse

from threatwatch.ingestion.fetchers import RSSFetcher, WebFetcher
from threatwatch.ingestion.forum_crawler import ForumCrawler
from threatwatch.ingestion.item_types import ScrapedItem, Source
from threatwatch.ingestion.sessions import build_session

logger = logging.getLogger(__name__)

ANONYMIZED_MARKERS = (".onion",)

_FEED_SEGMENT_RE = re.compile(r"(^|/)(feed|rss)", re.IGNORECASE)


class Strategy(Enum):
    FORUM = "forum"
    RSS_THEN_WEB = "rss_then_web"
    WEB = "web"


def is_anonymized(url: str) -> bool:
    return any(marker in (url or "").lower() for marker in ANONYMIZED_MARKERS)


def looks_like_feed(url: str) -> bool:
    """A path segment starting with ``feed``/``rss``, or an ``.xml`` path."""
    try:
        path = urlparse(url or "").path
    except ValueError:
        return False
    if ".xml" in path.lower():
        return True
    return bool(_FEED_SEGMENT_RE.search(path))


def select_strategy(url: str) -> Strategy:
    if is_anonymized(url):
        return Strategy.FORUM
    if looks_like_feed(url):
        return Strategy.RSS_THEN_WEB
    return Strategy.WEB


@dataclass
class SourceRouter:
    web: WebFetcher
    rss: RSSFetcher
    forum: ForumCrawler

    @classmethod
    def from_config(cls, config) -> "SourceRouter":
        session = build_session(use_tor=config.use_tor, tor_proxy=config.tor_proxy)
        return cls(
            web=WebFetcher(session=session, timeout=config.http_timeout),
            rss=RSSFetcher(session=session, timeout=config.http_timeout),
            forum=ForumCrawler(
                session=session,
                timeout=config.forum_timeout,
                max_links=config.forum_max_links,
                delay=config.forum_delay,
            ),
        )

    def acquire(self, source: Source) -> List[ScrapedItem]:
        """Run the strategy chain for one source. Errors from the last step propagate."""
        strategy = select_strategy(source.url)
        if strategy is Strategy.FORUM:
            logger.info(f"[router] deep crawling forum source={source.name}")
            return self.forum.fetch(source)

        items: List[ScrapedItem] = []
        if strategy is Strategy.RSS_THEN_WEB:
            logger.debug(f"[router] attempting RSS source={source.name}")
            try:
                items = self.rss.fetch(source)
            except Exception as e:
                logger.debug(f"[router] RSS failed source={source.name} error={e}")
                items = []

        if not items:
            logger.debug(f"[router] attempting HTML scrape source={source.name}")
            items = self.web.fetch(source)
        return items
