"""Deep crawler for anonymized-network forums.

A forum front page is mostly navigation, so the crawler harvests same-host links
that look like threads or boards and fetches each of them:

- links are resolved against the source URL and deduped by canonical form
- auth/profile/static-asset links are dropped by a substring denylist
- thread-like links go first, board/forum listings after
- at most ``max_links`` pages are fetched, one at a time, ``delay`` seconds apart

Hidden services are slow and easily overloaded; the crawl is deliberately
sequential and bounded.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

import requests
from bs4 import Tag

from threatwatch.ingestion.fetchers import BaseFetcher
from threatwatch.ingestion.item_types import ScrapedItem, Source
from threatwatch.ingestion.sessions import MAX_BODY_BYTES, build_session, fetch_body
from threatwatch.ingestion.text_extract import extract_text, parse_html
from threatwatch.ingestion.url_utils import canonicalize_url, resolve_link, same_host

logger = logging.getLogger(__name__)

EXCLUDE_PATTERNS = (
    "login",
    "register",
    "logout",
    "search",
    "profile",
    "memberlist",
    "ucp",
    "faq",
    "terms",
    "privacy",
    "user-",
    "member.php",
    "user.php",
    "member/",
    ".css",
    ".js",
    ".png",
    ".jpg",
    ".gif",
    ".ico",
)

THREAD_PATTERNS = ("thread", "topic", "post", "discussion", "tid=", "topic=")
FORUM_PATTERNS = ("forum", "board", "category", "fid=")

DEFAULT_MAX_LINKS = 100
DEFAULT_DELAY_SECONDS = 2.0


class LinkKind(Enum):
    THREAD = "thread"
    FORUM = "forum"
    REJECTED = "rejected"


def classify_link(link: str, base_url: str) -> LinkKind:
    """Decide whether a resolved link is worth crawling from ``base_url``."""
    if not same_host(link, base_url):
        return LinkKind.REJECTED
    low = link.lower()
    if any(p in low for p in EXCLUDE_PATTERNS):
        return LinkKind.REJECTED
    if any(p in low for p in THREAD_PATTERNS):
        return LinkKind.THREAD
    if any(p in low for p in FORUM_PATTERNS):
        return LinkKind.FORUM
    return LinkKind.REJECTED


def extract_links(doc: Tag, base_url: str) -> List[Tuple[str, LinkKind]]:
    """Accepted ``<a href>`` targets in document order, first occurrence wins."""
    seen = set()
    out: List[Tuple[str, LinkKind]] = []
    for a in doc.find_all("a", href=True):
        link = resolve_link(a.get("href"), base_url)
        if not link:
            continue
        key = canonicalize_url(link)
        if key in seen:
            continue
        seen.add(key)
        kind = classify_link(link, base_url)
        if kind is LinkKind.REJECTED:
            continue
        out.append((link, kind))
    return out


def order_crawl_list(links: Iterable[Tuple[str, LinkKind]], max_links: int = DEFAULT_MAX_LINKS) -> List[str]:
    """Threads first, then boards, each in discovery order; capped at ``max_links``."""
    pairs = list(links)
    threads = [link for link, kind in pairs if kind is LinkKind.THREAD]
    others = [link for link, kind in pairs if kind is LinkKind.FORUM]
    return (threads + others)[: max(0, max_links)]


@dataclass
class ForumCrawler(BaseFetcher):
    session: requests.Session = field(default_factory=build_session)
    timeout: float = 90.0
    max_links: int = DEFAULT_MAX_LINKS
    delay: float = DEFAULT_DELAY_SECONDS
    max_bytes: int = MAX_BODY_BYTES
    sleep: Callable[[float], None] = time.sleep

    name: str = "forum"

    def _get_doc(self, url: str):
        return parse_html(fetch_body(self.session, url, timeout=self.timeout, max_bytes=self.max_bytes))

    def crawl_list(self, source: Source) -> List[str]:
        """Fetch the front page and build the ordered list of pages to visit."""
        doc = self._get_doc(source.url)
        return order_crawl_list(extract_links(doc, source.url), self.max_links)

    def scrape_page(self, url: str, source: Source) -> Optional[ScrapedItem]:
        text = extract_text(self._get_doc(url))
        if not text:
            return None
        return ScrapedItem(
            source=Source(name=source.name, url=url),
            content=text,
            published_at=datetime.now(timezone.utc),
        )

    def fetch(self, source: Source) -> List[ScrapedItem]:
        links = self.crawl_list(source)
        logger.info(f"[forum] source={source.name} crawl_links={len(links)}")

        out: List[ScrapedItem] = []
        for idx, link in enumerate(links):
            if idx > 0:
                self.sleep(self.delay)
            try:
                item = self.scrape_page(link, source)
            except Exception as e:
                logger.debug(f"[forum] skipped url={link} error={e}")
                continue
            if item is not None:
                out.append(item)
        return out
