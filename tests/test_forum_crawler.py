import unittest

import requests

from threatwatch.ingestion.forum_crawler import (
    ForumCrawler,
    LinkKind,
    classify_link,
    extract_links,
    order_crawl_list,
)
from threatwatch.ingestion.item_types import Source
from threatwatch.ingestion.text_extract import parse_html

BASE = "http://abcxyz.onion/"

FRONT_PAGE = """
<html><body>
  <a href="/login">Log in</a>
  <a href="/forum/general">General</a>
  <a href="/thread-123">Selling access</a>
  <a href="http://elsewhere.onion/thread-9">Mirror</a>
  <a href="/thread-123#latest">Selling access (latest)</a>
  <a href="/about">About</a>
</body></html>
"""


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.content = body.encode("utf-8")
        self.status_code = status_code
        self.headers = {}
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def get(self, url, timeout=None, stream=False):
        self.calls.append(url)
        if url not in self.pages:
            raise requests.ConnectionError(url)
        return FakeResponse(self.pages[url])


class TestLinkClassification(unittest.TestCase):
    def test_crawl_list_orders_threads_first(self):
        links = extract_links(parse_html(FRONT_PAGE), BASE)
        self.assertEqual(
            order_crawl_list(links),
            ["http://abcxyz.onion/thread-123", "http://abcxyz.onion/forum/general"],
        )

    def test_denylist_beats_thread_pattern(self):
        self.assertIs(classify_link(BASE + "member.php?tid=4", BASE), LinkKind.REJECTED)
        self.assertIs(classify_link(BASE + "showthread.php?tid=4", BASE), LinkKind.THREAD)
        self.assertIs(classify_link(BASE + "index.php?fid=2", BASE), LinkKind.FORUM)
        self.assertIs(classify_link(BASE + "static/post.css", BASE), LinkKind.REJECTED)
        self.assertIs(classify_link(BASE + "about", BASE), LinkKind.REJECTED)

    def test_cross_host_rejected(self):
        self.assertIs(classify_link("http://other.onion/thread-1", BASE), LinkKind.REJECTED)

    def test_cap(self):
        links = [(f"{BASE}thread-{i}", LinkKind.THREAD) for i in range(150)]
        self.assertEqual(len(order_crawl_list(links)), 100)
        self.assertEqual(order_crawl_list(links, max_links=3)[-1], BASE + "thread-2")


class TestForumCrawler(unittest.TestCase):
    def _crawler(self, pages, **kwargs):
        self.sleeps = []
        return ForumCrawler(session=FakeSession(pages), sleep=self.sleeps.append, **kwargs)

    def test_fetches_pages_sequentially_with_pacing(self):
        pages = {
            BASE: FRONT_PAGE,
            BASE + "thread-123": "<p>Initial access broker selling VPN creds</p>",
            BASE + "forum/general": "<p>General board</p>",
        }
        crawler = self._crawler(pages)
        items = crawler.fetch(Source("Forum", BASE))

        self.assertEqual([i.source.url for i in items], [BASE + "thread-123", BASE + "forum/general"])
        self.assertTrue(all(i.source.name == "Forum" for i in items))
        self.assertEqual(items[0].content, "Initial access broker selling VPN creds")
        # one pause between two fetches, none before the first
        self.assertEqual(self.sleeps, [2.0])
        self.assertEqual(crawler.session.calls, [BASE, BASE + "thread-123", BASE + "forum/general"])

    def test_failed_and_empty_pages_are_skipped(self):
        pages = {
            BASE: FRONT_PAGE,
            BASE + "forum/general": "<script>only()</script>",
        }
        items = self._crawler(pages).fetch(Source("Forum", BASE))
        self.assertEqual(items, [])
        self.assertEqual(self.sleeps, [2.0])

    def test_front_page_failure_propagates(self):
        with self.assertRaises(requests.ConnectionError):
            self._crawler({}).fetch(Source("Forum", BASE))


if __name__ == "__main__":
    unittest.main()
