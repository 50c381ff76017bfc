import unittest
from datetime import datetime, timezone

from threatwatch.ingestion.item_types import ScrapedItem, Source
from threatwatch.scoring.processor import ContentProcessor


class TestContentProcessor(unittest.TestCase):
    def setUp(self):
        self.published = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.processor = ContentProcessor()

    def test_builds_candidate(self):
        item = ScrapedItem(
            source=Source("Leak Forum", "http://abc.onion/thread-7"),
            content="LockBit ransomware affiliate posts new victim. Files to be released Friday.",
            published_at=self.published,
        )
        record = self.processor.process(item)
        self.assertEqual(record.title, "LockBit ransomware affiliate posts new victim")
        self.assertEqual(record.source_name, "Leak Forum")
        self.assertEqual(record.source_url, "http://abc.onion/thread-7")
        self.assertEqual(record.published_at, self.published)
        self.assertEqual(record.categories, ("ransomware",))
        self.assertEqual(record.criticality_score, 10)

    def test_empty_title_falls_back_to_source_name(self):
        item = ScrapedItem(source=Source("Quiet Blog", "https://q.example.com/"), content="   ", published_at=self.published)
        record = self.processor.process(item)
        self.assertEqual(record.title, "Quiet Blog")
        self.assertEqual(record.categories, ("vulnerability",))
        self.assertEqual(record.criticality_score, 3)


if __name__ == "__main__":
    unittest.main()
