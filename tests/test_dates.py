import unittest
from datetime import datetime, timedelta, timezone

from threatwatch.ingestion.dates import parse_feed_date


class TestParseFeedDate(unittest.TestCase):
    def test_numeric_offset(self):
        parsed = parse_feed_date("Mon, 02 Jan 2006 15:04:05 -0700")
        expected = datetime(2006, 1, 2, 22, 4, 5, tzinfo=timezone.utc)
        self.assertEqual(parsed, expected)

    def test_gmt_abbreviation(self):
        parsed = parse_feed_date("Tue, 10 Jun 2025 08:30:00 GMT")
        self.assertEqual(parsed, datetime(2025, 6, 10, 8, 30, tzinfo=timezone.utc))

    def test_known_us_zone(self):
        parsed = parse_feed_date("Mon, 02 Jan 2006 15:04:05 MST")
        self.assertEqual(parsed.utcoffset(), timedelta(hours=-7))

    def test_unknown_abbreviation_reads_as_utc(self):
        parsed = parse_feed_date("Mon, 02 Jan 2006 15:04:05 XYZ")
        self.assertEqual(parsed.utcoffset(), timedelta(0))

    def test_rfc3339(self):
        parsed = parse_feed_date("2024-03-01T12:00:00Z")
        self.assertEqual(parsed, datetime(2024, 3, 1, 12, tzinfo=timezone.utc))
        with_frac = parse_feed_date("2024-03-01T12:00:00.123+02:00")
        self.assertEqual(with_frac, datetime(2024, 3, 1, 10, 0, 0, 123000, tzinfo=timezone.utc))

    def test_unparseable_falls_back_to_now(self):
        before = datetime.now(timezone.utc)
        parsed = parse_feed_date("yesterday-ish")
        self.assertGreaterEqual(parsed, before)
        self.assertGreaterEqual(parse_feed_date(None), before)

    def test_explicit_now(self):
        now = datetime(2020, 1, 1, tzinfo=timezone.utc)
        self.assertEqual(parse_feed_date("", now=now), now)


if __name__ == "__main__":
    unittest.main()
