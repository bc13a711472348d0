"""Tests for FeedParser."""

import unittest

from feedcycle.errors import ErrorKind, LinkProcessingError
from feedcycle.ingestion import FeedParser

from fixtures import RSS_EMPTY, RSS_THREE_ITEMS

ATOM_NO_IDS = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom</title>
  <entry>
    <title>Untracked</title>
    <updated>2026-10-05T10:00:00Z</updated>
    <summary>No id or link here</summary>
  </entry>
</feed>
"""


class TestFeedParser(unittest.TestCase):
    """Test cases for FeedParser."""

    def setUp(self):
        self.parser = FeedParser()

    def test_parses_items(self):
        articles = self.parser.parse(RSS_THREE_ITEMS, "https://example.com/rss")

        self.assertEqual([a.id for a in articles], ["guid-1", "guid-2", "guid-3"])
        self.assertEqual(articles[0].title, "First article")
        self.assertEqual(articles[0].link, "https://example.com/1")
        self.assertTrue(articles[0].published.startswith("2026-10-05T10:00:00"))

    def test_plain_guids_are_not_resolved_against_feed_url(self):
        articles = self.parser.parse(RSS_THREE_ITEMS, "https://example.com/rss", "utf-8")
        moved = self.parser.parse(RSS_THREE_ITEMS, "https://mirror.example.org/feed.xml", "utf-8")

        self.assertEqual(articles[0].guid, "guid-1")
        self.assertEqual([a.id for a in articles], [a.id for a in moved])

    def test_empty_feed_is_not_an_error(self):
        self.assertEqual(self.parser.parse(RSS_EMPTY, "https://example.com/rss"), [])

    def test_garbage_raises_parse_error(self):
        with self.assertRaises(LinkProcessingError) as ctx:
            self.parser.parse(b"this is not a feed", "https://example.com/rss")
        self.assertEqual(ctx.exception.kind, ErrorKind.PARSE)
        self.assertEqual(ctx.exception.link, "https://example.com/rss")

    def test_hash_id_when_entry_has_no_guid_or_link(self):
        first = self.parser.parse(ATOM_NO_IDS, "https://example.com/atom")
        second = self.parser.parse(ATOM_NO_IDS, "https://example.com/atom")

        self.assertEqual(len(first), 1)
        self.assertEqual(len(first[0].id), 64)
        self.assertEqual(first[0].id, second[0].id)
        self.assertEqual(first[0].description, "No id or link here")


class TestFeedParserAsync(unittest.IsolatedAsyncioTestCase):

    async def test_parse_async(self):
        articles = await FeedParser().parse_async(RSS_THREE_ITEMS, "https://example.com/rss", "utf-8")
        self.assertEqual(len(articles), 3)
