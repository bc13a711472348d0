"""Tests for FeedFetcher."""

import unittest

import httpx

from feedcycle.errors import ErrorKind, LinkProcessingError
from feedcycle.ingestion import FeedFetcher
from feedcycle.models import CachedValidators

URL = "https://example.com/rss"


class TestFeedFetcher(unittest.IsolatedAsyncioTestCase):
    """Test cases for conditional fetching."""

    def setUp(self):
        self.requests = []
        self.response = httpx.Response(200, content=b"<rss/>")

    def handler(self, request):
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    async def fetch(self, validators=None):
        fetcher = FeedFetcher(user_agent="test-agent", transport=httpx.MockTransport(self.handler))
        async with fetcher.client() as client:
            return await fetcher.fetch_url(client, URL, validators)

    async def test_plain_request(self):
        result = await self.fetch()

        self.assertFalse(result.not_modified)
        self.assertEqual(result.content, b"<rss/>")
        self.assertIsNone(result.validators)
        request = self.requests[0]
        self.assertEqual(request.headers["user-agent"], "test-agent")
        self.assertNotIn("if-none-match", request.headers)

    async def test_sends_validators(self):
        await self.fetch(CachedValidators(last_modified="X", etag='"e"'))

        request = self.requests[0]
        self.assertEqual(request.headers["if-modified-since"], "X")
        self.assertEqual(request.headers["if-none-match"], '"e"')

    async def test_not_modified(self):
        self.response = httpx.Response(304)

        result = await self.fetch(CachedValidators(last_modified="X", etag='"e"'))

        self.assertTrue(result.not_modified)
        self.assertEqual(result.content, b"")

    async def test_fresh_validators(self):
        self.response = httpx.Response(
            200, content=b"<rss/>", headers={"Last-Modified": "X", "ETag": '"e"'}
        )

        result = await self.fetch()

        self.assertEqual(result.validators, CachedValidators(last_modified="X", etag='"e"'))

    async def test_bad_status(self):
        self.response = httpx.Response(500)

        with self.assertRaises(LinkProcessingError) as ctx:
            await self.fetch()

        self.assertEqual(ctx.exception.kind, ErrorKind.FETCH)
        self.assertIn("500", str(ctx.exception))

    async def test_network_error(self):
        self.response = httpx.ConnectError("refused")

        with self.assertRaises(LinkProcessingError) as ctx:
            await self.fetch()

        self.assertEqual(ctx.exception.kind, ErrorKind.FETCH)
