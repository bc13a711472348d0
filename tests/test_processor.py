"""Tests for the per-link batch pipeline."""

import unittest
from unittest.mock import AsyncMock, patch

import httpx

from feedcycle.config import ConfigModel
from feedcycle.db import ArticleStorage
from feedcycle.errors import ErrorKind, LinkProcessingError
from feedcycle.ingestion import FeedFetcher
from feedcycle.models import CachedValidators, StoredDocument
from feedcycle.pipeline import (
    BatchJob,
    BatchProcessor,
    CollectingChannel,
    FailedMessage,
    HeadersMessage,
    PendingArticleMessage,
    SuccessMessage,
)

from fixtures import RSS_EMPTY, RSS_THREE_ITEMS, make_feed

L1 = "https://example.com/rss"
L2 = "https://other.example.com/rss"


def make_config(send_first_cycle=True):
    return ConfigModel(
        postgres={"enabled": False},
        feeds={"send_first_cycle": send_first_cycle},
        log={"link_errors": False},
    )


class ProcessorTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.requests = []
        self.responses = {}
        self.channel = CollectingChannel()
        self.storage = ArticleStorage()

    def handler(self, request):
        self.requests.append(request)
        url = str(request.url)
        response = self.responses.get(url)
        if response is None:
            return httpx.Response(404)
        if isinstance(response, Exception):
            raise response
        return response

    def make_processor(self, job):
        fetcher = FeedFetcher(transport=httpx.MockTransport(self.handler))
        return BatchProcessor(job, self.channel, self.storage, fetcher=fetcher)

    def make_job(self, batch=None, run_num=0, send_first_cycle=True, **kwargs):
        kwargs.setdefault("memory_collections", {})
        return BatchJob(
            current_batch=batch or {L1: [make_feed()]},
            run_num=run_num,
            config=make_config(send_first_cycle),
            **kwargs,
        )


class TestScenarios(ProcessorTestCase):
    """End to end runs of a single-link batch."""

    async def test_first_cycle_without_delivery_stores_documents(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        job = self.make_job(run_num=0, send_first_cycle=False)

        outcomes = await self.make_processor(job).run()

        self.assertEqual(self.channel.of_type(PendingArticleMessage), [])
        successes = self.channel.of_type(SuccessMessage)
        self.assertEqual(len(successes), 1)
        self.assertEqual(successes[0].link, L1)
        self.assertEqual(
            sorted(doc.id for doc in successes[0].memory_collection),
            ["guid-1", "guid-2", "guid-3"],
        )
        self.assertEqual(len(job.memory_collections[L1]), 3)
        self.assertEqual(outcomes[0].status, "success")
        self.assertEqual(outcomes[0].new_articles, 3)

    async def test_later_cycle_sends_every_new_article(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        job = self.make_job(run_num=1, send_first_cycle=False)

        await self.make_processor(job).run()

        pending = self.channel.of_type(PendingArticleMessage)
        self.assertEqual(len(pending), 3)
        self.assertEqual(
            [p.pending_article.article["id"] for p in pending],
            ["guid-1", "guid-2", "guid-3"],
        )
        self.assertTrue(all(p.pending_article.feed_id == "feed-x" for p in pending))
        self.assertIsInstance(self.channel.messages[-1], SuccessMessage)

    async def test_half_present_validators_fail_without_request(self):
        job = self.make_job(headers={L1: CachedValidators(last_modified="X")})

        outcomes = await self.make_processor(job).run()

        self.assertEqual(self.requests, [])
        failed = self.channel.of_type(FailedMessage)
        self.assertEqual(len(failed), 1)
        self.assertEqual(failed[0].link, L1)
        self.assertEqual(failed[0].error_kind, ErrorKind.CONFIG)
        self.assertEqual([f.id for f in failed[0].rss_list], ["feed-x"])
        self.assertEqual(outcomes[0].error_kind, ErrorKind.CONFIG)

    async def test_known_articles_are_not_sent_again(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        job = self.make_job(run_num=1)
        processor = self.make_processor(job)

        await processor.run()
        self.channel.messages.clear()
        await processor.run()

        self.assertEqual(self.channel.of_type(PendingArticleMessage), [])
        self.assertEqual(len(self.channel.of_type(SuccessMessage)), 1)
        self.assertEqual(len(job.memory_collections[L1]), 3)


class TestFetchStep(ProcessorTestCase):
    """Conditional fetch and validator propagation."""

    async def test_not_modified_sends_single_success(self):
        self.responses[L1] = httpx.Response(304)
        job = self.make_job(headers={L1: CachedValidators(last_modified="X", etag="Y")})
        processor = self.make_processor(job)

        with patch.object(processor.parser, "parse_async", new=AsyncMock()) as parse:
            outcomes = await processor.run()

        parse.assert_not_called()
        self.assertEqual(len(self.channel.messages), 1)
        message = self.channel.messages[0]
        self.assertIsInstance(message, SuccessMessage)
        self.assertIsNone(message.memory_collection)
        self.assertEqual(job.memory_collections[L1], [])
        self.assertEqual(outcomes[0].status, "success")

    async def test_cached_validators_are_sent(self):
        self.responses[L1] = httpx.Response(304)
        job = self.make_job(headers={L1: CachedValidators(last_modified="X", etag="Y")})

        await self.make_processor(job).run()

        request = self.requests[0]
        self.assertEqual(request.headers["if-modified-since"], "X")
        self.assertEqual(request.headers["if-none-match"], "Y")

    async def test_headers_sent_before_parse_failure(self):
        self.responses[L1] = httpx.Response(
            200,
            content=RSS_THREE_ITEMS,
            headers={"Last-Modified": "Mon, 05 Oct 2026 10:00:00 GMT", "ETag": '"abc"'},
        )
        job = self.make_job()
        processor = self.make_processor(job)
        error = LinkProcessingError(ErrorKind.PARSE, "broken", L1)

        with patch.object(processor.parser, "parse_async", new=AsyncMock(side_effect=error)):
            outcomes = await processor.run()

        headers = self.channel.of_type(HeadersMessage)
        self.assertEqual(len(headers), 1)
        self.assertEqual(headers[0].etag, '"abc"')
        self.assertEqual(headers[0].last_modified, "Mon, 05 Oct 2026 10:00:00 GMT")
        self.assertIsInstance(self.channel.messages[0], HeadersMessage)
        self.assertIsInstance(self.channel.messages[-1], FailedMessage)
        self.assertEqual(outcomes[0].error_kind, ErrorKind.PARSE)

    async def test_single_validator_header_is_not_propagated(self):
        self.responses[L1] = httpx.Response(200, content=RSS_EMPTY, headers={"ETag": '"abc"'})

        await self.make_processor(self.make_job()).run()

        self.assertEqual(self.channel.of_type(HeadersMessage), [])

    async def test_bad_status_is_fetch_failure(self):
        self.responses[L1] = httpx.Response(500)

        outcomes = await self.make_processor(self.make_job()).run()

        failed = self.channel.of_type(FailedMessage)
        self.assertEqual(failed[0].error_kind, ErrorKind.FETCH)
        self.assertIn("Bad status code 500", outcomes[0].error)


class TestParseAndSync(ProcessorTestCase):
    """Parse, dedup and sync steps."""

    async def test_empty_feed_is_success(self):
        self.responses[L1] = httpx.Response(200, content=RSS_EMPTY)
        job = self.make_job(run_num=1)

        await self.make_processor(job).run()

        self.assertEqual(len(self.channel.messages), 1)
        self.assertIsInstance(self.channel.messages[0], SuccessMessage)
        self.assertEqual(job.memory_collections[L1], [])

    async def test_comparison_values_update_stored_documents(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        stored = [StoredDocument(id="guid-1", feed_url=L1, properties={})]
        feed = make_feed(pcomparisons=["title"])
        job = self.make_job(batch={L1: [feed]}, run_num=1, memory_collections={L1: stored})

        await self.make_processor(job).run()

        docs = {doc.id: doc for doc in job.memory_collections[L1]}
        self.assertEqual(docs["guid-1"].properties, {"title": "First article"})
        self.assertEqual(docs["guid-3"].properties, {"title": "Third article"})
        # guid-1 was seen but its title was not stored yet
        pending = self.channel.of_type(PendingArticleMessage)
        self.assertEqual(
            sorted(p.pending_article.article["id"] for p in pending),
            ["guid-1", "guid-2", "guid-3"],
        )

    async def test_dedup_uses_documents_from_before_sync(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        stored = [
            StoredDocument(id=f"guid-{i}", feed_url=L1, properties={})
            for i in (1, 2, 3)
        ]
        feed = make_feed(pcomparisons=["title"])
        job = self.make_job(batch={L1: [feed]}, run_num=1, memory_collections={L1: stored})
        processor = self.make_processor(job)

        await processor.run()
        first = len(self.channel.of_type(PendingArticleMessage))
        self.channel.messages.clear()
        await processor.run()

        self.assertEqual(first, 3)
        self.assertEqual(self.channel.of_type(PendingArticleMessage), [])


class TestDeliveryStaging(ProcessorTestCase):
    """Staging pending articles."""

    async def test_staging_failure_still_reports_article(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        job = self.make_job(run_num=1)
        processor = self.make_processor(job)
        original = self.storage.store_pending_article

        async def flaky(new_article, schedule_name):
            if new_article.article.id == "guid-2":
                raise RuntimeError("staging down")
            return await original(new_article, schedule_name)

        with patch.object(self.storage, "store_pending_article", new=flaky):
            outcomes = await processor.run()

        pending = self.channel.of_type(PendingArticleMessage)
        self.assertEqual(len(pending), 3)
        by_id = {p.pending_article.article["id"]: p.pending_article for p in pending}
        self.assertIsNone(by_id["guid-2"].id)
        self.assertEqual(by_id["guid-2"].schedule_name, "default")
        self.assertIsNotNone(by_id["guid-1"].id)
        self.assertIsNotNone(by_id["guid-3"].id)
        self.assertEqual(outcomes[0].status, "success")

    async def test_each_feed_on_a_link_gets_its_articles(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        feeds = [make_feed(id="a"), make_feed(id="b"), make_feed(id="c", disabled="off")]
        job = self.make_job(batch={L1: feeds}, run_num=1)

        await self.make_processor(job).run()

        pending = self.channel.of_type(PendingArticleMessage)
        self.assertEqual(len(pending), 6)
        self.assertEqual({p.pending_article.feed_id for p in pending}, {"a", "b"})


class TestLinkIsolation(ProcessorTestCase):
    """Failures stay with their link."""

    async def test_failing_link_does_not_suppress_sibling(self):
        self.responses[L1] = httpx.ConnectError("refused")
        self.responses[L2] = httpx.Response(200, content=RSS_THREE_ITEMS)
        job = self.make_job(batch={L1: [make_feed(id="a")], L2: [make_feed(id="b", url=L2)]})

        outcomes = await self.make_processor(job).run()

        by_link = {o.link: o for o in outcomes}
        self.assertEqual(by_link[L1].status, "failed")
        self.assertEqual(by_link[L1].error_kind, ErrorKind.FETCH)
        self.assertEqual(by_link[L2].status, "success")
        self.assertEqual([m.link for m in self.channel.of_type(SuccessMessage)], [L2])
        self.assertEqual([m.link for m in self.channel.of_type(FailedMessage)], [L1])

    async def test_unexpected_error_is_contained(self):
        self.responses[L1] = httpx.Response(200, content=RSS_THREE_ITEMS)
        self.responses[L2] = httpx.Response(200, content=RSS_EMPTY)
        job = self.make_job(batch={L1: [make_feed()], L2: [make_feed(id="b", url=L2)]})
        processor = self.make_processor(job)

        with patch.object(processor, "sync_database", new=AsyncMock(side_effect=KeyError("boom"))):
            with self.assertLogs("feedcycle", level="ERROR"):
                outcomes = await processor.run()

        by_link = {o.link: o for o in outcomes}
        self.assertEqual(by_link[L1].error_kind, ErrorKind.UNEXPECTED)
        self.assertEqual(by_link[L2].status, "success")

    async def test_document_load_failure_aborts_batch(self):
        job = self.make_job()
        processor = self.make_processor(job)

        with patch.object(self.storage, "load_documents", new=AsyncMock(side_effect=OSError("down"))):
            with self.assertRaises(OSError):
                await processor.run()

        self.assertEqual(self.channel.messages, [])
