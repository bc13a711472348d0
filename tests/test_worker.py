"""Tests for the worker entry points."""

import unittest
from unittest.mock import MagicMock, patch

import httpx

from feedcycle.config import ConfigModel
from feedcycle.ingestion import FeedFetcher
from feedcycle.pipeline import BatchJob, CollectingChannel, SuccessMessage, process_job, run_worker

from fixtures import RSS_THREE_ITEMS, make_feed

URL = "https://example.com/rss"


def rss_handler(request):
    return httpx.Response(200, content=RSS_THREE_ITEMS)


class TestProcessJob(unittest.IsolatedAsyncioTestCase):
    """Test cases for process_job."""

    async def test_databaseless_job_without_collections(self):
        job = BatchJob(
            current_batch={URL: [make_feed()]},
            config=ConfigModel(postgres={"enabled": False}),
        )
        channel = CollectingChannel()
        fetcher = FeedFetcher(transport=httpx.MockTransport(rss_handler))

        outcomes = await process_job(job, channel, fetcher=fetcher)

        self.assertEqual([o.status for o in outcomes], ["success"])
        success = channel.of_type(SuccessMessage)[0]
        self.assertEqual(len(success.memory_collection), 3)

    async def test_store_connection_failure_aborts(self):
        job = BatchJob(current_batch={URL: [make_feed()]}, config=ConfigModel())
        channel = CollectingChannel()

        with patch("feedcycle.pipeline.worker.open_async_pool", side_effect=OSError("no db")):
            with self.assertRaises(OSError):
                await process_job(job, channel)

        self.assertEqual(channel.messages, [])


class TestRunWorker(unittest.TestCase):

    def test_aborted_batch_exits_non_zero(self):
        job = BatchJob(current_batch={URL: [make_feed()]}, config=ConfigModel())
        conn = MagicMock()

        with patch("feedcycle.pipeline.worker.open_async_pool", side_effect=OSError("no db")), \
                patch("feedcycle.pipeline.worker.configure_logging"):
            with self.assertLogs("feedcycle", level="ERROR"):
                with self.assertRaises(SystemExit) as ctx:
                    run_worker(conn, job.model_dump(mode="json"))

        self.assertEqual(ctx.exception.code, 1)
        conn.close.assert_called_once()
