"""Cycle orchestrator: partitions feeds into batches and drives worker processes."""

import logging
import multiprocessing
from multiprocessing.connection import wait
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config.models import ConfigModel
from ..db.articles import ArticleStorage
from ..models import CachedValidators, Feed, PendingArticle, StoredDocument
from .messages import (
    FailedMessage,
    HeadersMessage,
    PendingArticleMessage,
    SuccessMessage,
    decode_message,
)
from .models import BatchJob
from .worker import run_worker

logger = logging.getLogger(__name__)

FAILURE_LIMIT_REASON = "Connection failure limit reached"

Batch = Dict[str, List[Feed]]
DeliverCallback = Callable[[PendingArticle], None]


def build_batches(feeds: List[Feed], batch_size: int) -> List[Batch]:
    """Group enabled feeds by URL and split the links into batches."""
    by_link: Batch = {}
    for feed in feeds:
        if not feed.is_enabled:
            continue
        by_link.setdefault(feed.url, []).append(feed)

    links = sorted(by_link)
    return [
        {link: by_link[link] for link in links[i:i + batch_size]}
        for i in range(0, len(links), batch_size)
    ]


def log_delivery(pending: PendingArticle) -> None:
    logger.info(
        "New article for feed %s: %s",
        pending.feed_id,
        pending.article.get("title") or pending.article.get("link") or pending.article["id"],
    )


class CycleReport(BaseModel):
    """What happened during one cycle."""

    schedule_name: str
    run_num: int
    succeeded: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    articles: int = 0
    disabled_feeds: List[str] = Field(default_factory=list)
    aborted_batches: int = 0


class WorkerHandle:
    """A running worker process and the receiving end of its pipe."""

    def __init__(self, job: BatchJob, process: Any, receiver: Any) -> None:
        self.job = job
        self.process = process
        self.receiver = receiver


def spawn_worker(job: BatchJob) -> WorkerHandle:
    ctx = multiprocessing.get_context("spawn")
    receiver, sender = ctx.Pipe(duplex=False)
    process = ctx.Process(
        target=run_worker,
        args=(sender, job.model_dump(mode="json")),
        name=f"feedcycle-{job.schedule_name}",
    )
    process.start()
    # Only the child keeps the sending end, so EOF marks the worker finishing
    sender.close()
    return WorkerHandle(job, process, receiver)


class CycleOrchestrator:
    """Runs cycles for one schedule and keeps state workers hand back.

    Validators, databaseless document snapshots and failure counts live here
    across cycles; workers are short-lived and stateless.
    """

    def __init__(
        self,
        config: ConfigModel,
        deliver: Optional[DeliverCallback] = None,
        debug_urls: Optional[List[str]] = None,
        spawn: Callable[[BatchJob], WorkerHandle] = spawn_worker,
    ) -> None:
        self.config = config
        self.deliver = deliver or log_delivery
        self.debug_urls = debug_urls or []
        self.spawn = spawn
        self.run_num = 0
        self.headers: Dict[str, CachedValidators] = {}
        self.memory_collections: Dict[str, List[StoredDocument]] = {}
        self.failure_counts: Dict[str, int] = {}
        self.confirmed: List[str] = []

    @property
    def databaseless(self) -> bool:
        return not self.config.postgres.enabled

    def create_job(self, schedule_name: str, batch: Batch) -> BatchJob:
        memory_collections = None
        if self.databaseless:
            memory_collections = {link: self.memory_collections.get(link, []) for link in batch}
        return BatchJob(
            current_batch=batch,
            debug_urls=[url for url in self.debug_urls if url in batch],
            schedule_name=schedule_name,
            run_num=self.run_num,
            headers={link: self.headers[link] for link in batch if link in self.headers},
            memory_collections=memory_collections,
            config=self.config,
        )

    def run_cycle(self, schedule_name: str, feeds: List[Feed]) -> CycleReport:
        """Process every enabled feed once, waiting for all workers to exit."""
        report = CycleReport(schedule_name=schedule_name, run_num=self.run_num)
        batches = build_batches(feeds, self.config.feeds.batch_size)
        handles = [self.spawn(self.create_job(schedule_name, batch)) for batch in batches]
        logger.info("Cycle %d of %s: %d links in %d batches",
                    self.run_num, schedule_name, sum(len(b) for b in batches), len(batches))

        receiving = {handle.receiver: handle for handle in handles}
        while receiving:
            for receiver in wait(list(receiving)):
                handle = receiving[receiver]
                try:
                    data = receiver.recv()
                except EOFError:
                    del receiving[receiver]
                    self._finish_worker(handle, report)
                    continue
                self.handle_message(decode_message(data), handle.job, report)

        self.run_num += 1
        return report

    def _finish_worker(self, handle: WorkerHandle, report: CycleReport) -> None:
        handle.process.join()
        if handle.process.exitcode != 0:
            report.aborted_batches += 1
            logger.error(
                "Worker for %d links exited with code %s; batch is retried next cycle",
                len(handle.job.current_batch),
                handle.process.exitcode,
            )

    def handle_message(self, message: BaseModel, job: BatchJob, report: CycleReport) -> None:
        if isinstance(message, HeadersMessage):
            self.headers[message.link] = CachedValidators(
                last_modified=message.last_modified, etag=message.etag
            )
        elif isinstance(message, PendingArticleMessage):
            if message.pending_article is not None:
                report.articles += 1
                self._deliver(message.pending_article)
        elif isinstance(message, SuccessMessage):
            report.succeeded.append(message.link)
            if message.memory_collection is not None:
                self.memory_collections[message.link] = message.memory_collection
            for feed in job.current_batch.get(message.link, []):
                self.failure_counts.pop(feed.id, None)
        elif isinstance(message, FailedMessage):
            report.failed.append(message.link)
            for feed in message.rss_list:
                self._record_failure(feed, report)

    def _record_failure(self, feed: Feed, report: CycleReport) -> None:
        count = self.failure_counts.get(feed.id, 0) + 1
        self.failure_counts[feed.id] = count
        if count >= self.config.feeds.failure_limit:
            logger.warning("Disabling feed %s (%s) after %d failures", feed.id, feed.url, count)
            report.disabled_feeds.append(feed.id)
            self.failure_counts.pop(feed.id, None)

    def _deliver(self, pending: PendingArticle) -> None:
        try:
            self.deliver(pending)
        except Exception:
            logger.exception("Delivery failed for pending article %s", pending.id)
            return
        # Only staged rows in Postgres need confirming
        if pending.id is not None and not self.databaseless:
            self.confirmed.append(pending.id)

    async def replay_pending(self, storage: ArticleStorage, schedule_name: str) -> int:
        """Deliver articles a crashed run of this schedule staged but never confirmed."""
        pending_articles = await storage.get_pending_articles(schedule_name)
        for pending in pending_articles:
            self._deliver(pending)
        if pending_articles:
            logger.info("Replayed %d pending articles", len(pending_articles))
        await self.flush_confirmed(storage)
        return len(pending_articles)

    async def flush_confirmed(self, storage: ArticleStorage) -> None:
        confirmed, self.confirmed = self.confirmed, []
        await storage.delete_pending_articles(confirmed)
