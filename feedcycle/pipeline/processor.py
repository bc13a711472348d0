"""Per-cycle batch processing: fetch, parse, dedup, sync and report every link."""

import asyncio
import logging
from typing import List, Optional, Union

import httpx

from ..db.articles import ArticleStorage
from ..errors import ErrorKind, LinkProcessingError, classify_error
from ..ingestion import Article, FeedFetcher, FeedParser, FetchResult, LinkLogic, NewArticle
from ..log import UrlLoggerAdapter, create_logger, url_logger
from ..models import Feed, PendingArticle, StoredDocument
from .messages import (
    FailedMessage,
    HeadersMessage,
    MessageChannel,
    PendingArticleMessage,
    SuccessMessage,
)
from .models import BatchJob, LinkOutcome
from .sync import SyncMeta, get_inserts_and_updates, union_comparison_keys

UrlLog = Optional[Union[logging.Logger, UrlLoggerAdapter]]


class BatchProcessor:
    """Process every link of a batch concurrently, isolating failures per link."""

    def __init__(
        self,
        job: BatchJob,
        channel: MessageChannel,
        storage: ArticleStorage,
        fetcher: Optional[FeedFetcher] = None,
        parser: Optional[FeedParser] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.job = job
        self.config = job.config
        self.channel = channel
        self.storage = storage
        self.fetcher = fetcher or FeedFetcher(
            timeout=self.config.feeds.timeout,
            user_agent=self.config.feeds.user_agent,
        )
        self.parser = parser or FeedParser()
        self.log = log or create_logger(job.schedule_name)

    @property
    def databaseless(self) -> bool:
        return self.job.databaseless

    async def run(self) -> List[LinkOutcome]:
        """Load stored documents, then settle every link before returning."""
        documents = await self.storage.load_documents(
            self.job.schedule_name, self.job.memory_collections
        )

        async with self.fetcher.client() as client:
            tasks = [
                self.get_feed(client, link, feeds, documents.setdefault(link, []))
                for link, feeds in self.job.current_batch.items()
            ]
            return list(await asyncio.gather(*tasks))

    async def fetch_feed(
        self,
        client: httpx.AsyncClient,
        link: str,
        url_log: UrlLog = None,
    ) -> Optional[FetchResult]:
        """Conditionally fetch the link. None means not modified."""
        if url_log:
            url_log.info("Fetching URL")

        validators = self.job.headers.get(link)
        if validators is not None and (validators.last_modified or validators.etag):
            if not validators.complete:
                raise LinkProcessingError(
                    ErrorKind.CONFIG,
                    "Headers exist for a link, but missing lastModified and etag",
                    link,
                )
        else:
            validators = None

        result = await self.fetcher.fetch_url(client, link, validators)
        if result.not_modified:
            if url_log:
                url_log.info("304 response, sending success status")
            return None

        if result.validators:
            self.channel.send(
                HeadersMessage(
                    link=link,
                    last_modified=result.validators.last_modified,
                    etag=result.validators.etag,
                )
            )
            if url_log:
                url_log.info("Sending back headers")

        return result

    async def parse_stream(self, result: FetchResult, url_log: UrlLog = None) -> List[Article]:
        if url_log:
            url_log.info("Parsing stream")
        article_list = await self.parser.parse_async(result.content, result.url, result.charset)
        if not article_list and url_log:
            url_log.info("No articles found, sending success status")
        return article_list

    async def sync_database(
        self,
        article_list: List[Article],
        docs: List[StoredDocument],
        feeds: List[Feed],
        link: str,
    ) -> None:
        comparisons = union_comparison_keys(feeds)
        meta = SyncMeta(feed_url=link, schedule_name=self.job.schedule_name)
        to_insert, to_update = get_inserts_and_updates(article_list, docs, comparisons, meta)

        memory_collection = docs if self.databaseless else None
        await self.storage.insert_documents(to_insert, memory_collection)
        await self.storage.update_documents(to_update, memory_collection)

    async def send_articles(self, new_articles: List[NewArticle]) -> None:
        """Stage every new article, then report each one whether or not staging worked.

        Staging first lets articles be recovered if the process dies while
        they are being delivered.
        """
        results = await asyncio.gather(
            *(self.storage.store_pending_article(a, self.job.schedule_name) for a in new_articles),
            return_exceptions=True,
        )
        for new_article, result in zip(new_articles, results):
            if isinstance(result, BaseException):
                self.log.error(
                    "Failed to store pending article before reporting it",
                    exc_info=result,
                )
                result = PendingArticle(
                    feed_id=new_article.feed.id,
                    schedule_name=self.job.schedule_name,
                    article=new_article.article.model_dump(mode="json"),
                )
            self.channel.send(PendingArticleMessage(pending_article=result))

    def should_send_articles(self) -> bool:
        return self.job.run_num != 0 or self.config.feeds.send_first_cycle

    async def get_feed(
        self,
        client: httpx.AsyncClient,
        link: str,
        feeds: List[Feed],
        docs: List[StoredDocument],
    ) -> LinkOutcome:
        """Run one link through the pipeline. Never raises."""
        url_log = url_logger(self.log, link) if link in self.job.debug_urls else None
        if url_log:
            url_log.info("Isolated processor received in batch")

        try:
            fetch_result = await self.fetch_feed(client, link, url_log)
            if fetch_result is None:
                self.channel.send(SuccessMessage(link=link))
                return LinkOutcome(link=link, status="success")

            article_list = await self.parse_stream(fetch_result, url_log)
            if not article_list:
                self.channel.send(SuccessMessage(link=link))
                return LinkOutcome(link=link, status="success")

            # New articles must be computed before the sync mutates docs in place.
            # New comparison values therefore only take effect next cycle.
            result = LinkLogic(article_list, feeds).run(docs)
            new_articles = result.new_articles

            await self.sync_database(article_list, docs, feeds, link)

            # Articles go out last so a failed sync cannot cause repeats next cycle
            if self.should_send_articles():
                if url_log:
                    url_log.info("Sending article status for %d articles", len(new_articles))
                await self.send_articles(new_articles)

            self.channel.send(
                SuccessMessage(
                    link=link,
                    memory_collection=docs if self.databaseless else None,
                )
            )
            return LinkOutcome(link=link, status="success", new_articles=len(new_articles))

        except Exception as err:
            kind = classify_error(err)
            if url_log:
                url_log.info("Sending failed status")
            self.channel.send(FailedMessage(link=link, rss_list=feeds, error_kind=kind))

            if kind.expected:
                if self.config.log.link_errors:
                    self.log.warning("Skipping %s: %s", link, err)
            else:
                self.log.error("Cycle logic failed for %s", link, exc_info=err)

            return LinkOutcome(link=link, status="failed", error_kind=kind, error=str(err))
