"""Worker process entry point: runs one batch job and reports over a pipe."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..db import ArticleStorage, open_async_pool, setup_article_tables
from ..ingestion import FeedFetcher, FeedParser
from ..log import configure_logging, create_logger
from .messages import MessageChannel, PipeChannel
from .models import BatchJob, LinkOutcome
from .processor import BatchProcessor


async def process_job(
    job: BatchJob,
    channel: MessageChannel,
    log: Optional[logging.Logger] = None,
    fetcher: Optional[FeedFetcher] = None,
    parser: Optional[FeedParser] = None,
) -> List[LinkOutcome]:
    """Set up storage for the job and process its batch.

    Store connection and document loading errors are not contained; they abort
    the whole batch.
    """
    log = log or create_logger(job.schedule_name)
    pool = None
    if job.config.postgres.enabled:
        pool = await open_async_pool(job.config.postgres.model_dump())
    elif job.memory_collections is None:
        job = job.model_copy(update={"memory_collections": {}})

    try:
        if pool is not None:
            await setup_article_tables(pool)
        storage = ArticleStorage(pool)
        processor = BatchProcessor(job, channel, storage, fetcher=fetcher, parser=parser, log=log)
        outcomes = await processor.run()
    finally:
        if pool is not None:
            await pool.close()

    failed = sum(1 for o in outcomes if o.status == "failed")
    log.info("Processed %d links (%d failed)", len(outcomes), failed)
    return outcomes


def run_worker(conn: Any, payload: Dict[str, Any]) -> None:
    """Target for a worker process. Exits non-zero when the batch aborts."""
    job = BatchJob.model_validate(payload)
    configure_logging(job.config.log.level)
    log = create_logger(job.schedule_name)
    channel = PipeChannel(conn)

    try:
        asyncio.run(process_job(job, channel, log))
    except Exception:
        log.exception("Batch for schedule %s aborted", job.schedule_name)
        raise SystemExit(1)
    finally:
        channel.close()
