"""Batch pipeline, worker processes and their message protocol."""

from .messages import (
    CollectingChannel,
    FailedMessage,
    HeadersMessage,
    MessageChannel,
    PendingArticleMessage,
    PipeChannel,
    SuccessMessage,
    decode_message,
    encode_message,
)
from .models import BatchJob, LinkOutcome
from .orchestrator import CycleOrchestrator, CycleReport, build_batches
from .processor import BatchProcessor
from .sync import SyncMeta, get_inserts_and_updates, union_comparison_keys
from .worker import process_job, run_worker

__all__ = [
    "BatchJob",
    "BatchProcessor",
    "CollectingChannel",
    "CycleOrchestrator",
    "CycleReport",
    "FailedMessage",
    "HeadersMessage",
    "LinkOutcome",
    "MessageChannel",
    "PendingArticleMessage",
    "PipeChannel",
    "SuccessMessage",
    "SyncMeta",
    "build_batches",
    "decode_message",
    "encode_message",
    "get_inserts_and_updates",
    "process_job",
    "run_worker",
    "union_comparison_keys",
]
