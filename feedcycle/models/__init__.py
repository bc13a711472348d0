"""Data models for feedcycle."""

from .article import CachedValidators, PendingArticle, StoredDocument
from .feed import Feed, Webhook
from .schedule import DEFAULT_SCHEDULE, AssignedSchedule, Schedule

__all__ = [
    "AssignedSchedule",
    "CachedValidators",
    "DEFAULT_SCHEDULE",
    "Feed",
    "PendingArticle",
    "Schedule",
    "StoredDocument",
    "Webhook",
]
