"""Database management for feedcycle."""

from .articles import ArticleStorage
from .connection import get_connection, get_connection_pool, open_async_pool
from .feeds import FeedManager
from .init import init_database, setup_article_tables, validate_connection
from .schedules import AssignedScheduleManager, ScheduleManager
from .supporters import SupporterManager

__all__ = [
    "ArticleStorage",
    "AssignedScheduleManager",
    "FeedManager",
    "ScheduleManager",
    "SupporterManager",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "open_async_pool",
    "setup_article_tables",
    "validate_connection",
]
