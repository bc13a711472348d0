"""Feed fetching, parsing and new-article detection."""

from .fetcher import FeedFetcher
from .link_logic import LinkLogic
from .models import Article, FetchResult, LinkLogicResult, NewArticle
from .parser import FeedParser

__all__ = [
    "Article",
    "FeedFetcher",
    "FeedParser",
    "FetchResult",
    "LinkLogic",
    "LinkLogicResult",
    "NewArticle",
]
