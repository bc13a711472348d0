"""Feed parser turning raw bytes into article records."""

import asyncio
import hashlib
from typing import Any, List, Optional

import feedparser
import pendulum

from ..errors import ErrorKind, LinkProcessingError
from .models import Article

KNOWN_FIELDS = {"id", "guid", "title", "link", "summary", "description", "author", "published", "updated"}


class FeedParser:
    """Parse RSS/Atom documents with feedparser."""

    def parse(self, content: bytes, url: str, charset: Optional[str] = None) -> List[Article]:
        """Parse a feed body. An empty list is a valid result.

        No base URL is passed, so guids that are not URLs stay as published.
        """
        response_headers = {}
        if charset:
            response_headers["content-type"] = f"application/xml; charset={charset}"

        feed = feedparser.parse(content, response_headers=response_headers)

        if feed.bozo and not feed.entries and not feed.get("version"):
            raise LinkProcessingError(
                ErrorKind.PARSE, f"Not a valid feed: {feed.get('bozo_exception')}", url
            )

        return [self._extract_article(entry) for entry in feed.entries]

    async def parse_async(self, content: bytes, url: str, charset: Optional[str] = None) -> List[Article]:
        """Parse off the event loop so sibling links keep running."""
        return await asyncio.to_thread(self.parse, content, url, charset)

    def _extract_article(self, entry: Any) -> Article:
        title = (entry.get("title") or "").strip() or None
        link = (entry.get("link") or "").strip() or None
        guid = (entry.get("id") or "").strip() or None

        published = self._published(entry)

        description = entry.get("summary") or entry.get("description")

        extra = {}
        for key, value in entry.items():
            if key in KNOWN_FIELDS or not isinstance(value, str):
                continue
            extra[key] = value

        return Article(
            id=guid or link or self._content_hash(title, published),
            title=title,
            link=link,
            description=description,
            author=entry.get("author"),
            published=published,
            guid=guid,
            extra=extra,
        )

    def _published(self, entry: Any) -> Optional[str]:
        parsed = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed:
            return pendulum.datetime(*parsed[:6], tz="UTC").to_iso8601_string()
        return entry.get("published") or entry.get("updated")

    def _content_hash(self, title: Optional[str], published: Optional[str]) -> str:
        unique_id = f"{title or ''}|{published or ''}"
        return hashlib.sha256(unique_id.encode("utf-8")).hexdigest()
