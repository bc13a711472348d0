"""Stored article documents and staged pending articles."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .base import DBModel


class CachedValidators(BaseModel):
    """Conditional-fetch validators cached for a link.

    Both values are expected together. A half-present pair is kept as-is so the
    pipeline can reject it before any request is made.
    """

    last_modified: Optional[str] = Field(None, description="Last-Modified header value")
    etag: Optional[str] = Field(None, description="ETag header value")

    @property
    def complete(self) -> bool:
        return bool(self.last_modified) and bool(self.etag)


class StoredDocument(DBModel):
    """A previously seen article for a link."""

    id: str = Field(..., description="Article identifier")
    feed_url: str = Field(..., description="Link the article was parsed from")
    schedule_name: Optional[str] = Field(None, description="Schedule that stored the document")
    properties: Dict[str, str] = Field(
        default_factory=dict,
        description="Comparison values keyed by comparison key",
    )


class PendingArticle(DBModel):
    """An article staged before delivery is confirmed."""

    id: Optional[str] = Field(None, description="Staging id, absent when staging failed")
    feed_id: str = Field(..., description="Feed subscription the article is for")
    schedule_name: Optional[str] = Field(None, description="Schedule whose cycle staged the article")
    article: Dict[str, Any] = Field(..., description="Serialized article record")

