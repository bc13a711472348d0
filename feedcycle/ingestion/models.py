"""Data models for ingestion."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import CachedValidators, Feed


class Article(BaseModel):
    """Normalized article parsed from a feed."""

    id: str = Field(..., description="Article identifier (guid, link or content hash)")
    title: Optional[str] = Field(None, description="Article title")
    link: Optional[str] = Field(None, description="Article URL")
    description: Optional[str] = Field(None, description="Article description/summary")
    author: Optional[str] = Field(None, description="Article author")
    published: Optional[str] = Field(None, description="Publication date, ISO 8601 when parseable")
    guid: Optional[str] = Field(None, description="Raw entry guid")
    extra: Dict[str, str] = Field(default_factory=dict, description="Other string-valued entry fields")

    def get_field(self, key: str) -> Optional[str]:
        """Value of a comparison key, or None when the article has none."""
        if key in self.extra:
            value = self.extra[key]
        else:
            value = getattr(self, key, None)
        if value is None or isinstance(value, dict):
            return None
        value = str(value).strip()
        return value or None


class FetchResult(BaseModel):
    """Result of a conditional feed request."""

    url: str = Field(..., description="Requested URL")
    not_modified: bool = Field(False, description="Server answered 304")
    status_code: int = Field(..., description="HTTP status code")
    content: bytes = Field(b"", description="Raw response body")
    charset: Optional[str] = Field(None, description="Charset declared by the response")
    validators: Optional[CachedValidators] = Field(
        None, description="Fresh Last-Modified/ETag pair, only when both were sent"
    )


class NewArticle(BaseModel):
    """An article considered new for one feed subscription."""

    article: Article
    feed: Feed


class LinkLogicResult(BaseModel):
    """Output of the dedup step for one link."""

    new_articles: List[NewArticle] = Field(default_factory=list)
