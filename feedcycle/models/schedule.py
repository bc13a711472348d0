"""Schedule and assigned-schedule models."""

from typing import List

from pydantic import BaseModel, Field

from .base import DBModel

DEFAULT_SCHEDULE = "default"


class Schedule(BaseModel):
    """A named polling cadence with explicit and keyword-based membership."""

    name: str = Field(..., description="Schedule name")
    refresh_minutes: float = Field(10.0, description="Refresh rate in minutes")
    keywords: List[str] = Field(default_factory=list, description="Keywords matched against feed URLs")
    feeds: List[str] = Field(default_factory=list, description="Feed ids this schedule always owns")

    def owns(self, feed_id: str, url: str) -> bool:
        """Whether the feed belongs here by explicit id or URL keyword."""
        if feed_id in self.feeds:
            return True
        return any(keyword in url for keyword in self.keywords)


class AssignedSchedule(DBModel):
    """Resolved binding of (feed, shard) to a schedule name."""

    feed: str = Field(..., description="Feed id")
    schedule: str = Field(..., description="Schedule name")
    url: str = Field(..., description="Feed URL at assignment time")
    guild: str = Field(..., description="Owning guild at assignment time")
    shard: int = Field(..., description="Shard id")
