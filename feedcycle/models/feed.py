"""Feed subscription model."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .base import DBModel

DEFAULT_DISABLE_REASON = "No reason specified"


class Webhook(BaseModel):
    """Delivery target descriptor."""

    id: str = Field(..., description="Webhook id")
    name: Optional[str] = Field(None, description="Display name override")
    avatar: Optional[str] = Field(None, description="Avatar URL override")


class Feed(DBModel):
    """One feed monitored for one guild."""

    id: str = Field(..., description="Stable feed identifier")
    title: str = Field(..., description="Feed title")
    channel: str = Field(..., description="Delivery channel id")
    url: str = Field(..., description="Feed URL")
    guild: str = Field(..., description="Owning guild id")
    disabled: Optional[str] = Field(None, description="Reason the feed is disabled")
    ncomparisons: List[str] = Field(default_factory=list, description="Negative comparison keys")
    pcomparisons: List[str] = Field(default_factory=list, description="Positive comparison keys")
    webhook: Optional[Webhook] = Field(None, description="Optional delivery target")

    @property
    def is_enabled(self) -> bool:
        return self.disabled is None

    def enable(self) -> None:
        """Clear the disabled reason."""
        self.disabled = None

    def disable(self, reason: Optional[str] = None) -> None:
        """Mark the feed disabled with a reason."""
        self.disabled = reason or DEFAULT_DISABLE_REASON
