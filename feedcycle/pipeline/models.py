"""Batch job input and per-link outcomes."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..config.models import ConfigModel
from ..errors import ErrorKind
from ..models import DEFAULT_SCHEDULE, CachedValidators, Feed, StoredDocument


class BatchJob(BaseModel):
    """One cycle's unit of work for one worker."""

    current_batch: Dict[str, List[Feed]] = Field(..., description="Link to the feeds sharing it")
    debug_urls: List[str] = Field(default_factory=list, description="Links to log verbosely")
    schedule_name: str = Field(DEFAULT_SCHEDULE, description="Schedule this batch belongs to")
    run_num: int = Field(0, description="Cycle index, 0 for the first cycle", ge=0)
    headers: Dict[str, CachedValidators] = Field(
        default_factory=dict, description="Cached validators per link"
    )
    memory_collections: Optional[Dict[str, List[StoredDocument]]] = Field(
        None, description="Stored documents per link when running databaseless"
    )
    config: ConfigModel = Field(default_factory=ConfigModel)

    @property
    def databaseless(self) -> bool:
        return self.memory_collections is not None


class LinkOutcome(BaseModel):
    """How one link settled within a batch."""

    link: str
    status: str = Field(..., description="success or failed")
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    new_articles: int = 0
