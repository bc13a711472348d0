"""Messages a worker sends to the orchestrator, and the channels carrying them."""

from abc import ABC, abstractmethod
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..errors import ErrorKind
from ..models import Feed, PendingArticle, StoredDocument


class HeadersMessage(BaseModel):
    """Fresh validators to cache for the link's next cycle."""

    status: Literal["headers"] = "headers"
    link: str
    last_modified: str
    etag: str


class PendingArticleMessage(BaseModel):
    """One article staged (or attempted) for delivery."""

    status: Literal["pendingArticle"] = "pendingArticle"
    pending_article: Optional[PendingArticle] = None


class SuccessMessage(BaseModel):
    """The link was processed cleanly."""

    status: Literal["success"] = "success"
    link: str
    memory_collection: Optional[List[StoredDocument]] = Field(
        None, description="Post-sync documents, only in databaseless mode"
    )


class FailedMessage(BaseModel):
    """Processing the link was aborted this cycle."""

    status: Literal["failed"] = "failed"
    link: str
    rss_list: List[Feed] = Field(default_factory=list)
    error_kind: ErrorKind = ErrorKind.UNEXPECTED


WorkerMessage = Annotated[
    Union[HeadersMessage, PendingArticleMessage, SuccessMessage, FailedMessage],
    Field(discriminator="status"),
]

_message_adapter = TypeAdapter(WorkerMessage)

M = TypeVar("M", bound=BaseModel)


def encode_message(message: BaseModel) -> Dict[str, Any]:
    return message.model_dump(mode="json")


def decode_message(data: Dict[str, Any]) -> BaseModel:
    return _message_adapter.validate_python(data)


class MessageChannel(ABC):
    """Worker side of the worker to orchestrator boundary."""

    @abstractmethod
    def send(self, message: BaseModel) -> None:
        ...

    def close(self) -> None:
        pass


class PipeChannel(MessageChannel):
    """Sends encoded messages over a multiprocessing connection."""

    def __init__(self, conn: Any) -> None:
        self.conn = conn

    def send(self, message: BaseModel) -> None:
        self.conn.send(encode_message(message))

    def close(self) -> None:
        self.conn.close()


class CollectingChannel(MessageChannel):
    """Keeps messages in order, for in-process runs and tests."""

    def __init__(self) -> None:
        self.messages: List[BaseModel] = []

    def send(self, message: BaseModel) -> None:
        # Round-trip so receivers see exactly what crosses a pipe
        self.messages.append(decode_message(encode_message(message)))

    def of_type(self, message_type: Type[M]) -> List[M]:
        return [m for m in self.messages if isinstance(m, message_type)]
