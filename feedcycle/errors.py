"""Error kinds carried through the per-link pipeline."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of a failed link."""

    CONFIG = "config"
    FETCH = "fetch"
    PARSE = "parse"
    UNEXPECTED = "unexpected"

    @property
    def expected(self) -> bool:
        """Fetch and parse errors are routine per-link failures."""
        return self in (ErrorKind.FETCH, ErrorKind.PARSE)


class LinkProcessingError(Exception):
    """Raised by collaborators when a link cannot be processed this cycle."""

    def __init__(self, kind: ErrorKind, message: str, link: Optional[str] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.link = link

    def __str__(self) -> str:
        message = super().__str__()
        if self.link:
            return f"{message} ({self.link})"
        return message


def classify_error(error: BaseException) -> ErrorKind:
    if isinstance(error, LinkProcessingError):
        return error.kind
    return ErrorKind.UNEXPECTED
