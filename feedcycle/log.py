"""Logging setup shared by the CLI, orchestrator and worker processes."""

import logging
from typing import Any, MutableMapping, Tuple

from rich.logging import RichHandler

ROOT_LOGGER = "feedcycle"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a rich handler to the package logger once per process."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def create_logger(marker: str) -> logging.Logger:
    """Logger for one worker, named after its schedule."""
    return logging.getLogger(f"{ROOT_LOGGER}.{marker}")


class UrlLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every record with the link being processed."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['url']}] {msg}", kwargs


def url_logger(log: logging.Logger, url: str) -> UrlLoggerAdapter:
    return UrlLoggerAdapter(log, {"url": url})
