"""Database connection management."""

import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, ConnectionPool


class DatabaseConfig:
    """Connection settings taken from the `postgres` config section."""

    def __init__(self, config: Dict[str, Any]) -> None:
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "feedcycle")
        self.user = config.get("user", "feedcycle_user")

        # An environment password wins over one written in config.yaml
        password_env = config.get("password_env")
        if password_env and os.environ.get(password_env):
            self.password = os.environ[password_env]
        else:
            self.password = config.get("password") or ""

    @property
    def conninfo(self) -> str:
        """libpq connection string, quoting the password as needed."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
        )


# One pool per process; workers open their own async pool instead
_sync_pool: Optional[ConnectionPool] = None


def get_connection_pool(config: Dict[str, Any]) -> ConnectionPool:
    global _sync_pool
    if _sync_pool is None:
        _sync_pool = ConnectionPool(
            DatabaseConfig(config).conninfo,
            min_size=1,
            max_size=4,
            kwargs={"row_factory": dict_row},
        )
    return _sync_pool


@contextmanager
def get_connection(config: Dict[str, Any]) -> Generator[psycopg.Connection, None, None]:
    """Borrow a connection for CLI and assignment work."""
    with get_connection_pool(config).connection() as conn:
        yield conn


async def open_async_pool(config: Dict[str, Any], max_size: int = 10) -> AsyncConnectionPool:
    """Open an autocommit pool for a worker's concurrent link pipelines.

    Raises if no connection can be made, which aborts the whole batch.
    """
    pool = AsyncConnectionPool(
        DatabaseConfig(config).conninfo,
        min_size=1,
        max_size=max_size,
        kwargs={"row_factory": dict_row, "autocommit": True},
        open=False,
    )
    await pool.open(wait=True)
    return pool
