"""Database initialization and schema management."""

import logging
from typing import Any, Dict

from psycopg.errors import DatabaseError
from psycopg_pool import AsyncConnectionPool

from .connection import get_connection

logger = logging.getLogger(__name__)


# Tables a worker writes to; safe to run on every worker start
ARTICLE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS articles (
    feed_url TEXT NOT NULL,
    article_id TEXT NOT NULL,
    schedule_name TEXT NOT NULL,
    properties JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (schedule_name, feed_url, article_id)
);

CREATE TABLE IF NOT EXISTS pending_articles (
    id SERIAL PRIMARY KEY,
    schedule_name TEXT NOT NULL,
    feed_id TEXT NOT NULL,
    article JSONB NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_pending_articles_schedule_name ON pending_articles(schedule_name);
"""


SCHEMA_SQL = ARTICLE_SCHEMA_SQL + """
-- Feed subscriptions
CREATE TABLE IF NOT EXISTS feeds (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    channel TEXT NOT NULL,
    url TEXT NOT NULL,
    guild TEXT NOT NULL,
    disabled TEXT,
    ncomparisons JSONB NOT NULL DEFAULT '[]'::jsonb,
    pcomparisons JSONB NOT NULL DEFAULT '[]'::jsonb,
    webhook JSONB,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Polling schedules
CREATE TABLE IF NOT EXISTS schedules (
    name TEXT PRIMARY KEY,
    refresh_minutes REAL NOT NULL DEFAULT 10,
    keywords JSONB NOT NULL DEFAULT '[]'::jsonb,
    feeds JSONB NOT NULL DEFAULT '[]'::jsonb,
    position INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Resolved feed/shard to schedule bindings
CREATE TABLE IF NOT EXISTS assigned_schedules (
    feed TEXT NOT NULL,
    shard INTEGER NOT NULL,
    schedule TEXT NOT NULL,
    url TEXT NOT NULL,
    guild TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (feed, shard)
);

-- Supporter guilds
CREATE TABLE IF NOT EXISTS supporters (
    guild TEXT PRIMARY KEY,
    expire_at TIMESTAMPTZ,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_feeds_url ON feeds(url);
CREATE INDEX IF NOT EXISTS idx_assigned_schedules_schedule ON assigned_schedules(schedule);

-- Update trigger function
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ language 'plpgsql';

CREATE OR REPLACE TRIGGER update_articles_updated_at BEFORE UPDATE ON articles
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_feeds_updated_at BEFORE UPDATE ON feeds
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_schedules_updated_at BEFORE UPDATE ON schedules
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_supporters_updated_at BEFORE UPDATE ON supporters
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
                conn.commit()
                logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise


async def setup_article_tables(pool: AsyncConnectionPool) -> None:
    """Ensure the tables a worker touches exist."""
    async with pool.connection() as conn:
        await conn.execute(ARTICLE_SCHEMA_SQL)
