"""Feed subscription management in database."""

from typing import Dict, List, Optional

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..models import Feed

UPSERT_FEED_SQL = """
INSERT INTO feeds (id, title, channel, url, guild, disabled, ncomparisons, pcomparisons, webhook)
VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
ON CONFLICT (id) DO UPDATE SET
    title = EXCLUDED.title,
    channel = EXCLUDED.channel,
    url = EXCLUDED.url,
    guild = EXCLUDED.guild,
    disabled = EXCLUDED.disabled,
    ncomparisons = EXCLUDED.ncomparisons,
    pcomparisons = EXCLUDED.pcomparisons,
    webhook = EXCLUDED.webhook
"""


class FeedManager:
    """Manage feed subscriptions in database."""

    def _params(self, feed: Feed) -> tuple:
        return (
            feed.id,
            feed.title,
            feed.channel,
            feed.url,
            feed.guild,
            feed.disabled,
            Jsonb(feed.ncomparisons),
            Jsonb(feed.pcomparisons),
            Jsonb(feed.webhook.model_dump()) if feed.webhook else None,
        )

    def _to_feed(self, row: Dict) -> Feed:
        return Feed(**{k: v for k, v in row.items() if v is not None})

    def sync_feeds(self, conn: Connection, feeds: List[Feed]) -> int:
        """Upsert feeds from config into the database.

        Returns:
            Number of feeds written
        """
        with conn.cursor() as cur:
            for feed in feeds:
                cur.execute(UPSERT_FEED_SQL, self._params(feed))
        conn.commit()
        return len(feeds)

    def save_feed(self, conn: Connection, feed: Feed) -> None:
        """Persist a feed, including its enabled/disabled state."""
        with conn.cursor() as cur:
            cur.execute(UPSERT_FEED_SQL, self._params(feed))
        conn.commit()

    def get_feed(self, conn: Connection, feed_id: str) -> Optional[Feed]:
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM feeds WHERE id = %s", (feed_id,))
            row = cur.fetchone()
        return self._to_feed(row) if row else None

    def delete_feed(self, conn: Connection, feed: Feed) -> None:
        """Delete a feed with its schedule assignments.

        Stored articles for the URL are dropped once no other feed polls it.
        """
        with conn.cursor() as cur:
            cur.execute("DELETE FROM assigned_schedules WHERE feed = %s", (feed.id,))
            cur.execute("DELETE FROM feeds WHERE id = %s", (feed.id,))
            cur.execute("SELECT COUNT(*) AS remaining FROM feeds WHERE url = %s", (feed.url,))
            if cur.fetchone()["remaining"] == 0:
                cur.execute("DELETE FROM articles WHERE feed_url = %s", (feed.url,))
        conn.commit()
