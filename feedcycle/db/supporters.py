"""Supporter guild management in database."""

from typing import List, Optional

import pendulum
from psycopg import Connection


class SupporterManager:
    """Manage supporter guilds in database."""

    def add_supporter(
        self,
        conn: Connection,
        guild: str,
        expire_at: Optional[pendulum.DateTime] = None,
    ) -> None:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO supporters (guild, expire_at)
                VALUES (%s, %s)
                ON CONFLICT (guild) DO UPDATE SET expire_at = EXCLUDED.expire_at
                """,
                (guild, expire_at),
            )
        conn.commit()

    def get_valid_guilds(self, conn: Connection) -> List[str]:
        """Guilds whose supporter status has not expired."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT guild FROM supporters
                WHERE expire_at IS NULL OR expire_at > %s
                ORDER BY guild
                """,
                (pendulum.now("UTC"),),
            )
            return [row["guild"] for row in cur.fetchall()]
