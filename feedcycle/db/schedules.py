"""Schedule and assigned-schedule management in database."""

from typing import List, Optional

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..models import AssignedSchedule, Schedule


class ScheduleManager:
    """Manage schedule definitions in database."""

    def sync_schedules(self, conn: Connection, schedules: List[Schedule]) -> int:
        """Replace stored schedules with the configured ones, keeping their order."""
        with conn.cursor() as cur:
            cur.execute("DELETE FROM schedules")
            for position, schedule in enumerate(schedules):
                cur.execute(
                    """
                    INSERT INTO schedules (name, refresh_minutes, keywords, feeds, position)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (
                        schedule.name,
                        schedule.refresh_minutes,
                        Jsonb(schedule.keywords),
                        Jsonb(schedule.feeds),
                        position,
                    ),
                )
        conn.commit()
        return len(schedules)

    def get_all(self, conn: Connection) -> List[Schedule]:
        """Get all schedules in match order."""
        with conn.cursor() as cur:
            cur.execute(
                "SELECT name, refresh_minutes, keywords, feeds FROM schedules ORDER BY position"
            )
            return [Schedule(**row) for row in cur.fetchall()]


class AssignedScheduleManager:
    """Manage feed/shard to schedule bindings in database."""

    def get_by_feed_and_shard(
        self,
        conn: Connection,
        feed_id: str,
        shard: int,
    ) -> Optional[AssignedSchedule]:
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM assigned_schedules WHERE feed = %s AND shard = %s",
                (feed_id, shard),
            )
            row = cur.fetchone()
        return AssignedSchedule(**row) if row else None

    def get_by_schedule(
        self,
        conn: Connection,
        schedule_name: str,
        shard: int,
    ) -> List[AssignedSchedule]:
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM assigned_schedules WHERE schedule = %s AND shard = %s ORDER BY feed",
                (schedule_name, shard),
            )
            return [AssignedSchedule(**row) for row in cur.fetchall()]

    def save(self, conn: Connection, record: AssignedSchedule) -> None:
        """Insert a binding. An existing one for the same feed and shard wins."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO assigned_schedules (feed, shard, schedule, url, guild)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (feed, shard) DO NOTHING
                """,
                (record.feed, record.shard, record.schedule, record.url, record.guild),
            )
        conn.commit()

    def delete(self, conn: Connection, record: AssignedSchedule) -> None:
        with conn.cursor() as cur:
            cur.execute(
                "DELETE FROM assigned_schedules WHERE feed = %s AND shard = %s",
                (record.feed, record.shard),
            )
        conn.commit()
