"""In-memory registries used when no database is configured."""

from typing import Any, Dict, List, Optional, Tuple

from ..models import AssignedSchedule, Schedule


class MemoryAssignedSchedules:
    """Assigned-schedule records held in a dict keyed by (feed, shard).

    Mirrors AssignedScheduleManager so the assigner can use either.
    """

    def __init__(self, records: Optional[List[AssignedSchedule]] = None) -> None:
        self.records: Dict[Tuple[str, int], AssignedSchedule] = {}
        for record in records or []:
            self.records[(record.feed, record.shard)] = record

    def get_by_feed_and_shard(self, conn: Any, feed_id: str, shard: int) -> Optional[AssignedSchedule]:
        return self.records.get((feed_id, shard))

    def get_by_schedule(self, conn: Any, schedule_name: str, shard: int) -> List[AssignedSchedule]:
        return sorted(
            (r for r in self.records.values() if r.schedule == schedule_name and r.shard == shard),
            key=lambda r: r.feed,
        )

    def save(self, conn: Any, record: AssignedSchedule) -> None:
        self.records.setdefault((record.feed, record.shard), record)

    def delete(self, conn: Any, record: AssignedSchedule) -> None:
        self.records.pop((record.feed, record.shard), None)


class StaticScheduleRegistry:
    """Schedules loaded from schedules.yaml."""

    def __init__(self, schedules: List[Schedule]) -> None:
        self.schedules = list(schedules)

    def get_all(self, conn: Any) -> List[Schedule]:
        return list(self.schedules)


class StaticSupporterRegistry:
    """Supporter guilds listed in the config file."""

    def __init__(self, guilds: List[str]) -> None:
        self.guilds = list(guilds)

    def get_valid_guilds(self, conn: Any) -> List[str]:
        return list(self.guilds)
