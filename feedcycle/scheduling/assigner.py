"""Schedule assignment for feed subscriptions."""

import logging
from typing import Any, List, Optional
from urllib.parse import urlparse

from ..config.models import SupporterConfig
from ..db.schedules import AssignedScheduleManager, ScheduleManager
from ..db.supporters import SupporterManager
from ..models import DEFAULT_SCHEDULE, AssignedSchedule, Feed, Schedule

logger = logging.getLogger(__name__)


class ScheduleAssigner:
    """Decide and record which schedule polls each feed on a shard.

    Priority, highest first:
      1. an existing assignment for (feed, shard) means no decision is made
      2. the first schedule listing the feed id or a keyword found in its URL
      3. the supporter schedule, for supporter guilds outside excluded domains
      4. the default schedule
    """

    def __init__(
        self,
        supporter_config: SupporterConfig,
        conn: Any = None,
        assignments: Any = None,
        schedules: Any = None,
        supporters: Any = None,
    ) -> None:
        self.supporter_config = supporter_config
        self.conn = conn
        self.assignments = assignments or AssignedScheduleManager()
        self.schedule_registry = schedules or ScheduleManager()
        self.supporter_registry = supporters or SupporterManager()

    def is_excluded_domain(self, url: str) -> bool:
        """Whether the URL belongs to a domain pinned to the default schedule."""
        host = (urlparse(url).hostname or "").lower()
        for domain in self.supporter_config.excluded_domains:
            domain = domain.lower()
            if host == domain or host.endswith("." + domain):
                return True
        return False

    def determine_schedule(
        self,
        feed: Feed,
        shard_id: int,
        supporter_guilds: Optional[List[str]] = None,
        schedules: Optional[List[Schedule]] = None,
    ) -> Optional[str]:
        """Schedule name for the feed, or None when one is already assigned."""
        if self.assignments.get_by_feed_and_shard(self.conn, feed.id, shard_id):
            return None

        if supporter_guilds is None:
            supporter_guilds = self.supporter_registry.get_valid_guilds(self.conn)
        if schedules is None:
            schedules = self.schedule_registry.get_all(self.conn)

        for schedule in schedules:
            if schedule.owns(feed.id, feed.url):
                return schedule.name

        if (
            self.supporter_config.enabled
            and feed.guild in supporter_guilds
            and not self.is_excluded_domain(feed.url)
        ):
            return self.supporter_config.schedule.name

        return DEFAULT_SCHEDULE

    def assign_schedule(
        self,
        feed: Feed,
        shard_id: int,
        supporter_guilds: Optional[List[str]] = None,
        schedules: Optional[List[Schedule]] = None,
    ) -> Optional[str]:
        """Determine and save a schedule for the feed if none is assigned yet."""
        schedule_name = self.determine_schedule(feed, shard_id, supporter_guilds, schedules)
        if not schedule_name:
            return None

        record = AssignedSchedule(
            feed=feed.id,
            schedule=schedule_name,
            url=feed.url,
            guild=feed.guild,
            shard=shard_id,
        )
        self.assignments.save(self.conn, record)
        logger.debug("Assigned feed %s on shard %s to schedule %s", feed.id, shard_id, schedule_name)
        return schedule_name

    def remove_schedule(self, feed: Feed, shard_id: int) -> None:
        """Delete the feed's assignment on the shard; a missing one is fine."""
        record = self.assignments.get_by_feed_and_shard(self.conn, feed.id, shard_id)
        if record:
            self.assignments.delete(self.conn, record)

    def reassign_schedule(
        self,
        feed: Feed,
        shard_id: int,
        supporter_guilds: Optional[List[str]] = None,
        schedules: Optional[List[Schedule]] = None,
    ) -> Optional[str]:
        """Recompute the feed's schedule from scratch."""
        self.remove_schedule(feed, shard_id)
        return self.assign_schedule(feed, shard_id, supporter_guilds, schedules)
