"""Configuration loader."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..models import Feed, Schedule
from .models import ConfigModel, ScheduleConfig

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize config manager."""
        if config_path is None:
            config_path = Path.home() / ".config" / "feedcycle" / "config.yaml"
        self.config_path = config_path
        self._config: Optional[ConfigModel] = None

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def feeds_path(self) -> Path:
        return self.config_path.parent / "feeds.yaml"

    @property
    def schedules_path(self) -> Path:
        return self.config_path.parent / "schedules.yaml"

    @property
    def databaseless(self) -> bool:
        return not self.config.postgres.enabled

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()

        # Handle password from environment if specified
        if db_config.get("password_env"):
            password = os.environ.get(db_config["password_env"])
            if password:
                db_config["password"] = password

        return db_config


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def load_feeds(feeds_path: Path) -> List[Feed]:
    """Load feed subscriptions from YAML file."""
    if not feeds_path.exists():
        raise FileNotFoundError(f"Feeds file not found: {feeds_path}")

    try:
        with open(feeds_path) as f:
            feeds_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in feeds file: {e}")

    if feeds_data is None or "feeds" not in feeds_data:
        return []

    feeds = []
    for feed_data in feeds_data["feeds"]:
        try:
            feeds.append(Feed(**feed_data))
        except ValidationError as e:
            logger.warning("Skipping invalid feed %s: %s", feed_data.get("id", "unknown"), e)

    return feeds


def load_schedules(schedules_path: Path) -> List[Schedule]:
    """Load schedule definitions from YAML file.

    A missing file means only the implicit default schedule exists.
    """
    if not schedules_path.exists():
        return []

    try:
        with open(schedules_path) as f:
            schedules_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in schedules file: {e}")

    if schedules_data is None or "schedules" not in schedules_data:
        return []

    schedules = []
    for schedule_data in schedules_data["schedules"]:
        try:
            schedule = ScheduleConfig(**schedule_data)
        except ValidationError as e:
            logger.warning("Skipping invalid schedule %s: %s", schedule_data.get("name", "unknown"), e)
            continue
        schedules.append(Schedule(**schedule.model_dump()))

    return schedules


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def save_feeds(feeds: List[Feed], feeds_path: Path) -> None:
    """Save feed subscriptions to YAML file."""
    feeds_path.parent.mkdir(parents=True, exist_ok=True)

    feeds_data = {
        "feeds": [f.model_dump(exclude={"created_at", "updated_at"}, exclude_none=True) for f in feeds]
    }

    with open(feeds_path, "w") as f:
        yaml.dump(feeds_data, f, default_flow_style=False, sort_keys=False)


def save_schedules(schedules: List[Schedule], schedules_path: Path) -> None:
    """Save schedule definitions to YAML file."""
    schedules_path.parent.mkdir(parents=True, exist_ok=True)

    schedules_data = {"schedules": [s.model_dump() for s in schedules]}

    with open(schedules_path, "w") as f:
        yaml.dump(schedules_data, f, default_flow_style=False, sort_keys=False)
