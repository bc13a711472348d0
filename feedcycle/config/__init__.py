"""Configuration management for feedcycle."""

from .loader import (
    Config,
    load_config,
    load_feeds,
    load_schedules,
    save_config,
    save_feeds,
    save_schedules,
)
from .models import (
    ConfigModel,
    FeedsConfig,
    LogConfig,
    PostgresConfig,
    ScheduleConfig,
    SupporterConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "FeedsConfig",
    "LogConfig",
    "PostgresConfig",
    "ScheduleConfig",
    "SupporterConfig",
    "load_config",
    "load_feeds",
    "load_schedules",
    "save_config",
    "save_feeds",
    "save_schedules",
]
