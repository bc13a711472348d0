"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(True, description="Disable to run databaseless (in-memory collections)")
    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("feedcycle", description="Database name")
    user: str = Field("feedcycle_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class FeedsConfig(BaseModel):
    """Feed retrieval and delivery settings."""

    model_config = ConfigDict(frozen=True)

    send_first_cycle: bool = Field(True, description="Deliver new articles on the first cycle")
    timeout: float = Field(15.0, description="Request timeout in seconds", gt=0)
    user_agent: str = Field("feedcycle/0.1", description="User-Agent header for feed requests")
    batch_size: int = Field(50, description="Links per worker batch", ge=1)
    failure_limit: int = Field(5, description="Consecutive failures before a feed is disabled", ge=1)


class LogConfig(BaseModel):
    """Logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field("INFO", description="Root log level")
    link_errors: bool = Field(True, description="Log expected fetch/parse errors per link")


class SupporterScheduleConfig(BaseModel):
    """The polling schedule reserved for supporter guilds."""

    model_config = ConfigDict(frozen=True)

    name: str = Field("supporter", description="Schedule name")
    refresh_minutes: float = Field(2.0, description="Refresh rate in minutes", gt=0)


class SupporterConfig(BaseModel):
    """Supporter tier settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(False, description="Whether supporter schedules are assigned")
    schedule: SupporterScheduleConfig = Field(default_factory=SupporterScheduleConfig)
    excluded_domains: List[str] = Field(
        default_factory=lambda: ["feed43.com"],
        description="URL domains that always stay on the default schedule",
    )
    guilds: List[str] = Field(
        default_factory=list,
        description="Supporter guilds used when no database is configured",
    )


class ConfigModel(BaseModel):
    """Main configuration model."""

    model_config = ConfigDict(frozen=True)

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    feeds: FeedsConfig = Field(default_factory=FeedsConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    supporter: SupporterConfig = Field(default_factory=SupporterConfig)


class ScheduleConfig(BaseModel):
    """Schedule definition from schedules.yaml."""

    name: str = Field(..., description="Schedule name")
    refresh_minutes: float = Field(10.0, description="Refresh rate in minutes", gt=0)
    keywords: List[str] = Field(default_factory=list, description="Keywords matched against feed URLs")
    feeds: List[str] = Field(default_factory=list, description="Feed ids always owned by this schedule")
