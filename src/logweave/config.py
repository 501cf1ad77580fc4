"""
Logging Configuration.

Settings are read from ``LOGWEAVE_*`` environment variables (and ``.env``)
and only provide defaults for :func:`logweave.factory.create_logger`; explicit
arguments always win.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .transports.file import RotationPolicy
from .types import LogLevel

Environment = Literal["development", "testing", "staging", "production"]


class LogFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


class LoggingSettings(BaseSettings):
    """Logging infrastructure configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOGWEAVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    env: Environment = Field(default="development", description="Current environment")
    app_name: Optional[str] = Field(default=None, description="Application name added to the context")
    level: Optional[LogLevel] = Field(default=None, description="Minimum level; derived from env when unset")
    format: LogFormat = Field(default=LogFormat.TEXT, description="Console output format")
    colorize: Optional[bool] = Field(default=None, description="Colorize console output; derived from env when unset")
    file_path: Optional[str] = Field(default=None, description="Path for the file transport; unset disables it")
    file_format: LogFormat = Field(default=LogFormat.JSON, description="File output format")
    buffering: bool = Field(default=True, description="Buffer file writes")
    buffer_size: int = Field(default=100, gt=0, description="Entries per buffered flush")
    flush_interval: float = Field(default=5000, gt=0, description="Milliseconds between timed flushes")
    rotation_max_size: int = Field(default=10 * 1024 * 1024, gt=0, description="Bytes before rotation")
    rotation_max_days: float = Field(default=14, ge=0, description="Retention in days, 0 disables")
    rotation_max_files: int = Field(default=10, ge=0, description="Rotated generations to keep")

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: LogLevel | str | None) -> LogLevel | None:
        if v is None or v == "":
            return None
        return LogLevel.parse(v)

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    def rotation_policy(self) -> RotationPolicy:
        return RotationPolicy(
            max_size=self.rotation_max_size,
            max_days=self.rotation_max_days,
            max_files=self.rotation_max_files,
        )
