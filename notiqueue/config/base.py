# -*- coding: utf-8 -*-
"""
Base Settings
=============
Base configuration class for the notification controller.

All settings can be overridden via environment variables prefixed with
``NOTIFICATION_`` (e.g. ``NOTIFICATION_MAX_CONCURRENT=3``) or a ``.env`` file.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models import DisplayMode


class NotificationSettings(BaseSettings):
    """
    Base settings shared by every profile.

    Durations are in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROFILE: str = "base"

    # Display
    MODE: DisplayMode = DisplayMode.QUEUE
    MAX_CONCURRENT: int = Field(default=1, ge=1)

    # Duration presets
    SHORT_DURATION: float = Field(default=4.0, ge=0)
    LONG_DURATION: float = Field(default=10.0, ge=0)

    # dismiss_all()/shutdown() policy for records that were never displayed
    NOTIFY_PENDING_ON_CLEAR: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "readable"

    def is_stack(self) -> bool:
        """Check if the profile evicts instead of queueing."""
        return self.MODE == DisplayMode.STACK

    def json_logging(self) -> bool:
        """Check if logs should be emitted as JSON."""
        return self.LOG_FORMAT.lower() == "json"
