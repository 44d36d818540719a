# -*- coding: utf-8 -*-
"""
Profile Settings
================
Ready-made profiles matching the two host behaviours:

- snackbar: one slot, overflow waits in a FIFO queue (4s / 10s)
- toast: up to three stacked, overflow evicts the oldest (2s / 4s)
"""

from pydantic import Field

from ..models import DisplayMode
from .base import NotificationSettings


class SnackbarSettings(NotificationSettings):
    """
    Snackbar profile.

    Single message on screen; the rest are queued.
    """

    PROFILE: str = "snackbar"

    MODE: DisplayMode = DisplayMode.QUEUE
    MAX_CONCURRENT: int = Field(default=1, ge=1)

    SHORT_DURATION: float = Field(default=4.0, ge=0)
    LONG_DURATION: float = Field(default=10.0, ge=0)


class ToastSettings(NotificationSettings):
    """
    Toast profile.

    Bounded stack; the oldest toast is dismissed to make room.
    """

    PROFILE: str = "toast"

    MODE: DisplayMode = DisplayMode.STACK
    MAX_CONCURRENT: int = Field(default=3, ge=1)

    SHORT_DURATION: float = Field(default=2.0, ge=0)
    LONG_DURATION: float = Field(default=4.0, ge=0)
