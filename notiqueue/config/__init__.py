# -*- coding: utf-8 -*-
"""
Notification Settings
=====================
Profile-specific configuration (snackbar / toast).
"""

from .base import NotificationSettings
from .profiles import SnackbarSettings, ToastSettings
from .loader import get_settings, get_profile, reload_settings

__all__ = [
    "NotificationSettings",
    "SnackbarSettings",
    "ToastSettings",
    "get_settings",
    "get_profile",
    "reload_settings"
]
