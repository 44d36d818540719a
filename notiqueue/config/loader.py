# -*- coding: utf-8 -*-
"""
Profile Loader
==============
Loads the appropriate settings based on the NOTIFICATION_PROFILE variable.
"""

import os
import logging
from typing import Union
from functools import lru_cache

from .profiles import SnackbarSettings, ToastSettings

logger = logging.getLogger(__name__)

# Profile mapping
PROFILE_CONFIGS = {
    "snackbar": SnackbarSettings,
    "sb": SnackbarSettings,
    "toast": ToastSettings,
    "ts": ToastSettings,
}


def get_profile() -> str:
    """
    Get the current profile name.

    Returns:
        Profile name (snackbar or toast)
    """
    profile = os.getenv("NOTIFICATION_PROFILE", "snackbar").lower()

    if profile in ("sb", "snackbar"):
        return "snackbar"
    elif profile in ("ts", "toast"):
        return "toast"
    else:
        logger.warning(f"Unknown notification profile '{profile}', defaulting to snackbar")
        return "snackbar"


@lru_cache()
def get_settings() -> Union[SnackbarSettings, ToastSettings]:
    """
    Get settings for the current profile.

    Uses caching to ensure settings are only loaded once.

    Returns:
        Profile-specific settings instance
    """
    profile = get_profile()
    config_class = PROFILE_CONFIGS.get(profile, SnackbarSettings)

    logger.info(f"Loading {profile} notification profile")

    return config_class()


def reload_settings() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
    logger.info("Notification settings cache cleared")
