# -*- coding: utf-8 -*-
"""
Logging Configuration
=====================
Readable logs for development, structured JSON logs for production.

Usage:
    from notiqueue.logging_config import setup_logging

    setup_logging()
"""

import os
import sys
import logging
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

NOTIFICATION_LOGGER = "notiqueue"


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    service_name: str = "notiqueue"
) -> None:
    """
    Setup logging for the notification controller.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Force JSON format (auto-detected if None)
        service_name: Service name added to JSON entries
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    environment = os.getenv("ENVIRONMENT", "development")

    # Auto-detect JSON format: use JSON in production, readable in dev
    if json_format is None:
        json_format = environment in ("production", "staging")

    package_logger = logging.getLogger(NOTIFICATION_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)

    if json_format:
        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger", "asctime": "timestamp"},
            static_fields={"service": service_name, "environment": environment}
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    package_logger.addHandler(handler)
    package_logger.propagate = False

    package_logger.info(f"Logging configured: level={level}, json={json_format}, env={environment}")


class NotificationLogAdapter(logging.LoggerAdapter):
    """Adds the notification id to every record emitted through it."""

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def get_notification_logger(notification_id: str, name: str = NOTIFICATION_LOGGER) -> NotificationLogAdapter:
    """
    Get a logger bound to one notification.

    Usage:
        log = get_notification_logger("NTF-1A2B3C4D5E6F")
        log.info("Displayed")
    """
    return NotificationLogAdapter(logging.getLogger(name), {"notification_id": notification_id})
