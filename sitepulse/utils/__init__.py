# ==============================================================================
# SitePulse Utilities
# ==============================================================================
"""
Shared utilities for SitePulse.

This module exports configuration and retry helpers used throughout the
client, the server and the CLI.
"""

from sitepulse.utils.config import (
    ServerSettings,
    Settings,
    StoreSettings,
    TrackerSettings,
    ValkeySettings,
    get_settings,
)
from sitepulse.utils.retry import (
    HTTP_RETRY_EXCEPTIONS,
    REDIS_RETRY_EXCEPTIONS,
    retry_light,
)

__all__ = [
    # Config
    "ServerSettings",
    "Settings",
    "StoreSettings",
    "TrackerSettings",
    "ValkeySettings",
    "get_settings",
    # Retry
    "HTTP_RETRY_EXCEPTIONS",
    "REDIS_RETRY_EXCEPTIONS",
    "retry_light",
]
