# ==============================================================================
# Storage Infrastructure
# ==============================================================================
"""
Storage implementations for the tracker's persisted identity state.

Available implementations:
- MemoryStorage: process-local, used for session-scoped state
- FileStorage: JSON file, the default durable store
- ValkeyStorage: Valkey/Redis, a durable store shared across hosts
"""

from sitepulse.base import Storage
from sitepulse.infrastructure.storage.file import FileStorage
from sitepulse.infrastructure.storage.memory import MemoryStorage
from sitepulse.infrastructure.storage.valkey import ValkeyStorage
from sitepulse.utils.config import TrackerSettings, get_settings


def get_durable_storage(tracker: TrackerSettings | None = None) -> Storage:
    """
    Build the durable storage selected by ``TrackerSettings.storage_backend``.

    Args:
        tracker: Tracker settings. If None, uses application settings.

    Returns:
        Storage instance for the user id
    """
    tracker = tracker or get_settings().tracker
    if tracker.storage_backend == "valkey":
        return ValkeyStorage()
    if tracker.storage_backend == "memory":
        return MemoryStorage()
    return FileStorage(tracker.storage_file)


__all__ = [
    "FileStorage",
    "MemoryStorage",
    "ValkeyStorage",
    "get_durable_storage",
]
