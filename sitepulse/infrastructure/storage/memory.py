# ==============================================================================
# In-Memory Storage
# ==============================================================================
"""
Process-local implementation of the Storage interface.

Used as the session-scoped store: its contents vanish with the process, the
same lifetime a browser tab gives session storage.
"""

import threading

from sitepulse.base import Storage


class MemoryStorage(Storage):
    """Dict-backed storage, safe to share between threads."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
