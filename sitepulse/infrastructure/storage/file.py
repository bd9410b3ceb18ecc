# ==============================================================================
# JSON File Storage
# ==============================================================================
"""
Durable implementation of the Storage interface backed by a JSON file.

The whole file is rewritten on every change through a temporary file and an
atomic rename, so a crash never leaves a half-written document. A corrupt
or unreadable file is treated as empty.
"""

import json
import logging
import os
import threading
from pathlib import Path

from sitepulse.base import Storage

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """
    Storage persisted as a flat JSON object of string values.

    Args:
        path: JSON file location. Parent directories are created on first write.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s: not a JSON object", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            self._save(data)
            return True
