"""
Local persistence for Copysmith.

Two stores, both single JSON files written atomically:

- KeyValueStore: arbitrary-lifetime UI state (active tab, preferences,
  conversation, topic ideas). Values are JSON-serialisable objects.
- DayScopedStore: small named string values that expire at the next local
  midnight, used for the daily usage counters.

Storage: JSON files under config.paths.STATE_DIR

Usage:
    from copysmith.storage import KeyValueStore, DayScopedStore

    state = KeyValueStore()
    state.set("autosave_activeTab", "content")
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from copysmith.utils.datetime_utils import local_now, next_local_midnight, parse_iso
from copysmith.utils.file_ops import read_state_file, write_state_file
from copysmith.utils.logging import get_logger

logger = get_logger("copysmith.storage")


def _default_state_dir() -> Path:
    from copysmith.config import config
    return config.paths.STATE_DIR


class KeyValueStore:
    """JSON-file key/value store for autosaved UI state.

    Thread-safe: all file writes are guarded by a lock. A missing or corrupt
    file reads as empty.
    """

    FILENAME = "ui_state.json"

    def __init__(self, path: Optional[Path] = None):
        self._path = path or _default_state_dir() / self.FILENAME
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        return read_state_file(self._path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            write_state_file(self._path, data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                write_state_file(self._path, data)


class DayScopedStore:
    """Cookie-like store whose entries expire at the next local midnight.

    Each entry is stored as {"value": str, "expires": iso-datetime}. Expired
    or malformed entries read as missing. The clock is injectable for tests.
    """

    FILENAME = "daily_usage.json"

    def __init__(self, path: Optional[Path] = None,
                 clock: Callable[[], datetime] = local_now):
        self._path = path or _default_state_dir() / self.FILENAME
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def now(self) -> datetime:
        return self._clock()

    def _load(self) -> Dict[str, Any]:
        return read_state_file(self._path)

    def get(self, name: str) -> Optional[str]:
        entry = self._load().get(name)
        if not isinstance(entry, dict):
            return None
        expires = parse_iso(entry.get("expires", ""))
        if expires is None or self.now() >= expires:
            return None
        value = entry.get("value")
        return value if isinstance(value, str) else None

    def set_for_day(self, name: str, value: str) -> None:
        """Store value until local midnight tonight."""
        expires = next_local_midnight(self.now())
        with self._lock:
            data = self._load()
            data[name] = {"value": value, "expires": expires.isoformat()}
            write_state_file(self._path, data)
        logger.debug("day_scoped_value_stored", name=name, expires=expires.isoformat())
