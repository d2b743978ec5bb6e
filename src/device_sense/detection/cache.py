"""
Cache adapters for detected device profiles.

A cache is keyed by the resolved User-Agent. The pipeline treats every
adapter as best-effort: a failing get is a miss and a failing set is
logged and forgotten.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Type

from pydantic import ValidationError

from .models import DeviceProfile

logger = logging.getLogger(__name__)

CacheGetter = Callable[[str], Optional[DeviceProfile]]
CacheSetter = Callable[[str, DeviceProfile], bool]


class CacheAdapter(ABC):
    """Base class for profile caches."""

    @abstractmethod
    def get(self, key: str) -> Optional[DeviceProfile]:
        """
        Look up a profile.

        Args:
            key: The User-Agent

        Returns:
            Cached profile or None
        """
        pass

    @abstractmethod
    def set(self, key: str, profile: DeviceProfile) -> bool:
        """
        Store a profile.

        Returns:
            True if stored, False otherwise
        """
        pass


class CallbackCache(CacheAdapter):
    """
    Adapts a plain getter/setter pair, e.g. the get/set of an existing cache client.

    Usage:
        cache = CallbackCache(getter=local_cache.get, setter=local_cache.set)
    """

    def __init__(self, getter: Optional[CacheGetter] = None, setter: Optional[CacheSetter] = None):
        self.getter = getter
        self.setter = setter

    def get(self, key: str) -> Optional[DeviceProfile]:
        if self.getter is None:
            return None
        return self.getter(key)

    def set(self, key: str, profile: DeviceProfile) -> bool:
        if self.setter is None:
            return False
        return bool(self.setter(key, profile))


class InMemoryCache(CacheAdapter):
    """
    Process-local LRU cache.

    Safe to share between threads; concurrent misses on the same key may both
    run detection, and the last set wins.
    """

    def __init__(self, max_entries: int = 1024):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, DeviceProfile]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[DeviceProfile]:
        with self._lock:
            profile = self._entries.get(key)
            if profile is not None:
                self._entries.move_to_end(key)
            return profile

    def set(self, key: str, profile: DeviceProfile) -> bool:
        with self._lock:
            self._entries[key] = profile
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class SQLiteProfileCache(CacheAdapter):
    """
    Persistent profile cache using SQLite.

    Profiles are stored as JSON, so the cache survives restarts and can be
    shared by several worker processes on one host.
    """

    def __init__(self, db_path: str = "/var/cache/device-sense/profiles.db",
                 profile_cls: Type[DeviceProfile] = DeviceProfile):
        """
        Initialize profile cache.

        Args:
            db_path: Path to SQLite database file
            profile_cls: Model used to load stored profiles
        """
        self.db_path = Path(db_path)
        self.profile_cls = profile_cls
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    user_agent TEXT PRIMARY KEY,
                    profile TEXT NOT NULL,
                    stored_at TEXT NOT NULL
                )
            """)
            conn.commit()

        logger.info(f"Initialized profile cache at {self.db_path}")

    def get(self, key: str) -> Optional[DeviceProfile]:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT profile FROM profiles WHERE user_agent = ?", (key,)
            ).fetchone()

        if not row:
            return None

        try:
            return self.profile_cls.model_validate_json(row[0])
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cached profile: {e}")
            return None

    def set(self, key: str, profile: DeviceProfile) -> bool:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO profiles (user_agent, profile, stored_at) VALUES (?, ?, ?)",
                    (key, profile.model_dump_json(), datetime.now(timezone.utc).isoformat()),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to cache profile: {e}")
            return False
        return True

    def clear(self) -> int:
        """Remove every cached profile. Returns the number removed."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM profiles")
            conn.commit()
            return cursor.rowcount

    def count(self) -> int:
        with sqlite3.connect(self.db_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0]
