"""
Keyed TTL store for class analytics snapshots.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from app.services.config_service import config_service

logger = logging.getLogger("app.analytics.cache")

T = TypeVar("T")


class AnalyticsCache(Generic[T]):
    """
    In-process cache with a fixed time-to-live.

    Writes are last-writer-wins. Reads within the TTL may be stale.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], datetime] = config_service.now):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock
        self._entries: Dict[Hashable, Tuple[T, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None

            return value

    def set(self, key: Hashable, value: T) -> None:
        with self._lock:
            self._entries[key] = (value, self.clock() + self.ttl)

    def invalidate(self, predicate: Callable[[Hashable], bool]) -> int:
        """Drop every entry whose key matches; returns the number dropped."""
        with self._lock:
            stale = [key for key in self._entries if predicate(key)]
            for key in stale:
                del self._entries[key]

        if stale:
            logger.debug(f"Invalidated {len(stale)} cache entries")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
