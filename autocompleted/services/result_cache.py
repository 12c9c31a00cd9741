# autocompleted/services/result_cache.py
# Responsibility: Process-wide, bounded, time-limited cache of serialized autocomplete responses.

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from autocompleted.config.settings import settings


class MemoryResultCache:
    """
    In-memory cache keyed by canonical key.

    Entries expire a fixed time after insertion (reads do not extend them).
    When the entry count goes over ``max_entries`` the least recently used
    entries are evicted. All operations hold a single short-lived lock, so
    the cache can be shared by every request thread.
    """

    def __init__(
        self,
        max_entries: int = settings.CACHE.MAX_ENTRIES,
        ttl_seconds: float = settings.CACHE.TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (expires_at, body); order is recency, oldest first
        self._data: "OrderedDict[str, Tuple[float, str]]" = OrderedDict()

    def get(self, key: str) -> Optional[str]:
        """Returns the cached body, or None on a miss or an expired entry."""
        now = self._clock()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, body = entry
            if expires_at <= now:
                del self._data[key]
                return None
            self._data.move_to_end(key)
            return body

    def put(self, key: str, body: str) -> None:
        """Inserts or overwrites an entry, then evicts down to capacity."""
        now = self._clock()
        with self._lock:
            self._data[key] = (now + self.ttl_seconds, body)
            self._data.move_to_end(key)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
