"""LRU result cache keyed by (source_id, settings_hash)."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, TypeVar

T = TypeVar("T")


class ResultCache(Generic[T]):
    """Thread-safe LRU cache for processed images.

    Keys are (source_id, settings_hash) tuples, so flipping a setting back
    and forth in the TUI does not reprocess the image. Preview and save
    workers read and fill it while the UI thread may clear it.
    """

    def __init__(self, max_size: int = 16) -> None:
        self._max_size = max_size
        self._cache: OrderedDict[tuple[str, str], T] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, source_id: str, settings_hash: str) -> T | None:
        """Get a cached result, or None if not present."""
        key = (source_id, settings_hash)
        with self._lock:
            value = self._cache.get(key)
            if value is not None:
                self._cache.move_to_end(key)
            return value

    def put(self, source_id: str, settings_hash: str, value: T) -> None:
        """Cache a processed result, evicting the least recently used."""
        key = (source_id, settings_hash)
        with self._lock:
            self._cache[key] = value
            self._cache.move_to_end(key)
            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    def clear(self) -> None:
        """Clear the entire cache."""
        with self._lock:
            self._cache.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._cache)
