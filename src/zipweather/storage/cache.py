from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..domain.models import GeoCoordinate

LOGGER = logging.getLogger(__name__)

GEOCODE_CACHE_TTL_SECONDS = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class CacheEntry:
    coordinate: GeoCoordinate
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


def _normalize_key(zip_code: str) -> str:
    return zip_code.strip()


class GeocodeCache:
    """In-memory ZIP code -> coordinate cache with lazy expiry.

    Reads are plain dictionary lookups of immutable entries. Writes and
    removals go through a lock so a background prune can run alongside
    request handlers.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = GEOCODE_CACHE_TTL_SECONDS,
        time_func: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._ttl_seconds = ttl_seconds
        self._time_func = time_func
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, zip_code: str) -> GeoCoordinate | None:
        key = _normalize_key(zip_code)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._time_func()):
            self._discard(key, entry)
            return None
        return entry.coordinate

    def put(self, zip_code: str, coordinate: GeoCoordinate, ttl_seconds: float | None = None) -> None:
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be > 0")
        entry = CacheEntry(coordinate=coordinate, expires_at=self._time_func() + ttl)
        with self._lock:
            self._entries[_normalize_key(zip_code)] = entry

    def prune_expired_entries(self) -> int:
        now = self._time_func()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            LOGGER.debug("Pruned %d expired geocode entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _discard(self, key: str, entry: CacheEntry) -> None:
        # Only drop the entry that was read; a concurrent put may have replaced it.
        with self._lock:
            if self._entries.get(key) is entry:
                del self._entries[key]
