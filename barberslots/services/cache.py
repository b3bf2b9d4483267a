"""
Short-lived read cache for schedule data.

Entries are keyed by a tuple whose first element is the barber id, so every
entry for a barber can be dropped at once when an appointment or schedule
for that barber changes.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

MAX_TTL_SECONDS = 30.0

CacheKey = Tuple[Hashable, ...]

_MISSING = object()


class ScheduleCache:
    """
    TTL cache owned by the caller's request-scoping layer.

    A TTL of ``0`` disables caching entirely.
    """

    def __init__(
        self,
        ttl_seconds: float = MAX_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not 0 <= ttl_seconds <= MAX_TTL_SECONDS:
            raise ValueError(
                f"ttl_seconds must be between 0 and {MAX_TTL_SECONDS:g}, got {ttl_seconds}"
            )
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}
        self._generations: Dict[Hashable, int] = {}
        self._epoch = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: CacheKey, default: Optional[Any] = None) -> Any:
        """Return the cached value, or ``default`` when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return default

        stored_at, value = entry
        if self._clock() - stored_at >= self._ttl:
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return default

        logger.debug("Cache hit: %s", key)
        return value

    def generation(self, barber_id: Hashable) -> Tuple[int, int]:
        """
        Token that changes whenever the barber's entries are invalidated.

        Read it before starting a fetch and pass it to ``set`` so rows
        fetched before an invalidation are never stored after it.
        """
        return self._epoch, self._generations.get(barber_id, 0)

    def set(self, key: CacheKey, value: Any, generation: Optional[Tuple[int, int]] = None) -> bool:
        """
        Store a value; returns False when it was not stored.

        With ``generation`` given, the value is dropped if the barber was
        invalidated since that token was read.
        """
        if self._ttl <= 0:
            return False
        if generation is not None and generation != self.generation(key[0]):
            logger.debug("Discarding stale fetch for %s", key)
            return False

        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (now, value)
        return True

    def contains(self, key: CacheKey) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def invalidate(self, barber_id: str) -> int:
        """
        Drop every entry belonging to a barber.

        Returns:
            Number of entries removed
        """
        self._generations[barber_id] = self._generations.get(barber_id, 0) + 1
        stale = [key for key in self._entries if key and key[0] == barber_id]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cache entries for barber %s", len(stale), barber_id)
        return len(stale)

    def clear(self) -> None:
        self._epoch += 1
        self._entries.clear()

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= self._ttl]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
