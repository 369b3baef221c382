"""In-process cache backend with TTL and per-key asyncio locks.

Used when Redis is disabled and in tests. Values are JSON round-tripped so
callers see the same shapes as with CacheService. Single-process only:
locks do not coordinate across workers.

Expired entries are swept on writes (at most once per sweep interval) and a
key's lock lives only while some caller holds a reference to it, so memory
follows the live key set rather than every key ever seen.
"""

from __future__ import annotations

import asyncio
import fnmatch
import json
import logging
import time
import weakref
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class InMemoryCache:
    """Dict-backed cache implementing CacheProtocol."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        """Initialize an empty cache.

        Args:
            clock: Seconds source used for TTL expiry (monotonic by default).
            sweep_interval: Minimum seconds between sweeps of expired entries.
        """
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval
        self._data: dict[str, tuple[str, float]] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def is_available(self) -> bool:
        return True

    def _purge_if_expired(self, key: str) -> None:
        entry = self._data.get(key)
        if entry is not None and entry[1] <= self._clock():
            del self._data[key]

    async def get(self, key: str) -> Any | None:
        self._purge_if_expired(key)
        entry = self._data.get(key)
        if entry is None:
            logger.debug("Cache MISS: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return json.loads(entry[0])

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("Cache SWEEP: %s expired keys", len(expired))

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)
        self._data[key] = (json.dumps(value), now + max(1, int(ttl)))
        return True

    async def delete(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    async def delete_pattern(self, pattern: str) -> int:
        matched = [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]
        for key in matched:
            del self._data[key]
        if matched:
            logger.info("Cache INVALIDATE: %s (%s keys)", pattern, len(matched))
        return len(matched)

    def lock(
        self, key: str, timeout: float = 5.0, blocking_timeout: float = 2.0
    ) -> asyncio.Lock:
        """Per-key asyncio.Lock; timeout arguments are accepted for protocol parity."""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._data)
