"""Cache protocol shared by Redis and in-process backends."""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol


class CacheUnavailableError(RuntimeError):
    """Raised by lock() when the backend cannot serialize access."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Cache unavailable; cannot lock {key}")
        self.key = key


class CacheProtocol(Protocol):
    """Protocol for cache backends. Used by the authorization service and rate limiter."""

    def is_available(self) -> bool:
        """Return True if cache is connected and usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return cached value or None."""
        ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value with TTL in seconds."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove key from cache."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob pattern; return count removed."""
        ...

    def lock(
        self, key: str, timeout: float = 5.0, blocking_timeout: float = 2.0
    ) -> AbstractAsyncContextManager[Any]:
        """Async context manager holding an exclusive lock on key."""
        ...
