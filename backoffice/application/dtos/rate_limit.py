"""DTOs for the rate limiter (rules, stored windows, decisions)."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class RateLimitRule:
    """Max requests per window for a path prefix."""

    max_requests: int
    window_ms: int


@dataclass(frozen=True)
class RateLimitWindow:
    """Counter state for one (client, path); times are epoch milliseconds."""

    count: int
    window_start: int
    reset_at: int
    window_ms: int
    last_request_at: int

    def to_cache(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "window_start": self.window_start,
            "reset_at": self.reset_at,
            "window_ms": self.window_ms,
            "last_request_at": self.last_request_at,
        }

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> "RateLimitWindow":
        return cls(
            count=int(data["count"]),
            window_start=int(data["window_start"]),
            reset_at=int(data["reset_at"]),
            window_ms=int(data["window_ms"]),
            last_request_at=int(data.get("last_request_at", data["window_start"])),
        )


class RateLimitOutcome(str, Enum):
    ALLOWED = "allowed"
    EXCEEDED = "exceeded"
    TOO_FREQUENT = "too_frequent"


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of evaluating one request against its window."""

    outcome: RateLimitOutcome
    window: RateLimitWindow
    rule: RateLimitRule
    persist: bool

    @property
    def allowed(self) -> bool:
        return self.outcome is RateLimitOutcome.ALLOWED
