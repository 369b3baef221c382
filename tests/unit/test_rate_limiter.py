"""Tests for the sliding-window rate limiter (pure evaluation and cache-backed limiter)."""

import asyncio
from unittest.mock import MagicMock

import pytest

from backoffice.application.dtos.rate_limit import RateLimitOutcome, RateLimitRule
from backoffice.application.services.rate_limiter import (
    RateLimiter,
    client_key,
    evaluate,
    rate_limit_headers,
    rejection_for,
    resolve_rule,
    rules_from_settings,
    strip_prefix,
)
from backoffice.core.config import RateLimitRuleSettings
from backoffice.domain.exceptions import (
    RateLimitExceededException,
    RequestTooFrequentException,
)
from backoffice.infrastructure.cache import CacheUnavailableError, InMemoryCache

RULE = RateLimitRule(max_requests=5, window_ms=1000)


def _run(times: list[int], rule: RateLimitRule = RULE, min_interval_ms: int = 100):
    window = None
    outcomes = []
    for now in times:
        decision = evaluate(window, rule, now, min_interval_ms)
        if decision.persist:
            window = decision.window
        outcomes.append(decision)
    return outcomes


def test_window_allows_max_then_rejects() -> None:
    decisions = _run([0, 100, 200, 300, 400, 500])
    assert [d.outcome for d in decisions[:5]] == [RateLimitOutcome.ALLOWED] * 5
    assert decisions[4].window.count == 5
    assert decisions[5].outcome is RateLimitOutcome.EXCEEDED
    assert decisions[5].persist is False


def test_window_resets_after_elapsed() -> None:
    decisions = _run([0, 100, 200, 300, 400, 1000, 1001])
    # Still inside the window at exactly reset_at.
    assert decisions[5].outcome is RateLimitOutcome.EXCEEDED
    fresh = decisions[6]
    assert fresh.outcome is RateLimitOutcome.ALLOWED
    assert fresh.window.count == 1
    assert fresh.window.window_start == 1001
    assert fresh.window.reset_at == 2001


def test_min_interval_rejects_without_counting() -> None:
    decisions = _run([0, 50, 100])
    assert decisions[1].outcome is RateLimitOutcome.TOO_FREQUENT
    assert decisions[1].window.count == 1
    assert decisions[2].outcome is RateLimitOutcome.ALLOWED
    assert decisions[2].window.count == 2


def test_headers_reflect_window() -> None:
    decision = _run([0, 100])[1]
    assert rate_limit_headers(decision) == {
        "X-RateLimit-Limit": "5",
        "X-RateLimit-Remaining": "3",
        "X-RateLimit-Reset": "1",
        "X-RateLimit-Window": "1",
    }


def test_rejection_carries_retry_after() -> None:
    exceeded = _run([0, 100, 200, 300, 400, 500])[5]
    exc = rejection_for(exceeded, 500, 100)
    assert isinstance(exc, RateLimitExceededException)
    assert exc.headers["Retry-After"] == "1"
    assert exc.headers["X-RateLimit-Remaining"] == "0"

    too_fast = _run([0, 10])[1]
    exc = rejection_for(too_fast, 10, 100)
    assert isinstance(exc, RequestTooFrequentException)
    assert exc.headers["Retry-After"] == "1"


def test_strip_prefix_and_rule_resolution() -> None:
    rules = {
        "default": RateLimitRule(100, 60_000),
        "/auth": RateLimitRule(10, 60_000),
        "/auth/login": RateLimitRule(5, 60_000),
    }
    assert strip_prefix("/api/v1/auth/login", "/api/v1") == "/auth/login"
    assert strip_prefix("/api/v1", "/api/v1") == "/"
    assert strip_prefix("/api/v10/x", "/api/v1") == "/api/v10/x"
    assert resolve_rule("/auth/login", rules).max_requests == 5
    assert resolve_rule("/auth/refresh", rules).max_requests == 10
    assert resolve_rule("/roles", rules).max_requests == 100


def test_client_key_prefers_principal() -> None:
    anon = client_key("/roles", ip_address="10.0.0.1", user_agent="ua")
    user = client_key("/roles", ip_address="10.0.0.1", user_agent="ua", principal_id="p1")
    assert anon.startswith("rate_limit:ip:10.0.0.1:")
    assert user.startswith("rate_limit:user:p1:")
    assert anon.endswith(":/roles")
    assert client_key("/roles", ip_address="10.0.0.1", user_agent="other") != anon


def test_rules_from_settings() -> None:
    rules = rules_from_settings(
        {"default": RateLimitRuleSettings(max_requests=100, window_seconds=900)}
    )
    assert rules["default"] == RateLimitRule(max_requests=100, window_ms=900_000)


def test_limiter_requires_default_rule() -> None:
    with pytest.raises(ValueError):
        RateLimiter(InMemoryCache(), {"/auth": RateLimitRule(1, 1000)})


class _Clock:
    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _limiter(clock: _Clock, cache=None) -> RateLimiter:
    return RateLimiter(
        cache if cache is not None else InMemoryCache(),
        {
            "default": RateLimitRule(3, 60_000),
            "/auth/login": RateLimitRule(1, 60_000),
        },
        min_interval_ms=100,
        api_prefix="/api/v1",
        clock=clock,
    )


async def test_limiter_counts_per_client() -> None:
    clock = _Clock()
    limiter = _limiter(clock)
    for _ in range(3):
        headers = await limiter.enforce("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua")
        clock.now += 200
    assert headers["X-RateLimit-Remaining"] == "0"

    with pytest.raises(RateLimitExceededException) as exc_info:
        await limiter.enforce("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua")
    assert "Retry-After" in exc_info.value.headers

    # Another client has its own window.
    other = await limiter.enforce("/api/v1/roles", ip_address="2.2.2.2", user_agent="ua")
    assert other["X-RateLimit-Remaining"] == "2"


async def test_limiter_window_reset_with_clock() -> None:
    clock = _Clock()
    limiter = _limiter(clock)
    await limiter.enforce("/api/v1/auth/login", ip_address="1.1.1.1", user_agent="ua")
    clock.now += 500
    with pytest.raises(RateLimitExceededException):
        await limiter.enforce("/api/v1/auth/login", ip_address="1.1.1.1", user_agent="ua")
    clock.now += 60_000
    headers = await limiter.enforce("/api/v1/auth/login", ip_address="1.1.1.1", user_agent="ua")
    assert headers["X-RateLimit-Remaining"] == "0"
    assert headers["X-RateLimit-Limit"] == "1"


async def test_limiter_rejects_rapid_requests() -> None:
    clock = _Clock()
    limiter = _limiter(clock)
    await limiter.enforce("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua")
    clock.now += 20
    with pytest.raises(RequestTooFrequentException):
        await limiter.enforce("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua")


async def test_limiter_fails_open_when_cache_unavailable() -> None:
    cache = MagicMock()
    cache.is_available.return_value = False
    limiter = _limiter(_Clock(), cache)
    assert await limiter.hit("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua") is None
    assert await limiter.enforce("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua") == {}


async def test_limiter_fails_open_when_lock_unavailable() -> None:
    cache = MagicMock()
    cache.is_available.return_value = True
    cache.lock.return_value.__aenter__.side_effect = CacheUnavailableError("k")
    limiter = _limiter(_Clock(), cache)
    assert await limiter.enforce("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua") == {}


async def test_limiter_without_cache_admits() -> None:
    limiter = RateLimiter(None, {"default": RateLimitRule(1, 1000)})
    assert await limiter.hit("/x", ip_address=None, user_agent=None) is None


class _YieldingCache(InMemoryCache):
    """InMemoryCache that suspends on every read and write, like a network store."""

    async def get(self, key: str):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key: str, value, ttl: int = 300) -> bool:
        await asyncio.sleep(0)
        return await super().set(key, value, ttl)


def _concurrent_limiter(cache: InMemoryCache, max_requests: int) -> RateLimiter:
    return RateLimiter(
        cache,
        {"default": RateLimitRule(max_requests, 60_000)},
        min_interval_ms=0,
        api_prefix="/api/v1",
        clock=_Clock(),
    )


async def _burst(limiter: RateLimiter, n: int):
    return await asyncio.gather(
        *(
            limiter.hit("/api/v1/roles", ip_address="1.1.1.1", user_agent="ua")
            for _ in range(n)
        )
    )


async def test_concurrent_hits_are_all_counted() -> None:
    cache = _YieldingCache()
    decisions = await _burst(_concurrent_limiter(cache, 100), 20)
    assert all(d.allowed for d in decisions)
    stored = await cache.get(client_key("/roles", ip_address="1.1.1.1", user_agent="ua"))
    assert stored["count"] == 20
    assert sorted(d.window.count for d in decisions) == list(range(1, 21))


async def test_concurrent_hits_never_exceed_limit() -> None:
    cache = _YieldingCache()
    decisions = await _burst(_concurrent_limiter(cache, 5), 20)
    assert sum(d.allowed for d in decisions) == 5
    assert sum(d.outcome is RateLimitOutcome.EXCEEDED for d in decisions) == 15
    stored = await cache.get(client_key("/roles", ip_address="1.1.1.1", user_agent="ua"))
    assert stored["count"] == 5
