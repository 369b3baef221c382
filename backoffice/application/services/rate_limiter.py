"""Per-client, per-path request rate limiting backed by the shared cache.

Each (client, path) pair has a fixed-length window that starts on the
first request and resets once it has elapsed. Within a window requests
are counted up to the rule's maximum; independently, a request arriving
less than min_interval_ms after the previous one is rejected without
being counted.

The read-evaluate-write of a window runs under a per-key cache lock, so
concurrent requests from one client cannot lose increments. If the cache
is unavailable the limiter fails open.
"""

from __future__ import annotations

import hashlib
import logging
import math
from collections.abc import Callable, Mapping

from redis.exceptions import RedisError

from backoffice.application.dtos.rate_limit import (
    RateLimitDecision,
    RateLimitOutcome,
    RateLimitRule,
    RateLimitWindow,
)
from backoffice.core.config import RateLimitRuleSettings
from backoffice.core.constants import (
    RATE_LIMIT_DEFAULT_RULE,
    RATE_LIMIT_MIN_INTERVAL_MS,
    RATE_LIMIT_UA_HASH_LENGTH,
)
from backoffice.domain.exceptions import (
    RateLimitExceededException,
    RequestTooFrequentException,
)
from backoffice.infrastructure.cache import (
    CacheProtocol,
    CacheUnavailableError,
    rate_limit_key,
)
from backoffice.shared.utils.datetime import epoch_ms

logger = logging.getLogger(__name__)


def strip_prefix(path: str, prefix: str) -> str:
    """Remove the API prefix (e.g. /api/v1) so rules match on /auth/login etc."""
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        return path[len(prefix):] or "/"
    return path


def resolve_rule(path: str, rules: Mapping[str, RateLimitRule]) -> RateLimitRule:
    """Longest-prefix match of path against the rule table; falls back to default."""
    best: str | None = None
    for prefix in rules:
        if prefix == RATE_LIMIT_DEFAULT_RULE:
            continue
        if path.startswith(prefix) and (best is None or len(prefix) > len(best)):
            best = prefix
    return rules[best] if best is not None else rules[RATE_LIMIT_DEFAULT_RULE]


def user_agent_hash(user_agent: str | None) -> str:
    digest = hashlib.sha256((user_agent or "").encode("utf-8")).hexdigest()
    return digest[:RATE_LIMIT_UA_HASH_LENGTH]


def client_key(
    path: str,
    *,
    ip_address: str | None,
    user_agent: str | None,
    principal_id: str | None = None,
) -> str:
    """Cache key for a client's window: per account when authenticated, else per IP."""
    identity = f"user:{principal_id}" if principal_id else f"ip:{ip_address or 'unknown'}"
    return rate_limit_key(identity, user_agent_hash(user_agent), path)


def evaluate(
    window: RateLimitWindow | None,
    rule: RateLimitRule,
    now_ms: int,
    min_interval_ms: int = RATE_LIMIT_MIN_INTERVAL_MS,
) -> RateLimitDecision:
    """Apply one request to a window and return the decision.

    persist is True when the returned window must be written back.
    """
    if window is None or now_ms > window.reset_at:
        fresh = RateLimitWindow(
            count=1,
            window_start=now_ms,
            reset_at=now_ms + rule.window_ms,
            window_ms=rule.window_ms,
            last_request_at=now_ms,
        )
        return RateLimitDecision(RateLimitOutcome.ALLOWED, fresh, rule, persist=True)
    if window.count >= rule.max_requests:
        return RateLimitDecision(RateLimitOutcome.EXCEEDED, window, rule, persist=False)
    if now_ms - window.last_request_at < min_interval_ms:
        return RateLimitDecision(
            RateLimitOutcome.TOO_FREQUENT, window, rule, persist=False
        )
    bumped = RateLimitWindow(
        count=window.count + 1,
        window_start=window.window_start,
        reset_at=window.reset_at,
        window_ms=window.window_ms,
        last_request_at=now_ms,
    )
    return RateLimitDecision(RateLimitOutcome.ALLOWED, bumped, rule, persist=True)


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """X-RateLimit-* headers reflecting the window after this request."""
    window = decision.window
    return {
        "X-RateLimit-Limit": str(decision.rule.max_requests),
        "X-RateLimit-Remaining": str(max(0, decision.rule.max_requests - window.count)),
        "X-RateLimit-Reset": str(math.ceil(window.reset_at / 1000)),
        "X-RateLimit-Window": str(decision.rule.window_ms // 1000),
    }


def rejection_for(
    decision: RateLimitDecision, now_ms: int, min_interval_ms: int
) -> RateLimitExceededException | RequestTooFrequentException:
    """Domain exception (with headers, incl. Retry-After) for a rejected decision."""
    headers = rate_limit_headers(decision)
    if decision.outcome is RateLimitOutcome.TOO_FREQUENT:
        headers["Retry-After"] = str(max(1, math.ceil(min_interval_ms / 1000)))
        return RequestTooFrequentException(min_interval_ms, headers)
    headers["Retry-After"] = str(
        max(1, math.ceil((decision.window.reset_at - now_ms) / 1000))
    )
    return RateLimitExceededException(
        decision.rule.max_requests, math.ceil(decision.window.reset_at / 1000), headers
    )


class RateLimiter:
    """Counts requests per client and path in the shared cache."""

    def __init__(
        self,
        cache: CacheProtocol | None,
        rules: Mapping[str, RateLimitRule],
        *,
        min_interval_ms: int = RATE_LIMIT_MIN_INTERVAL_MS,
        api_prefix: str = "",
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        if RATE_LIMIT_DEFAULT_RULE not in rules:
            raise ValueError("rate limit rules must include a 'default' rule")
        self.cache = cache
        self.rules = dict(rules)
        self.min_interval_ms = min_interval_ms
        self.api_prefix = api_prefix
        self.clock = clock

    async def hit(
        self,
        path: str,
        *,
        ip_address: str | None,
        user_agent: str | None,
        principal_id: str | None = None,
    ) -> RateLimitDecision | None:
        """Record one request and return the decision.

        Returns None when the counter store is unavailable (request admitted).
        """
        if self.cache is None or not self.cache.is_available():
            logger.warning("Rate limit store unavailable; admitting %s", path)
            return None
        path = strip_prefix(path, self.api_prefix)
        rule = resolve_rule(path, self.rules)
        key = client_key(
            path, ip_address=ip_address, user_agent=user_agent, principal_id=principal_id
        )
        try:
            async with self.cache.lock(key):
                raw = await self.cache.get(key)
                window = RateLimitWindow.from_cache(raw) if raw else None
                now = self.clock()
                decision = evaluate(window, rule, now, self.min_interval_ms)
                if decision.persist:
                    ttl_ms = decision.window.reset_at - now
                    await self.cache.set(
                        key, decision.window.to_cache(), ttl=math.ceil(ttl_ms / 1000)
                    )
        except (CacheUnavailableError, RedisError) as e:
            logger.warning("Rate limit check failed open for %s: %s", key, e)
            return None
        if not decision.allowed:
            logger.info(
                "Rate limit %s for %s (count=%s, limit=%s)",
                decision.outcome.value,
                key,
                decision.window.count,
                rule.max_requests,
            )
        return decision

    async def enforce(
        self,
        path: str,
        *,
        ip_address: str | None,
        user_agent: str | None,
        principal_id: str | None = None,
    ) -> dict[str, str]:
        """Like hit(), but raise the 429 domain exception on rejection.

        Returns:
            Rate-limit headers to attach to the response (empty when failed open).
        """
        decision = await self.hit(
            path, ip_address=ip_address, user_agent=user_agent, principal_id=principal_id
        )
        if decision is None:
            return {}
        if not decision.allowed:
            raise rejection_for(decision, self.clock(), self.min_interval_ms)
        return rate_limit_headers(decision)


def rules_from_settings(
    raw: Mapping[str, RateLimitRuleSettings],
) -> dict[str, RateLimitRule]:
    """Convert settings rules (max_requests, window_seconds) into RateLimitRule."""
    return {
        prefix: RateLimitRule(
            max_requests=rule.max_requests, window_ms=rule.window_seconds * 1000
        )
        for prefix, rule in raw.items()
    }
