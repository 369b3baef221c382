"""Cache: Redis service, in-process fallback, and cache key utilities.

Used by the authorization service (permission sets, role grants, role list)
and the rate limiter (windows + locks). Key format is in keys.py.
"""

from backoffice.infrastructure.cache.cache_protocol import (
    CacheProtocol,
    CacheUnavailableError,
)
from backoffice.infrastructure.cache.keys import (
    all_roles_key,
    rate_limit_key,
    role_permissions_key,
    role_permissions_pattern,
    user_permissions_key,
    user_permissions_pattern,
)
from backoffice.infrastructure.cache.memory_cache import InMemoryCache
from backoffice.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheProtocol",
    "CacheService",
    "CacheUnavailableError",
    "InMemoryCache",
    "all_roles_key",
    "rate_limit_key",
    "role_permissions_key",
    "role_permissions_pattern",
    "user_permissions_key",
    "user_permissions_pattern",
]
