"""Cache key builders. Single place for key format.

Key components (principal id, role name) are percent-encoded so that a
separator or glob character inside them can neither collide with another
key nor widen an invalidation pattern. Rate-limit keys embed a client IP
(IPv6 contains the separator) and are built without encoding; the
rate_limit prefix keeps them in their own namespace.
"""

from urllib.parse import quote

from backoffice.core.constants import (
    CACHE_KEY_ALL_ROLES,
    CACHE_KEY_SEP,
    CACHE_PREFIX_LOCK,
    CACHE_PREFIX_RATE_LIMIT,
    CACHE_PREFIX_ROLE_PERMISSIONS,
    CACHE_PREFIX_USER_PERMISSIONS,
)


def _encode_key_component(value: str) -> str:
    """Percent-encode everything except unreserved URL characters."""
    return quote(value, safe="")


def user_permissions_key(principal_id: str) -> str:
    """Cache key for a principal's resolved permission set."""
    component = _encode_key_component(principal_id)
    return f"{CACHE_PREFIX_USER_PERMISSIONS}{CACHE_KEY_SEP}{component}"


def user_permissions_pattern() -> str:
    """Glob matching every cached principal permission set."""
    return f"{CACHE_PREFIX_USER_PERMISSIONS}{CACHE_KEY_SEP}*"


def role_permissions_key(role: str) -> str:
    """Cache key for a role's grants (resource -> permissions)."""
    return f"{CACHE_PREFIX_ROLE_PERMISSIONS}{CACHE_KEY_SEP}{_encode_key_component(role)}"


def role_permissions_pattern() -> str:
    """Glob matching every cached role grant map."""
    return f"{CACHE_PREFIX_ROLE_PERMISSIONS}{CACHE_KEY_SEP}*"


def all_roles_key() -> str:
    """Cache key for the role list."""
    return CACHE_KEY_ALL_ROLES


def rate_limit_key(identity: str, ua_hash: str, path: str) -> str:
    """Cache key for one client's rate-limit window on a path.

    Args:
        identity: "user:<id>" or "ip:<address>".
        ua_hash: Truncated User-Agent digest.
        path: Request path (without API prefix).
    """
    return (
        f"{CACHE_PREFIX_RATE_LIMIT}{CACHE_KEY_SEP}{identity}{CACHE_KEY_SEP}"
        f"{ua_hash}{CACHE_KEY_SEP}{path}"
    )


def lock_key(key: str) -> str:
    """Cache key for the mutex guarding another key."""
    return f"{CACHE_PREFIX_LOCK}{CACHE_KEY_SEP}{key}"
