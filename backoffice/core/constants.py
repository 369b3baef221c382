"""Core constants: cache key prefixes and shared literal values.

Single source of truth for cache key structure. Used by infrastructure
cache key builders and the rate limiter.
"""

# Cache key prefixes
CACHE_PREFIX_USER_PERMISSIONS = "user_permissions"
CACHE_PREFIX_ROLE_PERMISSIONS = "role_permissions"
CACHE_KEY_ALL_ROLES = "all_roles"
CACHE_PREFIX_RATE_LIMIT = "rate_limit"
CACHE_PREFIX_LOCK = "lock"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Rate limiting
RATE_LIMIT_DEFAULT_RULE = "default"
RATE_LIMIT_MIN_INTERVAL_MS = 100
RATE_LIMIT_UA_HASH_LENGTH = 16

# Audit
AUDIT_DEFAULT_PAGE_SIZE = 20
AUDIT_MAX_PAGE_SIZE = 100
AUDIT_RECENT_ACTIVITY_LIMIT = 10
AUDIT_SUSPICIOUS_WINDOW_MINUTES = 60
AUDIT_TOP_USERS = 10
AUDIT_UNKNOWN_USER_ID = "anonymous"
AUDIT_UNKNOWN_ROLE = "UNKNOWN"
AUDIT_PERIOD_DAYS = {"day": 1, "week": 7, "month": 30, "year": 365}
