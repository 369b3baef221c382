"""Shared enumerations for the audit pipeline.

Cross-cutting enums used by application and infrastructure (audit
action, status, severity, category). Access-control enums (roles,
resources, permissions) live in backoffice.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class LogAction(_ValuesMixin, str, Enum):
    """Audit action types for privileged backoffice activity."""

    # Authentication
    LOGIN = "login"
    LOGOUT = "logout"
    LOGIN_FAILED = "login_failed"
    TOKEN_REFRESH = "token_refresh"

    # Authorization
    PERMISSION_DENIED = "permission_denied"
    ROLE_CHANGE = "role_change"
    PASSWORD_CHANGE = "password_change"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_UNLOCKED = "account_unlocked"

    # User management
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_APPROVED = "user_approved"
    USER_REJECTED = "user_rejected"
    USER_SUSPENDED = "user_suspended"
    USER_ACTIVATED = "user_activated"
    BULK_ACTION = "bulk_action"

    # Wallet management
    TRANSACTION_VIEWED = "transaction_viewed"
    TRANSACTION_FILTERED = "transaction_filtered"
    WALLET_BALANCE_VIEWED = "wallet_balance_viewed"
    TRANSACTION_EXPORTED = "transaction_exported"
    WALLET_ANALYSIS = "wallet_analysis"

    # Customer support
    TICKET_CREATED = "ticket_created"
    TICKET_UPDATED = "ticket_updated"
    TICKET_RESOLVED = "ticket_resolved"
    TICKET_CLOSED = "ticket_closed"
    CUSTOMER_CONTACTED = "customer_contacted"

    # System administration
    CONFIGURATION_CHANGED = "configuration_changed"
    SYSTEM_BACKUP = "system_backup"
    SYSTEM_RESTORE = "system_restore"
    DATABASE_MAINTENANCE = "database_maintenance"
    SECURITY_SCAN = "security_scan"

    # Data access
    DATA_VIEWED = "data_viewed"
    DATA_EXPORTED = "data_exported"
    DATA_MODIFIED = "data_modified"
    DATA_DELETED = "data_deleted"


class LogStatus(_ValuesMixin, str, Enum):
    """Outcome of an audited action."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


class LogSeverity(_ValuesMixin, str, Enum):
    """Audit severity; HIGH entries feed suspicious-activity detection."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class LogCategory(_ValuesMixin, str, Enum):
    """Functional area of an audited action."""

    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    USER_MANAGEMENT = "user_management"
    WALLET_MANAGEMENT = "wallet_management"
    CUSTOMER_SUPPORT = "customer_support"
    SYSTEM_ADMINISTRATION = "system_administration"
    SECURITY = "security"
    DATA_ACCESS = "data_access"


class StatisticsPeriod(_ValuesMixin, str, Enum):
    """Look-back period for audit statistics."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ExportFormat(_ValuesMixin, str, Enum):
    """Audit export file formats."""

    CSV = "csv"
    JSON = "json"
