"""Domain enumerations for backoffice access control.

Enums represent fixed sets of domain values (roles, resources,
permissions, principal lifecycle).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class AdminRole(_ValuesMixin, str, Enum):
    """Built-in backoffice roles (seeded as system roles)."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    SUPPORT = "SUPPORT"
    AUDITOR = "AUDITOR"


class PrincipalStatus(_ValuesMixin, str, Enum):
    """Admin user approval lifecycle.

    Only APPROVED principals (that are also active) pass permission checks.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class Resource(_ValuesMixin, str, Enum):
    """Protected backoffice resources."""

    DASHBOARD = "dashboard"
    USERS = "users"
    ADMIN_USERS = "admin_users"
    ROLES = "roles"
    PERMISSIONS = "permissions"
    SETTINGS = "settings"
    WALLETS = "wallets"
    WALLET_TRANSACTIONS = "wallet_transactions"
    CUSTOMER_SUPPORT = "customer_support"
    AUDIT_LOGS = "audit_logs"


class Permission(_ValuesMixin, str, Enum):
    """Operations on a resource. MANAGE implies every other permission."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"
