"""Built-in RBAC catalog: default role grants and menu access table.

DEFAULT_ROLE_PERMISSIONS is only used to seed the permission store
(RolePermissionService.initialize_default_permissions); runtime checks
always read the store. MENU_ACCESS is the static menu -> allowed-roles
table consulted by has_menu_access.
"""

from backoffice.domain.enums import AdminRole, Permission, Resource

_CRU = (Permission.CREATE, Permission.READ, Permission.UPDATE)
_RU = (Permission.READ, Permission.UPDATE)
_R = (Permission.READ,)

ROLE_DESCRIPTIONS: dict[AdminRole, str] = {
    AdminRole.SUPER_ADMIN: "Full access to every backoffice resource",
    AdminRole.ADMIN: "Day-to-day administration of users and support",
    AdminRole.MODERATOR: "Moderates users and customer support queues",
    AdminRole.SUPPORT: "Handles customer support tickets",
    AdminRole.AUDITOR: "Read-only access for compliance review",
}

DEFAULT_ROLE_PERMISSIONS: dict[AdminRole, dict[Resource, tuple[Permission, ...]]] = {
    AdminRole.SUPER_ADMIN: {resource: (Permission.MANAGE,) for resource in Resource},
    AdminRole.ADMIN: {
        Resource.DASHBOARD: _R,
        Resource.USERS: _CRU,
        Resource.ADMIN_USERS: _R,
        Resource.ROLES: _R,
        Resource.PERMISSIONS: _R,
        Resource.SETTINGS: _R,
        Resource.WALLETS: _R,
        Resource.WALLET_TRANSACTIONS: _R,
        Resource.CUSTOMER_SUPPORT: (Permission.MANAGE,),
        Resource.AUDIT_LOGS: _R,
    },
    AdminRole.MODERATOR: {
        Resource.DASHBOARD: _R,
        Resource.USERS: _RU,
        Resource.WALLETS: _R,
        Resource.CUSTOMER_SUPPORT: _RU,
    },
    AdminRole.SUPPORT: {
        Resource.DASHBOARD: _R,
        Resource.USERS: _R,
        Resource.CUSTOMER_SUPPORT: _CRU,
    },
    AdminRole.AUDITOR: {
        Resource.DASHBOARD: _R,
        Resource.USERS: _R,
        Resource.WALLET_TRANSACTIONS: _R,
        Resource.AUDIT_LOGS: _R,
    },
}

MENU_ACCESS: dict[str, tuple[AdminRole, ...]] = {
    "dashboard": tuple(AdminRole),
    "users": (AdminRole.ADMIN, AdminRole.MODERATOR, AdminRole.SUPPORT, AdminRole.AUDITOR),
    "admin-users": (AdminRole.ADMIN,),
    "roles": (AdminRole.ADMIN,),
    "permissions": (AdminRole.ADMIN,),
    "wallets": (AdminRole.ADMIN, AdminRole.MODERATOR),
    "wallet-transactions": (AdminRole.ADMIN, AdminRole.AUDITOR),
    "customer-support": (AdminRole.ADMIN, AdminRole.MODERATOR, AdminRole.SUPPORT),
    "audit-logs": (AdminRole.ADMIN, AdminRole.AUDITOR),
    "settings": (AdminRole.ADMIN,),
}


def roles_for_menu(menu_key: str) -> frozenset[str]:
    """Role names allowed to open a menu (empty for unknown menus)."""
    return frozenset(role.value for role in MENU_ACCESS.get(menu_key, ()))


def permission_allows(granted: set[str] | list[str], permission: str) -> bool:
    """True when the grant set contains the permission or MANAGE."""
    return permission in granted or Permission.MANAGE.value in granted
