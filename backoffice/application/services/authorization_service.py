"""Authorization service: RBAC permission checks with read-through caching.

Default-deny: a role with no grant row for a resource holds nothing on it.
The configured super-role holds MANAGE on every resource without a store
read. MANAGE on a resource satisfies every permission on that resource.
"""

from __future__ import annotations

import logging

from backoffice.application.dtos.permission import ResourcePermissions, UserPermissions
from backoffice.application.interfaces.services import IPermissionResolver
from backoffice.domain.enums import Permission, Resource
from backoffice.domain.exceptions import (
    MenuAccessDeniedException,
    PermissionDeniedException,
    PrincipalInactiveException,
    PrincipalNotFoundException,
)
from backoffice.domain.rbac import permission_allows, roles_for_menu
from backoffice.infrastructure.cache import (
    CacheProtocol,
    all_roles_key,
    role_permissions_key,
    role_permissions_pattern,
    user_permissions_key,
    user_permissions_pattern,
)
from backoffice.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Centralized permission checking; uses cache when available (30 min TTL)."""

    def __init__(
        self,
        permission_resolver: IPermissionResolver,
        cache: CacheProtocol | None = None,
        cache_ttl: int = 1800,
        super_role: str = "SUPER_ADMIN",
        role_cache_ttl: int | None = None,
    ) -> None:
        self.permission_resolver = permission_resolver
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.role_cache_ttl = role_cache_ttl if role_cache_ttl is not None else cache_ttl
        self.super_role = super_role

    def _cache_ready(self) -> bool:
        return self.cache is not None and self.cache.is_available()

    async def _get_role_grants(self, role: str) -> dict[str, list[str]]:
        """Role grants (resource -> permissions), cached per role."""
        key = role_permissions_key(role)
        if self._cache_ready():
            cached = await self.cache.get(key)
            if cached is not None:
                return cached
        grants = await self.permission_resolver.get_role_grants(role)
        if self._cache_ready():
            await self.cache.set(key, grants, ttl=self.role_cache_ttl)
        return grants

    @traced("authorization.get_user_permissions")
    async def get_user_permissions(self, principal_id: str) -> UserPermissions:
        """Return the principal's effective permissions. Uses cache if available.

        Raises:
            PrincipalNotFoundException: No admin user with this id.
            PrincipalInactiveException: User is not approved and active.
            StoreUnavailableException: Permission store could not be read.
        """
        key = user_permissions_key(principal_id)
        if self._cache_ready():
            cached = await self.cache.get(key)
            if cached is not None:
                return UserPermissions.from_cache(cached)

        principal = await self.permission_resolver.get_principal(principal_id)
        if principal is None:
            raise PrincipalNotFoundException(principal_id)
        if not principal.is_eligible:
            raise PrincipalInactiveException(principal_id, principal.status)

        if principal.role == self.super_role:
            entries = tuple(
                ResourcePermissions(resource.value, (Permission.MANAGE.value,))
                for resource in Resource
            )
        else:
            grants = await self._get_role_grants(principal.role)
            entries = tuple(
                ResourcePermissions(resource, tuple(perms))
                for resource, perms in sorted(grants.items())
            )
        result = UserPermissions(
            principal_id=principal.id, role=principal.role, permissions=entries
        )
        if self._cache_ready():
            await self.cache.set(key, result.to_cache(), ttl=self.cache_ttl)
        return result

    async def _resolve_or_none(self, principal_id: str) -> UserPermissions | None:
        """Effective permissions, or None when the principal is missing or ineligible."""
        try:
            return await self.get_user_permissions(principal_id)
        except (PrincipalNotFoundException, PrincipalInactiveException) as e:
            logger.info("Permission check for ineligible principal: %s", e.message)
            return None

    async def has_permission(
        self, principal_id: str, resource: str, permission: str
    ) -> bool:
        """Return True if the principal's role grants permission (or MANAGE) on resource."""
        resolved = await self._resolve_or_none(principal_id)
        if resolved is None:
            return False
        if resolved.role == self.super_role:
            return True
        for entry in resolved.permissions:
            if entry.resource == resource:
                return permission_allows(entry.permissions, permission)
        return False

    async def has_any_permission(
        self, principal_id: str, resource: str, permissions: list[str]
    ) -> bool:
        """Return True if any one of permissions would pass has_permission (empty list: False)."""
        for permission in permissions:
            if await self.has_permission(principal_id, resource, permission):
                return True
        return False

    async def has_menu_access(self, principal_id: str, menu_key: str) -> bool:
        """Return True if the principal's role may open the backoffice menu."""
        resolved = await self._resolve_or_none(principal_id)
        if resolved is None:
            return False
        if resolved.role == self.super_role:
            return True
        return resolved.role in roles_for_menu(menu_key)

    async def check_permission(
        self, principal_id: str, resource: str, permission: str
    ) -> None:
        """Raise PermissionDeniedException if the principal lacks permission."""
        if not await self.has_permission(principal_id, resource, permission):
            logger.info(
                "Permission denied: principal=%s resource=%s permission=%s",
                principal_id,
                resource,
                permission,
            )
            raise PermissionDeniedException(resource=resource, permission=permission)

    async def check_any_permission(
        self, principal_id: str, resource: str, permissions: list[str]
    ) -> None:
        """Raise PermissionDeniedException unless one of permissions is held."""
        if not await self.has_any_permission(principal_id, resource, permissions):
            raise PermissionDeniedException(resource=resource, permission=list(permissions))

    async def check_menu_access(self, principal_id: str, menu_key: str) -> None:
        """Raise MenuAccessDeniedException if the menu is not open to the principal."""
        if not await self.has_menu_access(principal_id, menu_key):
            raise MenuAccessDeniedException(menu_key)

    async def invalidate_user_cache(self, principal_id: str) -> None:
        """Invalidate cached permissions for one principal (e.g. after a role change)."""
        if self._cache_ready():
            await self.cache.delete(user_permissions_key(principal_id))

    async def invalidate_all(self) -> None:
        """Drop every cached permission set, role grant map and the role list.

        Called after any role or role-permission mutation.
        """
        if not self._cache_ready():
            return
        users = await self.cache.delete_pattern(user_permissions_pattern())
        roles = await self.cache.delete_pattern(role_permissions_pattern())
        await self.cache.delete(all_roles_key())
        logger.info(
            "Permission caches invalidated (%s user sets, %s role grant maps)",
            users,
            roles,
        )
