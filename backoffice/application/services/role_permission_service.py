"""Role-permission administration: grant CRUD and default seeding.

Every mutation invalidates the permission caches so checks see the new
grants immediately rather than after TTL expiry. With an after-commit hook
the caches are dropped again once the transaction commits, so a check that
read the old grants in between cannot keep them cached.
"""

from __future__ import annotations

import logging

from backoffice.application.dtos.role import RolePermissionResult
from backoffice.application.interfaces.repositories import (
    IRolePermissionRepository,
    IRoleRepository,
)
from backoffice.application.interfaces.services import AfterCommitHook
from backoffice.application.services.authorization_service import AuthorizationService
from backoffice.domain.enums import Permission, Resource
from backoffice.domain.exceptions import ResourceNotFoundException, ValidationException
from backoffice.domain.rbac import DEFAULT_ROLE_PERMISSIONS, ROLE_DESCRIPTIONS
from backoffice.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)


def _validate_resource(resource: str) -> str:
    if resource not in Resource.values():
        raise ValidationException(f"Unknown resource: {resource}", field="resource")
    return resource


def _validate_permissions(permissions: list[str]) -> list[str]:
    if not permissions:
        raise ValidationException("At least one permission is required", field="permissions")
    unknown = sorted(set(permissions) - set(Permission.values()))
    if unknown:
        raise ValidationException(
            f"Unknown permission(s): {', '.join(unknown)}", field="permissions"
        )
    return list(permissions)


class RolePermissionService:
    """Create, update, delete and seed role grants."""

    def __init__(
        self,
        role_repo: IRoleRepository,
        role_permission_repo: IRolePermissionRepository,
        authorization: AuthorizationService,
        after_commit: AfterCommitHook | None = None,
    ) -> None:
        self._role_repo = role_repo
        self._grants = role_permission_repo
        self._authorization = authorization
        self._after_commit = after_commit

    async def _invalidate_caches(self) -> None:
        await self._authorization.invalidate_all()
        if self._after_commit is not None:
            self._after_commit(self._authorization.invalidate_all)

    async def _role_id(self, role_name: str) -> str:
        role = await self._role_repo.get_by_name(role_name)
        if role is None:
            raise ResourceNotFoundException("role", role_name)
        return role.id

    async def create_role_permission(
        self, role: str, resource: str, permissions: list[str]
    ) -> RolePermissionResult:
        """Grant permissions to a role on a resource.

        If the role already has a grant row for the resource, the permission
        sets are merged into that row.
        """
        role_id = await self._role_id(role)
        created = await self._grants.upsert_merge(
            role_id, _validate_resource(resource), _validate_permissions(permissions)
        )
        await self._invalidate_caches()
        logger.info("Granted %s on %s to role %s", list(created.permissions), resource, role)
        return created

    async def update_role_permission(
        self,
        grant_id: str,
        *,
        role: str | None = None,
        resource: str | None = None,
        permissions: list[str] | None = None,
    ) -> RolePermissionResult:
        """Replace fields on an existing grant (permissions are replaced, not merged)."""
        role_id = await self._role_id(role) if role is not None else None
        updated = await self._grants.update_grant(
            grant_id,
            role_id=role_id,
            resource=_validate_resource(resource) if resource is not None else None,
            permissions=(
                _validate_permissions(permissions) if permissions is not None else None
            ),
        )
        if updated is None:
            raise ResourceNotFoundException("role_permission", grant_id)
        await self._invalidate_caches()
        return updated

    async def delete_role_permission(self, grant_id: str) -> None:
        removed = await self._grants.delete_grant(grant_id)
        if removed is None:
            raise ResourceNotFoundException("role_permission", grant_id)
        await self._invalidate_caches()
        logger.info("Removed grant %s (%s on %s)", grant_id, removed.role, removed.resource)

    async def get_role_permissions(self, role: str) -> list[RolePermissionResult]:
        """Grants of one role (empty when the role is unknown)."""
        return await self._grants.get_role_grants(role)

    async def get_all_role_permissions(self) -> list[RolePermissionResult]:
        return await self._grants.list_all()

    @traced("rbac.initialize_default_permissions")
    async def initialize_default_permissions(self) -> bool:
        """Seed built-in roles and their default grants.

        No-op when any grant row already exists.

        Returns:
            True if seeding ran, False if grants were already present.
        """
        if await self._grants.count() > 0:
            logger.info("Role permissions already initialized; skipping seed")
            return False
        for role, resource_map in DEFAULT_ROLE_PERMISSIONS.items():
            existing = await self._role_repo.get_by_name(role.value)
            if existing is None:
                existing = await self._role_repo.create_role(
                    role.value, ROLE_DESCRIPTIONS[role], is_system=True
                )
            for resource, permissions in resource_map.items():
                await self._grants.upsert_merge(
                    existing.id, resource.value, [p.value for p in permissions]
                )
        await self._invalidate_caches()
        logger.info("Seeded default permissions for %s roles", len(DEFAULT_ROLE_PERMISSIONS))
        return True
