"""RolePermission repository: one grant row per (role, resource)."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.application.dtos.role import RolePermissionResult
from backoffice.infrastructure.persistence.models.permission import RolePermission
from backoffice.infrastructure.persistence.models.role import Role
from backoffice.infrastructure.persistence.repositories.base import BaseRepository
from backoffice.shared.utils.datetime import ensure_utc


def _grant_to_result(rp: RolePermission) -> RolePermissionResult:
    return RolePermissionResult(
        id=rp.id,
        role_id=rp.role_id,
        role=rp.role.name,
        resource=rp.resource,
        permissions=tuple(rp.permissions or ()),
        created_at=ensure_utc(rp.created_at),
        updated_at=ensure_utc(rp.updated_at),
    )


def _normalize(permissions: list[str] | set[str]) -> list[str]:
    return sorted(set(permissions))


class RolePermissionRepository(BaseRepository[RolePermission]):
    """Grant persistence; implements IRolePermissionRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, RolePermission)

    async def get_by_id(self, grant_id: str) -> RolePermissionResult | None:
        row = await self.get_entity(grant_id)
        return _grant_to_result(row) if row else None

    async def _get_row(self, role_id: str, resource: str) -> RolePermission | None:
        result = await self.db.execute(
            select(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.resource == resource,
            )
        )
        return result.scalar_one_or_none()

    async def get_for_role_resource(
        self, role_name: str, resource: str
    ) -> RolePermissionResult | None:
        result = await self.db.execute(
            select(RolePermission)
            .join(Role, RolePermission.role_id == Role.id)
            .where(Role.name == role_name, RolePermission.resource == resource)
        )
        row = result.scalar_one_or_none()
        return _grant_to_result(row) if row else None

    async def get_role_grants(self, role_name: str) -> list[RolePermissionResult]:
        """All grants for a role by name (empty when the role does not exist)."""
        result = await self.db.execute(
            select(RolePermission)
            .join(Role, RolePermission.role_id == Role.id)
            .where(Role.name == role_name)
            .order_by(RolePermission.resource)
        )
        return [_grant_to_result(r) for r in result.scalars().all()]

    async def list_all(self) -> list[RolePermissionResult]:
        result = await self.db.execute(
            select(RolePermission).order_by(RolePermission.role_id, RolePermission.resource)
        )
        return [_grant_to_result(r) for r in result.scalars().all()]

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(RolePermission))
        return int(result.scalar_one())

    async def upsert_merge(
        self, role_id: str, resource: str, permissions: list[str]
    ) -> RolePermissionResult:
        """Create the (role, resource) grant, or merge permissions into the existing row."""
        existing = await self._get_row(role_id, resource)
        if existing is not None:
            existing.permissions = _normalize([*existing.permissions, *permissions])
            return _grant_to_result(await self.save(existing))
        created = await self.create(
            RolePermission(
                role_id=role_id, resource=resource, permissions=_normalize(permissions)
            )
        )
        return _grant_to_result(created)

    async def update_grant(
        self,
        grant_id: str,
        *,
        role_id: str | None = None,
        resource: str | None = None,
        permissions: list[str] | None = None,
    ) -> RolePermissionResult | None:
        """Replace fields on a grant; None when it does not exist."""
        row = await self.get_entity(grant_id)
        if row is None:
            return None
        if role_id is not None:
            row.role_id = role_id
        if resource is not None:
            row.resource = resource
        if permissions is not None:
            row.permissions = _normalize(permissions)
        row = await self.save(row)
        # role relationship may be stale after role_id changes
        await self.db.refresh(row, attribute_names=["role"])
        return _grant_to_result(row)

    async def delete_grant(self, grant_id: str) -> RolePermissionResult | None:
        """Delete a grant and return what was removed (None when missing)."""
        row = await self.get_entity(grant_id)
        if row is None:
            return None
        removed = _grant_to_result(row)
        await self.delete(row)
        return removed
