"""Role repository. Read methods return RoleResult (DTO)."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.application.dtos.role import RoleResult
from backoffice.infrastructure.persistence.models.permission import RolePermission
from backoffice.infrastructure.persistence.models.role import Role
from backoffice.infrastructure.persistence.repositories.base import BaseRepository
from backoffice.shared.utils.datetime import ensure_utc


def _role_to_result(r: Role) -> RoleResult:
    """Map ORM Role to application RoleResult."""
    return RoleResult(
        id=r.id,
        name=r.name,
        description=r.description,
        is_system=r.is_system,
        created_at=ensure_utc(r.created_at),
        updated_at=ensure_utc(r.updated_at),
    )


class RoleRepository(BaseRepository[Role]):
    """Role repository; implements IRoleRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Role)

    async def get_by_id(self, role_id: str) -> RoleResult | None:
        row = await self.get_entity(role_id)
        return _role_to_result(row) if row else None

    async def get_by_name(self, name: str) -> RoleResult | None:
        result = await self.db.execute(select(Role).where(Role.name == name))
        row = result.scalar_one_or_none()
        return _role_to_result(row) if row else None

    async def list_roles(self) -> list[RoleResult]:
        result = await self.db.execute(select(Role).order_by(Role.name))
        return [_role_to_result(r) for r in result.scalars().all()]

    async def create_role(
        self, name: str, description: str | None = None, *, is_system: bool = False
    ) -> RoleResult:
        """Create a role; return read-model DTO."""
        created = await self.create(
            Role(name=name, description=description, is_system=is_system)
        )
        return _role_to_result(created)

    async def update_role(
        self, role_id: str, *, name: str | None = None, description: str | None = None
    ) -> RoleResult | None:
        """Apply non-None fields; None when the role does not exist."""
        role = await self.get_entity(role_id)
        if role is None:
            return None
        if name is not None:
            role.name = name
        if description is not None:
            role.description = description
        return _role_to_result(await self.save(role))

    async def delete_role(self, role_id: str) -> bool:
        """Delete the role and its grants."""
        role = await self.get_entity(role_id)
        if role is None:
            return False
        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        await self.delete(role)
        return True
