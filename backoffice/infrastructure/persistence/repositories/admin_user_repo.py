"""Admin user repository: principal lookup for permission resolution."""

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.application.dtos.permission import PrincipalResult
from backoffice.infrastructure.persistence.models.admin_user import AdminUser
from backoffice.infrastructure.persistence.repositories.base import BaseRepository


def _user_to_principal(u: AdminUser) -> PrincipalResult:
    return PrincipalResult(
        id=u.id,
        email=u.email,
        username=u.username,
        role=u.role,
        is_active=u.is_active,
        status=u.status,
    )


class AdminUserRepository(BaseRepository[AdminUser]):
    """Read access to admin users; implements IAdminUserRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, AdminUser)

    async def get_principal(self, principal_id: str) -> PrincipalResult | None:
        row = await self.get_entity(principal_id)
        return _user_to_principal(row) if row else None

    async def reassign_role(self, old_role: str, new_role: str) -> int:
        """Move every user holding old_role to new_role; returns rows changed."""
        result = await self.db.execute(
            update(AdminUser).where(AdminUser.role == old_role).values(role=new_role)
        )
        return result.rowcount or 0

    async def create_admin_user(
        self,
        email: str,
        username: str,
        role: str,
        *,
        status: str = "APPROVED",
        is_active: bool = True,
    ) -> PrincipalResult:
        """Insert an admin user (seeding and tests; user management lives elsewhere)."""
        created = await self.create(
            AdminUser(
                email=email,
                username=username,
                role=role,
                status=status,
                is_active=is_active,
            )
        )
        return _user_to_principal(created)
