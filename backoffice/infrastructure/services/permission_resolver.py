"""Resolves principals and role grants from the DB (implements IPermissionResolver)."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.application.dtos.permission import PrincipalResult
from backoffice.domain.exceptions import StoreUnavailableException
from backoffice.infrastructure.persistence.repositories.admin_user_repo import (
    AdminUserRepository,
)
from backoffice.infrastructure.persistence.repositories.role_permission_repo import (
    RolePermissionRepository,
)

logger = logging.getLogger(__name__)


class PermissionResolver:
    """Reads principals and their role's grants; store errors fail closed."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.users = AdminUserRepository(db)
        self.grants = RolePermissionRepository(db)

    async def get_principal(self, principal_id: str) -> PrincipalResult | None:
        try:
            return await self.users.get_principal(principal_id)
        except SQLAlchemyError as e:
            logger.error("Permission store read failed for principal %s: %s", principal_id, e)
            raise StoreUnavailableException() from e

    async def get_role_grants(self, role: str) -> dict[str, list[str]]:
        """Return {resource: [permission, ...]} for the role (empty when none)."""
        try:
            rows = await self.grants.get_role_grants(role)
        except SQLAlchemyError as e:
            logger.error("Permission store read failed for role %s: %s", role, e)
            raise StoreUnavailableException() from e
        return {row.resource: list(row.permissions) for row in rows}
