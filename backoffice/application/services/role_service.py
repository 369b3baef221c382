"""Role application service: role CRUD with a cached role list.

Principals reference roles by name, so renaming a custom role moves its
holders to the new name in the same transaction. Built-in roles keep their
names.
"""

from __future__ import annotations

import logging
from datetime import datetime

from backoffice.application.dtos.role import RoleResult
from backoffice.application.interfaces.repositories import (
    IAdminUserRepository,
    IRoleRepository,
)
from backoffice.application.interfaces.services import AfterCommitHook
from backoffice.application.services.authorization_service import AuthorizationService
from backoffice.domain.exceptions import (
    DuplicateRoleException,
    ResourceNotFoundException,
    SystemRoleException,
    ValidationException,
)
from backoffice.infrastructure.cache import CacheProtocol, all_roles_key
from backoffice.shared.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


def _role_to_cache(r: RoleResult) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "description": r.description,
        "is_system": r.is_system,
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }


def _role_from_cache(data: dict) -> RoleResult:
    def _dt(value: str | None) -> datetime | None:
        return ensure_utc(datetime.fromisoformat(value)) if value else None

    return RoleResult(
        id=data["id"],
        name=data["name"],
        description=data.get("description"),
        is_system=bool(data.get("is_system")),
        created_at=_dt(data.get("created_at")),
        updated_at=_dt(data.get("updated_at")),
    )


class RoleService:
    """Create, rename and delete roles; role names are unique."""

    def __init__(
        self,
        role_repo: IRoleRepository,
        user_repo: IAdminUserRepository,
        authorization: AuthorizationService,
        cache: CacheProtocol | None = None,
        cache_ttl: int = 3600,
        after_commit: AfterCommitHook | None = None,
    ) -> None:
        self._role_repo = role_repo
        self._user_repo = user_repo
        self._authorization = authorization
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._after_commit = after_commit

    async def _invalidate_caches(self) -> None:
        await self._authorization.invalidate_all()
        if self._after_commit is not None:
            self._after_commit(self._authorization.invalidate_all)

    async def list_roles(self) -> list[RoleResult]:
        """All roles by name; cached under all_roles."""
        if self._cache and self._cache.is_available():
            cached = await self._cache.get(all_roles_key())
            if cached is not None:
                return [_role_from_cache(r) for r in cached]
        roles = await self._role_repo.list_roles()
        if self._cache and self._cache.is_available():
            await self._cache.set(
                all_roles_key(), [_role_to_cache(r) for r in roles], ttl=self._cache_ttl
            )
        return roles

    async def get_role(self, role_id: str) -> RoleResult:
        role = await self._role_repo.get_by_id(role_id)
        if role is None:
            raise ResourceNotFoundException("role", role_id)
        return role

    async def create_role(self, name: str, description: str | None = None) -> RoleResult:
        """Create a custom (non-system) role.

        Raises:
            DuplicateRoleException: If a role with the name exists.
        """
        name = name.strip()
        if not name:
            raise ValidationException("Role name is required", field="name")
        if await self._role_repo.get_by_name(name):
            raise DuplicateRoleException(name)
        created = await self._role_repo.create_role(name, description)
        await self._invalidate_caches()
        logger.info("Role created: %s", name)
        return created

    async def update_role(
        self, role_id: str, *, name: str | None = None, description: str | None = None
    ) -> RoleResult:
        """Rename and/or re-describe a role.

        Raises:
            SystemRoleException: When renaming a built-in role.
            DuplicateRoleException: If another role already has the name.
        """
        role = await self.get_role(role_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationException("Role name is required", field="name")
            if name == role.name:
                name = None
        if name is not None:
            if role.is_system:
                raise SystemRoleException(role.name, action="renamed")
            existing = await self._role_repo.get_by_name(name)
            if existing and existing.id != role_id:
                raise DuplicateRoleException(name)
        updated = await self._role_repo.update_role(
            role_id, name=name, description=description
        )
        if updated is None:
            raise ResourceNotFoundException("role", role_id)
        if name is not None:
            moved = await self._user_repo.reassign_role(role.name, name)
            logger.info("Role renamed: %s -> %s (%d users moved)", role.name, name, moved)
        await self._invalidate_caches()
        return updated

    async def delete_role(self, role_id: str) -> None:
        """Delete a custom role and its grants (cascade).

        Raises:
            SystemRoleException: For built-in roles.
        """
        role = await self.get_role(role_id)
        if role.is_system:
            raise SystemRoleException(role.name)
        await self._role_repo.delete_role(role_id)
        await self._invalidate_caches()
        logger.info("Role deleted: %s", role.name)
