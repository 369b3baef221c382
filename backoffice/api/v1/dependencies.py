"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for DB sessions, the current principal,
permission guards and application services. Services are built from
infrastructure implementations here; routes depend only on these
dependencies, not on infra directly.

The cache (app.state.cache) is set in the app lifespan: Redis when enabled,
otherwise an in-process cache.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backoffice.application.dtos.permission import PrincipalResult
from backoffice.application.services.audit_interceptor import AuditServiceScope
from backoffice.application.services.audit_log_service import AuditLogService
from backoffice.application.services.authorization_service import AuthorizationService
from backoffice.application.services.role_permission_service import (
    RolePermissionService,
)
from backoffice.application.services.role_service import RoleService
from backoffice.core.config import get_settings
from backoffice.domain.enums import Permission, Resource
from backoffice.domain.exceptions import AuthenticationException
from backoffice.infrastructure.cache import CacheProtocol
from backoffice.infrastructure.persistence.database import (
    after_commit,
    get_db,
    get_db_transactional,
)
from backoffice.infrastructure.persistence.repositories import (
    AdminUserRepository,
    AuditLogRepository,
    RolePermissionRepository,
    RoleRepository,
)
from backoffice.infrastructure.services import PermissionResolver

ReadSession = Annotated[AsyncSession, Depends(get_db)]
WriteSession = Annotated[AsyncSession, Depends(get_db_transactional)]


def get_cache(request: Request) -> CacheProtocol | None:
    """Shared cache from app state (None when the app was started without one)."""
    return getattr(request.app.state, "cache", None)


def _authorization_service(
    db: AsyncSession, cache: CacheProtocol | None
) -> AuthorizationService:
    settings = get_settings()
    return AuthorizationService(
        permission_resolver=PermissionResolver(db),
        cache=cache,
        cache_ttl=settings.cache_ttl_user_permissions,
        super_role=settings.super_role,
        role_cache_ttl=settings.cache_ttl_role_permissions,
    )


async def get_authorization_service(
    db: ReadSession,
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> AuthorizationService:
    """AuthorizationService with the DB permission resolver and the shared cache."""
    return _authorization_service(db, cache)


def get_current_principal(request: Request) -> PrincipalResult:
    """Principal set by PrincipalContextMiddleware; 401 when absent."""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise AuthenticationException()
    return principal


CurrentPrincipal = Annotated[PrincipalResult, Depends(get_current_principal)]


def require_permission(resource: Resource, permission: Permission):
    """Dependency factory: require a principal holding permission (or MANAGE) on resource."""

    async def _require(
        principal: CurrentPrincipal,
        auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> PrincipalResult:
        await auth_svc.check_permission(principal.id, resource.value, permission.value)
        return principal

    return _require


def require_any_permission(resource: Resource, permissions: list[Permission]):
    """Dependency factory: require at least one of permissions on resource."""

    async def _require(
        principal: CurrentPrincipal,
        auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> PrincipalResult:
        await auth_svc.check_any_permission(
            principal.id, resource.value, [p.value for p in permissions]
        )
        return principal

    return _require


def require_menu_access(menu_key: str):
    """Dependency factory: require a role that may open the backoffice menu."""

    async def _require(
        principal: CurrentPrincipal,
        auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> PrincipalResult:
        await auth_svc.check_menu_access(principal.id, menu_key)
        return principal

    return _require


async def get_role_service(
    db: ReadSession,
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> RoleService:
    """Role service for reads (cached role list)."""
    return RoleService(
        RoleRepository(db),
        AdminUserRepository(db),
        _authorization_service(db, cache),
        cache=cache,
        cache_ttl=get_settings().cache_ttl_roles,
    )


async def get_role_service_for_write(
    db: WriteSession,
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> RoleService:
    """Role service for create/update/delete (transactional).

    Caches are invalidated on each mutation and again after the commit.
    """
    return RoleService(
        RoleRepository(db),
        AdminUserRepository(db),
        _authorization_service(db, cache),
        cache=cache,
        cache_ttl=get_settings().cache_ttl_roles,
        after_commit=partial(after_commit, db),
    )


async def get_role_permission_service(
    db: ReadSession,
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> RolePermissionService:
    return RolePermissionService(
        RoleRepository(db), RolePermissionRepository(db), _authorization_service(db, cache)
    )


async def get_role_permission_service_for_write(
    db: WriteSession,
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> RolePermissionService:
    """Grant administration (transactional); mutations invalidate permission caches."""
    return RolePermissionService(
        RoleRepository(db),
        RolePermissionRepository(db),
        _authorization_service(db, cache),
        after_commit=partial(after_commit, db),
    )


async def get_audit_log_service(db: ReadSession) -> AuditLogService:
    return AuditLogService(AuditLogRepository(db))


async def get_audit_log_service_for_write(db: WriteSession) -> AuditLogService:
    """Audit service for the retention purge (transactional)."""
    return AuditLogService(AuditLogRepository(db))


def make_audit_service_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AuditServiceScope:
    """Scope factory for AuditInterceptor: one committed session per audit write."""

    @asynccontextmanager
    async def _scope() -> AsyncIterator[AuditLogService]:
        async with session_factory() as session:
            async with session.begin():
                yield AuditLogService(AuditLogRepository(session))

    return _scope
