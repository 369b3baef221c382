"""Role and grant administration against SQLite, with permission resolution end to end."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.application.services.authorization_service import AuthorizationService
from backoffice.application.services.role_permission_service import (
    RolePermissionService,
)
from backoffice.application.services.role_service import RoleService
from backoffice.domain.exceptions import (
    DuplicateRoleException,
    ResourceNotFoundException,
    SystemRoleException,
    ValidationException,
)
from backoffice.infrastructure.cache import InMemoryCache
from backoffice.infrastructure.persistence.repositories import (
    AdminUserRepository,
    RolePermissionRepository,
    RoleRepository,
)
from backoffice.infrastructure.services import PermissionResolver


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def authorization(db_session: AsyncSession, cache: InMemoryCache) -> AuthorizationService:
    return AuthorizationService(PermissionResolver(db_session), cache=cache)


@pytest.fixture
def grants(db_session: AsyncSession, authorization: AuthorizationService) -> RolePermissionService:
    return RolePermissionService(
        RoleRepository(db_session), RolePermissionRepository(db_session), authorization
    )


@pytest.fixture
def roles(
    db_session: AsyncSession, authorization: AuthorizationService, cache: InMemoryCache
) -> RoleService:
    return RoleService(
        RoleRepository(db_session), AdminUserRepository(db_session), authorization, cache=cache
    )


async def test_seed_defaults_once(grants: RolePermissionService, roles: RoleService) -> None:
    assert await grants.initialize_default_permissions() is True
    seeded = await grants.get_all_role_permissions()
    assert await grants.initialize_default_permissions() is False
    assert len(await grants.get_all_role_permissions()) == len(seeded)

    names = [r.name for r in await roles.list_roles()]
    assert names == sorted(["ADMIN", "AUDITOR", "MODERATOR", "SUPER_ADMIN", "SUPPORT"])
    assert all(r.is_system for r in await roles.list_roles())

    auditor = {g.resource: g.permissions for g in await grants.get_role_permissions("AUDITOR")}
    assert auditor["audit_logs"] == ("read",)


async def test_create_grant_merges_into_existing_row(
    grants: RolePermissionService, roles: RoleService
) -> None:
    await roles.create_role("ANALYST")
    first = await grants.create_role_permission("ANALYST", "wallets", ["read"])
    merged = await grants.create_role_permission("ANALYST", "wallets", ["update", "read"])
    assert merged.id == first.id
    assert merged.permissions == ("read", "update")
    assert len(await grants.get_role_permissions("ANALYST")) == 1


async def test_grant_validation(grants: RolePermissionService, roles: RoleService) -> None:
    await roles.create_role("ANALYST")
    with pytest.raises(ResourceNotFoundException):
        await grants.create_role_permission("NOPE", "wallets", ["read"])
    with pytest.raises(ValidationException):
        await grants.create_role_permission("ANALYST", "spaceships", ["read"])
    with pytest.raises(ValidationException):
        await grants.create_role_permission("ANALYST", "wallets", ["fly"])
    with pytest.raises(ValidationException):
        await grants.create_role_permission("ANALYST", "wallets", [])


async def test_update_and_delete_grant(grants: RolePermissionService, roles: RoleService) -> None:
    await roles.create_role("ANALYST")
    grant = await grants.create_role_permission("ANALYST", "wallets", ["read", "update"])
    updated = await grants.update_role_permission(grant.id, permissions=["delete"])
    assert updated.permissions == ("delete",)
    await grants.delete_role_permission(grant.id)
    assert await grants.get_role_permissions("ANALYST") == []
    with pytest.raises(ResourceNotFoundException):
        await grants.delete_role_permission(grant.id)
    with pytest.raises(ResourceNotFoundException):
        await grants.update_role_permission("missing", permissions=["read"])


async def test_grant_change_visible_to_next_check(
    db_session: AsyncSession,
    grants: RolePermissionService,
    roles: RoleService,
    authorization: AuthorizationService,
) -> None:
    """A cached denial does not outlive the grant that lifts it."""
    await roles.create_role("ANALYST")
    user = await AdminUserRepository(db_session).create_admin_user(
        "ana@example.com", "ana", "ANALYST"
    )
    assert await authorization.has_permission(user.id, "wallets", "read") is False
    await grants.create_role_permission("ANALYST", "wallets", ["read"])
    assert await authorization.has_permission(user.id, "wallets", "read") is True


async def test_role_crud_rules(roles: RoleService, grants: RolePermissionService) -> None:
    await grants.initialize_default_permissions()
    custom = await roles.create_role("  ANALYST ", "Looks at numbers")
    assert custom.name == "ANALYST"
    assert custom.is_system is False

    with pytest.raises(DuplicateRoleException):
        await roles.create_role("ANALYST")
    with pytest.raises(DuplicateRoleException):
        await roles.update_role(custom.id, name="ADMIN")

    renamed = await roles.update_role(custom.id, name="DATA_ANALYST")
    assert renamed.name == "DATA_ANALYST"
    assert "DATA_ANALYST" in [r.name for r in await roles.list_roles()]

    admin = next(r for r in await roles.list_roles() if r.name == "ADMIN")
    with pytest.raises(SystemRoleException):
        await roles.delete_role(admin.id)
    with pytest.raises(SystemRoleException):
        await roles.update_role(admin.id, name="ADMINS")
    described = await roles.update_role(admin.id, name="ADMIN", description="Operators")
    assert (described.name, described.description) == ("ADMIN", "Operators")

    await grants.create_role_permission("DATA_ANALYST", "wallets", ["read"])
    await roles.delete_role(custom.id)
    with pytest.raises(ResourceNotFoundException):
        await roles.get_role(custom.id)
    assert await grants.get_role_permissions("DATA_ANALYST") == []


async def test_role_list_served_from_cache(roles: RoleService, cache: InMemoryCache) -> None:
    await roles.create_role("ANALYST")
    first = await roles.list_roles()
    await cache.set("all_roles", [], ttl=60)
    assert await roles.list_roles() == []
    await cache.delete("all_roles")
    assert [r.name for r in await roles.list_roles()] == [r.name for r in first]


async def test_inactive_principal_resolution(
    db_session: AsyncSession, grants: RolePermissionService, authorization: AuthorizationService
) -> None:
    await grants.initialize_default_permissions()
    users = AdminUserRepository(db_session)
    pending = await users.create_admin_user("p@example.com", "p", "ADMIN", status="PENDING")
    disabled = await users.create_admin_user(
        "d@example.com", "d", "ADMIN", is_active=False
    )
    admin = await users.create_admin_user("a@example.com", "a", "ADMIN")

    assert await authorization.has_permission(pending.id, "users", "read") is False
    assert await authorization.has_permission(disabled.id, "users", "read") is False
    assert await authorization.has_permission(admin.id, "users", "read") is True
    assert await authorization.has_permission(admin.id, "users", "delete") is False


async def test_resolver_fails_closed_on_store_error() -> None:
    from unittest.mock import AsyncMock

    from sqlalchemy.exc import OperationalError

    from backoffice.domain.exceptions import StoreUnavailableException

    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    svc = AuthorizationService(PermissionResolver(session))
    with pytest.raises(StoreUnavailableException):
        await svc.has_permission("admin-1", "users", "read")
    with pytest.raises(StoreUnavailableException):
        await PermissionResolver(session).get_role_grants("ADMIN")


async def test_renamed_role_keeps_its_holders(
    db_session: AsyncSession,
    roles: RoleService,
    grants: RolePermissionService,
    authorization: AuthorizationService,
) -> None:
    custom = await roles.create_role("ANALYST")
    await grants.create_role_permission("ANALYST", "wallets", ["read"])
    users = AdminUserRepository(db_session)
    analyst = await users.create_admin_user("an@example.com", "an", "ANALYST")
    other = await users.create_admin_user("su@example.com", "su", "SUPPORT")
    assert await authorization.has_permission(analyst.id, "wallets", "read") is True

    await roles.update_role(custom.id, name="DATA_ANALYST")

    assert (await users.get_principal(analyst.id)).role == "DATA_ANALYST"
    assert (await users.get_principal(other.id)).role == "SUPPORT"
    assert await authorization.has_permission(analyst.id, "wallets", "read") is True
    assert (await authorization.get_user_permissions(analyst.id)).role == "DATA_ANALYST"
