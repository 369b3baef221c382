"""Tests for the built-in RBAC catalog and permission helpers."""

from backoffice.domain.enums import AdminRole, Permission, Resource
from backoffice.domain.rbac import (
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_DESCRIPTIONS,
    permission_allows,
    roles_for_menu,
)


def test_manage_implies_every_permission() -> None:
    for permission in Permission.values():
        assert permission_allows(["manage"], permission)


def test_permission_allows_exact_only() -> None:
    assert permission_allows(["read", "update"], "update")
    assert not permission_allows(["read", "update"], "delete")
    assert not permission_allows([], "read")


def test_super_admin_defaults_to_manage_everywhere() -> None:
    grants = DEFAULT_ROLE_PERMISSIONS[AdminRole.SUPER_ADMIN]
    assert set(grants) == set(Resource)
    assert all(perms == (Permission.MANAGE,) for perms in grants.values())


def test_every_builtin_role_is_seeded_and_described() -> None:
    assert set(DEFAULT_ROLE_PERMISSIONS) == set(AdminRole)
    assert set(ROLE_DESCRIPTIONS) == set(AdminRole)


def test_auditor_is_read_only() -> None:
    for perms in DEFAULT_ROLE_PERMISSIONS[AdminRole.AUDITOR].values():
        assert perms == (Permission.READ,)


def test_roles_for_menu() -> None:
    assert roles_for_menu("audit-logs") == frozenset({"ADMIN", "AUDITOR"})
    assert "SUPPORT" in roles_for_menu("dashboard")
    assert roles_for_menu("no-such-menu") == frozenset()


def test_enum_values() -> None:
    assert Permission.values() == ["create", "read", "update", "delete", "manage"]
    assert "audit_logs" in Resource.values()
