"""Repository interfaces (ports) for the application layer.

Protocols define contracts; infrastructure implements them. Services
depend on these so tests can swap in AsyncMock fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from backoffice.application.dtos.audit_log import (
    AuditLogEntryCreate,
    AuditLogFilters,
    AuditLogPage,
    AuditLogResult,
    AuditLogStatistics,
)
from backoffice.application.dtos.permission import PrincipalResult
from backoffice.application.dtos.role import RolePermissionResult, RoleResult


class IAdminUserRepository(Protocol):
    """Principal lookup, plus role reassignment when a role is renamed."""

    async def get_principal(self, principal_id: str) -> PrincipalResult | None: ...

    async def reassign_role(self, old_role: str, new_role: str) -> int: ...


class IRoleRepository(Protocol):
    """Role persistence."""

    async def get_by_id(self, role_id: str) -> RoleResult | None: ...

    async def get_by_name(self, name: str) -> RoleResult | None: ...

    async def list_roles(self) -> list[RoleResult]: ...

    async def create_role(
        self, name: str, description: str | None = None, *, is_system: bool = False
    ) -> RoleResult: ...

    async def update_role(
        self, role_id: str, *, name: str | None = None, description: str | None = None
    ) -> RoleResult | None: ...

    async def delete_role(self, role_id: str) -> bool: ...


class IRolePermissionRepository(Protocol):
    """Role grant persistence (one row per role + resource)."""

    async def get_by_id(self, grant_id: str) -> RolePermissionResult | None: ...

    async def get_for_role_resource(
        self, role_name: str, resource: str
    ) -> RolePermissionResult | None: ...

    async def get_role_grants(self, role_name: str) -> list[RolePermissionResult]: ...

    async def list_all(self) -> list[RolePermissionResult]: ...

    async def count(self) -> int: ...

    async def upsert_merge(
        self, role_id: str, resource: str, permissions: list[str]
    ) -> RolePermissionResult: ...

    async def update_grant(
        self,
        grant_id: str,
        *,
        role_id: str | None = None,
        resource: str | None = None,
        permissions: list[str] | None = None,
    ) -> RolePermissionResult | None: ...

    async def delete_grant(self, grant_id: str) -> RolePermissionResult | None: ...


class IAuditLogRepository(Protocol):
    """Write-once audit log store with reporting queries."""

    async def create(self, entry: AuditLogEntryCreate) -> AuditLogResult: ...

    async def find_by_filters(self, filters: AuditLogFilters) -> AuditLogPage: ...

    async def list_for_export(
        self, filters: AuditLogFilters, max_rows: int | None = None
    ) -> list[AuditLogResult]: ...

    async def get_statistics(self, since: datetime) -> AuditLogStatistics: ...

    async def get_recent_activity(
        self, user_id: str, limit: int
    ) -> list[AuditLogResult]: ...

    async def find_high_severity_since(
        self, user_id: str, since: datetime
    ) -> list[AuditLogResult]: ...

    async def delete_older_than(self, cutoff: datetime) -> int: ...
