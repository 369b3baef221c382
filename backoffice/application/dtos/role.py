"""DTOs for role and role-permission use cases (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RoleResult:
    """Role read-model."""

    id: str
    name: str
    description: str | None
    is_system: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RolePermissionResult:
    """Grant read-model: the permissions a role holds on one resource."""

    id: str
    role_id: str
    role: str
    resource: str
    permissions: tuple[str, ...]
    created_at: datetime | None = None
    updated_at: datetime | None = None
