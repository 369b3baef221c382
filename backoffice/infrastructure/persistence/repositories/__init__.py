"""Persistence repositories. Re-exports for dependency injection."""

from backoffice.infrastructure.persistence.repositories.admin_user_repo import (
    AdminUserRepository,
)
from backoffice.infrastructure.persistence.repositories.audit_log_repo import (
    AuditLogRepository,
)
from backoffice.infrastructure.persistence.repositories.base import BaseRepository
from backoffice.infrastructure.persistence.repositories.role_permission_repo import (
    RolePermissionRepository,
)
from backoffice.infrastructure.persistence.repositories.role_repo import RoleRepository

__all__ = [
    "AdminUserRepository",
    "AuditLogRepository",
    "BaseRepository",
    "RolePermissionRepository",
    "RoleRepository",
]
