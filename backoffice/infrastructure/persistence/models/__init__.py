"""Persistence models: ORM entities and mixins."""

from backoffice.infrastructure.persistence.models.admin_user import AdminUser
from backoffice.infrastructure.persistence.models.audit_log import AuditLog
from backoffice.infrastructure.persistence.models.mixins import TimestampMixin, UuidMixin
from backoffice.infrastructure.persistence.models.permission import RolePermission
from backoffice.infrastructure.persistence.models.role import Role

__all__ = [
    "AdminUser",
    "AuditLog",
    "Role",
    "RolePermission",
    "TimestampMixin",
    "UuidMixin",
]
