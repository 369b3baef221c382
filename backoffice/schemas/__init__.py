"""Pydantic request/response schemas for the API."""

from backoffice.schemas.audit_log import (
    AuditLogCleanupResponse,
    AuditLogListResponse,
    AuditLogResponse,
    AuditLogStatisticsResponse,
)
from backoffice.schemas.health import HealthResponse, ReadinessResponse
from backoffice.schemas.permission import (
    RolePermissionResponse,
    UserPermissionsResponse,
)
from backoffice.schemas.role import RoleResponse

__all__ = [
    "AuditLogCleanupResponse",
    "AuditLogListResponse",
    "AuditLogResponse",
    "AuditLogStatisticsResponse",
    "HealthResponse",
    "ReadinessResponse",
    "RolePermissionResponse",
    "RoleResponse",
    "UserPermissionsResponse",
]
