"""Application DTOs (no ORM dependency)."""

from backoffice.application.dtos.audit_log import (
    AuditActor,
    AuditLogEntryCreate,
    AuditLogFilters,
    AuditLogPage,
    AuditLogResult,
    AuditLogStatistics,
    RequestMetadata,
)
from backoffice.application.dtos.permission import (
    PrincipalResult,
    ResourcePermissions,
    UserPermissions,
)
from backoffice.application.dtos.rate_limit import (
    RateLimitDecision,
    RateLimitOutcome,
    RateLimitRule,
    RateLimitWindow,
)
from backoffice.application.dtos.role import RolePermissionResult, RoleResult

__all__ = [
    "AuditActor",
    "AuditLogEntryCreate",
    "AuditLogFilters",
    "AuditLogPage",
    "AuditLogResult",
    "AuditLogStatistics",
    "PrincipalResult",
    "RateLimitDecision",
    "RateLimitOutcome",
    "RateLimitRule",
    "RateLimitWindow",
    "RequestMetadata",
    "ResourcePermissions",
    "RolePermissionResult",
    "RoleResult",
    "UserPermissions",
]
