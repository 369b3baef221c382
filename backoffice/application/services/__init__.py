"""Application services: authorization, role management, rate limiting, audit."""

from backoffice.application.services.audit_interceptor import AuditInterceptor
from backoffice.application.services.audit_log_service import AuditLogService
from backoffice.application.services.authorization_service import AuthorizationService
from backoffice.application.services.rate_limiter import RateLimiter, rules_from_settings
from backoffice.application.services.role_permission_service import (
    RolePermissionService,
)
from backoffice.application.services.role_service import RoleService

__all__ = [
    "AuditInterceptor",
    "AuditLogService",
    "AuthorizationService",
    "RateLimiter",
    "RolePermissionService",
    "RoleService",
    "rules_from_settings",
]
