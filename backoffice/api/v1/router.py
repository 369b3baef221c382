"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from backoffice.api.v1.dependencies (no manual repo/service
construction).
"""

from fastapi import APIRouter

from backoffice.api.v1.endpoints import audit_log, health, permissions, roles

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(audit_log.router, prefix="/audit-logs", tags=["audit-logs"])
