"""Audit log API: query, statistics, suspicious activity, export, retention purge."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from backoffice.api.v1.dependencies import (
    get_audit_log_service,
    get_audit_log_service_for_write,
    require_menu_access,
    require_permission,
)
from backoffice.application.dtos.audit_log import AuditLogFilters
from backoffice.application.services.audit_log_service import AuditLogService
from backoffice.core.config import get_settings
from backoffice.core.constants import (
    AUDIT_DEFAULT_PAGE_SIZE,
    AUDIT_MAX_PAGE_SIZE,
    AUDIT_RECENT_ACTIVITY_LIMIT,
    AUDIT_SUSPICIOUS_WINDOW_MINUTES,
)
from backoffice.domain.enums import Permission, Resource
from backoffice.schemas.audit_log import (
    AuditLogCleanupResponse,
    AuditLogListResponse,
    AuditLogResponse,
    AuditLogStatisticsResponse,
)
from backoffice.shared.enums import ExportFormat, StatisticsPeriod
from backoffice.shared.utils.datetime import utc_now

router = APIRouter()

AuditReadDep = Annotated[AuditLogService, Depends(get_audit_log_service)]
CanRead = Annotated[
    object, Depends(require_permission(Resource.AUDIT_LOGS, Permission.READ))
]
CanManage = Annotated[
    object, Depends(require_permission(Resource.AUDIT_LOGS, Permission.MANAGE))
]

_EXPORT_MEDIA_TYPES = {
    ExportFormat.CSV.value: "text/csv",
    ExportFormat.JSON.value: "application/json",
}


def get_audit_filters(
    user_id: str | None = Query(None),
    user_email: str | None = Query(None, description="Substring match"),
    user_role: str | None = Query(None),
    action: str | None = Query(None),
    resource: str | None = Query(None),
    status: str | None = Query(None),
    severity: str | None = Query(None),
    category: str | None = Query(None),
    subcategory: str | None = Query(None),
    ip_address: str | None = Query(None),
    start_date: datetime | None = Query(None, description="From (inclusive) ISO8601"),
    end_date: datetime | None = Query(None, description="To (inclusive) ISO8601"),
    search: str | None = Query(None, description="Substring of name, email or action"),
    page: int = Query(1, ge=1),
    limit: int = Query(AUDIT_DEFAULT_PAGE_SIZE, ge=1, le=AUDIT_MAX_PAGE_SIZE),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("DESC", pattern="^(ASC|DESC|asc|desc)$"),
) -> AuditLogFilters:
    return AuditLogFilters(
        user_id=user_id,
        user_email=user_email,
        user_role=user_role,
        action=action,
        resource=resource,
        status=status,
        severity=severity,
        category=category,
        subcategory=subcategory,
        ip_address=ip_address,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


FiltersDep = Annotated[AuditLogFilters, Depends(get_audit_filters)]


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(filters: FiltersDep, svc: AuditReadDep, _: CanRead):
    """Paginated audit log entries matching the filters, newest first by default."""
    return AuditLogListResponse.model_validate(await svc.get_logs(filters))


@router.get("/statistics", response_model=AuditLogStatisticsResponse)
async def get_statistics(
    svc: AuditReadDep,
    _: CanRead,
    __: Annotated[object, Depends(require_menu_access("audit-logs"))],
    period: str = Query(StatisticsPeriod.WEEK.value, description="day, week, month or year"),
):
    """Aggregates for the audit-logs screen; also needs that menu."""
    return AuditLogStatisticsResponse.model_validate(await svc.get_statistics(period))


@router.get("/user/{user_id}/recent", response_model=list[AuditLogResponse])
async def get_user_recent_activity(
    user_id: str,
    svc: AuditReadDep,
    _: CanRead,
    limit: int = Query(AUDIT_RECENT_ACTIVITY_LIMIT, ge=1, le=AUDIT_MAX_PAGE_SIZE),
):
    entries = await svc.get_recent_activity(user_id, limit)
    return [AuditLogResponse.model_validate(e) for e in entries]


@router.get("/user/{user_id}/suspicious", response_model=list[AuditLogResponse])
async def detect_suspicious_activity(
    user_id: str,
    svc: AuditReadDep,
    _: CanManage,
    time_window: int = Query(AUDIT_SUSPICIOUS_WINDOW_MINUTES, ge=1, description="Minutes"),
):
    """High-severity entries for the user within the trailing window."""
    entries = await svc.detect_suspicious_activity(user_id, time_window)
    return [AuditLogResponse.model_validate(e) for e in entries]


@router.get("/export")
async def export_audit_logs(
    filters: FiltersDep,
    svc: AuditReadDep,
    _: CanRead,
    format: ExportFormat = Query(ExportFormat.CSV),
) -> Response:
    """Download every matching entry (paging ignored) as CSV or JSON."""
    body = await svc.export_logs(
        filters, format.value, max_rows=get_settings().audit_export_max_rows
    )
    filename = f"audit-logs-{utc_now().date().isoformat()}.{format.value}"
    return Response(
        content=body,
        media_type=_EXPORT_MEDIA_TYPES[format.value],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/cleanup", response_model=AuditLogCleanupResponse)
async def cleanup_old_logs(
    svc: Annotated[AuditLogService, Depends(get_audit_log_service_for_write)],
    _: CanManage,
    retention_days: int | None = Query(None, ge=1),
):
    """Delete entries older than retention_days (default from settings)."""
    days = retention_days or get_settings().audit_retention_days
    deleted = await svc.delete_old_logs(days)
    return AuditLogCleanupResponse(
        message=f"Successfully deleted {deleted} old audit logs", deleted_count=deleted
    )
