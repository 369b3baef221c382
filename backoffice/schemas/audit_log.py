"""Audit log API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    """Single audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    user_email: str
    user_name: str
    user_role: str
    action: str
    resource: str
    details: dict[str, Any] | None
    ip_address: str
    user_agent: str
    session_id: str
    request_id: str
    status: str
    severity: str
    category: str
    subcategory: str | None
    metadata: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """One page of audit log entries."""

    model_config = ConfigDict(from_attributes=True)

    data: list[AuditLogResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class AuditLogStatisticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_logs: int
    success_logs: int
    failure_logs: int
    warning_logs: int
    category_stats: dict[str, int]
    severity_stats: dict[str, int]
    user_stats: dict[str, int]
    hourly_stats: dict[str, int]


class AuditLogCleanupResponse(BaseModel):
    message: str
    deleted_count: int
