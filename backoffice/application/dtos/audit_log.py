"""DTOs for the audit log pipeline (write, query, statistics)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuditLogEntryCreate:
    """Input for writing one audit log record. Write-once; no update."""

    user_id: str
    user_email: str
    user_name: str
    user_role: str
    action: str
    resource: str
    ip_address: str
    user_agent: str
    session_id: str
    request_id: str
    status: str
    severity: str
    category: str
    subcategory: str | None = None
    details: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class AuditLogResult:
    """Single audit log entry (read-model for list/export)."""

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


@dataclass(frozen=True)
class AuditLogFilters:
    """Filter, sort and paging options for audit log queries.

    user_email and search are substring matches; everything else is equality.
    start_date/end_date bound created_at inclusively.
    """

    user_id: str | None = None
    user_email: str | None = None
    user_role: str | None = None
    action: str | None = None
    resource: str | None = None
    status: str | None = None
    severity: str | None = None
    category: str | None = None
    subcategory: str | None = None
    ip_address: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None
    page: int = 1
    limit: int = 20
    sort_by: str = "created_at"
    sort_order: str = "DESC"


@dataclass(frozen=True)
class AuditLogPage:
    """One page of audit log entries."""

    data: list[AuditLogResult]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass(frozen=True)
class AuditLogStatistics:
    """Aggregates over the statistics period."""

    total_logs: int
    success_logs: int
    failure_logs: int
    warning_logs: int
    category_stats: dict[str, int] = field(default_factory=dict)
    severity_stats: dict[str, int] = field(default_factory=dict)
    user_stats: dict[str, int] = field(default_factory=dict)
    hourly_stats: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AuditActor:
    """Who an audit entry is attributed to."""

    user_id: str
    user_email: str
    user_name: str
    user_role: str


@dataclass(frozen=True)
class RequestMetadata:
    """Request facts attached to every audit entry."""

    ip_address: str
    user_agent: str
    session_id: str
    request_id: str
    method: str = ""
    path: str = ""
