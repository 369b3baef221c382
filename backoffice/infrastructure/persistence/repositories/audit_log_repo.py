"""Audit log repository. Write-once; implements IAuditLogRepository."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, delete, extract, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.application.dtos.audit_log import (
    AuditLogEntryCreate,
    AuditLogFilters,
    AuditLogPage,
    AuditLogResult,
    AuditLogStatistics,
)
from backoffice.core.constants import AUDIT_TOP_USERS
from backoffice.infrastructure.persistence.models.audit_log import AuditLog
from backoffice.shared.enums import LogSeverity, LogStatus
from backoffice.shared.utils.datetime import ensure_utc, utc_now

# Columns a caller may sort by; anything else falls back to created_at.
SORTABLE_COLUMNS: dict[str, Any] = {
    "created_at": AuditLog.created_at,
    "user_id": AuditLog.user_id,
    "user_email": AuditLog.user_email,
    "user_name": AuditLog.user_name,
    "user_role": AuditLog.user_role,
    "action": AuditLog.action,
    "resource": AuditLog.resource,
    "status": AuditLog.status,
    "severity": AuditLog.severity,
    "category": AuditLog.category,
    "ip_address": AuditLog.ip_address,
}


def _orm_to_result(row: AuditLog) -> AuditLogResult:
    """Map ORM to application DTO."""
    return AuditLogResult(
        id=row.id,
        user_id=row.user_id,
        user_email=row.user_email,
        user_name=row.user_name,
        user_role=row.user_role,
        action=row.action,
        resource=row.resource,
        details=row.details,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        session_id=row.session_id,
        request_id=row.request_id,
        status=row.status,
        severity=row.severity,
        category=row.category,
        subcategory=row.subcategory,
        metadata=row.meta,
        created_at=ensure_utc(row.created_at),
    )


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _filter_conditions(filters: AuditLogFilters) -> list[ColumnElement[bool]]:
    """Build WHERE conditions; unset filters are ignored."""
    conditions: list[ColumnElement[bool]] = []
    equals = {
        AuditLog.user_id: filters.user_id,
        AuditLog.user_role: filters.user_role,
        AuditLog.action: filters.action,
        AuditLog.resource: filters.resource,
        AuditLog.status: filters.status,
        AuditLog.severity: filters.severity,
        AuditLog.category: filters.category,
        AuditLog.subcategory: filters.subcategory,
        AuditLog.ip_address: filters.ip_address,
    }
    for column, value in equals.items():
        if value is not None:
            conditions.append(column == value)
    if filters.user_email:
        conditions.append(
            AuditLog.user_email.like(_like_pattern(filters.user_email), escape="\\")
        )
    if filters.start_date is not None:
        conditions.append(AuditLog.created_at >= filters.start_date)
    if filters.end_date is not None:
        conditions.append(AuditLog.created_at <= filters.end_date)
    if filters.search:
        pattern = _like_pattern(filters.search)
        conditions.append(
            or_(
                AuditLog.user_name.like(pattern, escape="\\"),
                AuditLog.user_email.like(pattern, escape="\\"),
                AuditLog.action.like(pattern, escape="\\"),
            )
        )
    return conditions


def _order_clause(filters: AuditLogFilters) -> Any:
    column = SORTABLE_COLUMNS.get(filters.sort_by, AuditLog.created_at)
    if filters.sort_order.upper() == "ASC":
        return column.asc()
    return column.desc()


class AuditLogRepository:
    """Write-once audit log repository. No update; bulk purge only for retention."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, entry: AuditLogEntryCreate) -> AuditLogResult:
        """Write one audit log entry; return created record."""
        row = AuditLog(
            user_id=entry.user_id,
            user_email=entry.user_email,
            user_name=entry.user_name,
            user_role=entry.user_role,
            action=entry.action,
            resource=entry.resource,
            details=entry.details,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            session_id=entry.session_id,
            request_id=entry.request_id,
            status=entry.status,
            severity=entry.severity,
            category=entry.category,
            subcategory=entry.subcategory,
            meta=entry.metadata,
            created_at=entry.created_at or utc_now(),
        )
        self.db.add(row)
        await self.db.flush()
        return _orm_to_result(row)

    async def find_by_filters(self, filters: AuditLogFilters) -> AuditLogPage:
        """Return one page of matching entries plus paging metadata."""
        conditions = _filter_conditions(filters)
        page = max(1, filters.page)
        limit = max(1, filters.limit)

        count_stmt = select(func.count()).select_from(AuditLog).where(*conditions)
        total = int((await self.db.execute(count_stmt)).scalar_one())

        stmt = (
            select(AuditLog)
            .where(*conditions)
            .order_by(_order_clause(filters), AuditLog.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).scalars().all()
        total_pages = math.ceil(total / limit) if total else 0
        return AuditLogPage(
            data=[_orm_to_result(r) for r in rows],
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )

    async def list_for_export(
        self, filters: AuditLogFilters, max_rows: int | None = None
    ) -> list[AuditLogResult]:
        """All matching entries (no paging), sorted like find_by_filters."""
        stmt = (
            select(AuditLog)
            .where(*_filter_conditions(filters))
            .order_by(_order_clause(filters), AuditLog.id)
        )
        if max_rows is not None:
            stmt = stmt.limit(max_rows)
        rows = (await self.db.execute(stmt)).scalars().all()
        return [_orm_to_result(r) for r in rows]

    async def get_statistics(self, since: datetime) -> AuditLogStatistics:
        """Counts by status, category, severity, top users and hour of day since a cutoff."""
        window = AuditLog.created_at >= since

        async def _grouped(column: Any, *, top: int | None = None) -> dict[str, int]:
            count = func.count(AuditLog.id)
            stmt = select(column, count).where(window).group_by(column)
            if top is not None:
                stmt = stmt.order_by(count.desc(), column).limit(top)
            rows = (await self.db.execute(stmt)).all()
            return {str(key): int(n) for key, n in rows if key is not None}

        by_status = await _grouped(AuditLog.status)
        category_stats = await _grouped(AuditLog.category)
        severity_stats = await _grouped(AuditLog.severity)
        user_stats = await _grouped(AuditLog.user_email, top=AUDIT_TOP_USERS)

        hour = extract("hour", AuditLog.created_at)
        hour_rows = (
            await self.db.execute(
                select(hour, func.count(AuditLog.id)).where(window).group_by(hour)
            )
        ).all()
        hourly_stats = {f"{int(h):02d}:00": int(n) for h, n in hour_rows if h is not None}

        return AuditLogStatistics(
            total_logs=sum(by_status.values()),
            success_logs=by_status.get(LogStatus.SUCCESS.value, 0),
            failure_logs=by_status.get(LogStatus.FAILURE.value, 0),
            warning_logs=by_status.get(LogStatus.WARNING.value, 0),
            category_stats=category_stats,
            severity_stats=severity_stats,
            user_stats=user_stats,
            hourly_stats=hourly_stats,
        )

    async def get_recent_activity(self, user_id: str, limit: int) -> list[AuditLogResult]:
        """Newest entries for a user."""
        stmt = (
            select(AuditLog)
            .where(AuditLog.user_id == user_id)
            .order_by(AuditLog.created_at.desc(), AuditLog.id)
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).scalars().all()
        return [_orm_to_result(r) for r in rows]

    async def find_high_severity_since(
        self, user_id: str, since: datetime
    ) -> list[AuditLogResult]:
        """HIGH-severity entries for a user created strictly after ``since``, newest first."""
        stmt = (
            select(AuditLog)
            .where(
                AuditLog.user_id == user_id,
                AuditLog.severity == LogSeverity.HIGH.value,
                AuditLog.created_at > since,
            )
            .order_by(AuditLog.created_at.desc(), AuditLog.id)
        )
        rows = (await self.db.execute(stmt)).scalars().all()
        return [_orm_to_result(r) for r in rows]

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Bulk-delete entries created before cutoff; returns rows removed.

        Uses a Core DELETE so the per-row before_delete guard does not fire.
        """
        result = await self.db.execute(
            delete(AuditLog)
            .where(AuditLog.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
