"""Audit log service: write helpers, reporting queries, export and retention.

Writes go through log_activity, which logs and re-raises failures as
AuditWriteFailedException. Callers that must never fail because of auditing
(the request interceptor) catch that exception themselves.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import replace
from typing import Any

from pydantic import TypeAdapter

from backoffice.application.dtos.audit_log import (
    AuditActor,
    AuditLogEntryCreate,
    AuditLogFilters,
    AuditLogPage,
    AuditLogResult,
    AuditLogStatistics,
    RequestMetadata,
)
from backoffice.application.interfaces.repositories import IAuditLogRepository
from backoffice.core.constants import (
    AUDIT_MAX_PAGE_SIZE,
    AUDIT_PERIOD_DAYS,
    AUDIT_RECENT_ACTIVITY_LIMIT,
    AUDIT_SUSPICIOUS_WINDOW_MINUTES,
    AUDIT_UNKNOWN_ROLE,
    AUDIT_UNKNOWN_USER_ID,
)
from backoffice.domain.exceptions import AuditWriteFailedException, ValidationException
from backoffice.shared.enums import (
    ExportFormat,
    LogAction,
    LogCategory,
    LogSeverity,
    LogStatus,
    StatisticsPeriod,
)
from backoffice.shared.telemetry.tracing import traced
from backoffice.shared.user_agent import classify_user_agent, extract_browser, extract_os
from backoffice.shared.utils.datetime import days_ago, minutes_ago, utc_now

logger = logging.getLogger(__name__)

_HIGH_SEVERITY_USER_ACTIONS = frozenset(
    {LogAction.USER_DELETED, LogAction.USER_SUSPENDED, LogAction.BULK_ACTION}
)

_USER_SUBCATEGORIES: dict[LogAction, str] = {
    LogAction.USER_CREATED: "user_creation",
    LogAction.USER_UPDATED: "user_update",
    LogAction.USER_DELETED: "user_deletion",
    LogAction.USER_APPROVED: "user_approval",
    LogAction.USER_REJECTED: "user_rejection",
    LogAction.USER_SUSPENDED: "user_suspension",
    LogAction.USER_ACTIVATED: "user_activation",
    LogAction.BULK_ACTION: "bulk_operation",
}

_WALLET_SUBCATEGORIES: dict[LogAction, str] = {
    LogAction.TRANSACTION_VIEWED: "transaction_view",
    LogAction.TRANSACTION_FILTERED: "transaction_filter",
    LogAction.WALLET_BALANCE_VIEWED: "balance_view",
    LogAction.TRANSACTION_EXPORTED: "transaction_export",
    LogAction.WALLET_ANALYSIS: "wallet_analysis",
}

_SUPPORT_SUBCATEGORIES: dict[LogAction, str] = {
    LogAction.TICKET_CREATED: "ticket_creation",
    LogAction.TICKET_UPDATED: "ticket_update",
    LogAction.TICKET_RESOLVED: "ticket_resolution",
    LogAction.TICKET_CLOSED: "ticket_closure",
    LogAction.CUSTOMER_CONTACTED: "customer_contact",
}

CSV_HEADERS = (
    "ID",
    "User ID",
    "User Email",
    "User Name",
    "User Role",
    "Action",
    "Resource",
    "IP Address",
    "User Agent",
    "Session ID",
    "Request ID",
    "Status",
    "Severity",
    "Category",
    "Subcategory",
    "Created At",
)

audit_log_list_adapter = TypeAdapter(list[AuditLogResult])


def _csv_row(entry: AuditLogResult) -> list[str]:
    return [
        entry.id,
        entry.user_id,
        entry.user_email,
        entry.user_name,
        entry.user_role,
        entry.action,
        entry.resource,
        entry.ip_address,
        entry.user_agent,
        entry.session_id,
        entry.request_id,
        entry.status,
        entry.severity,
        entry.category,
        entry.subcategory or "",
        entry.created_at.isoformat(),
    ]


def entries_to_csv(entries: list[AuditLogResult]) -> bytes:
    """CSV with a fixed header and every field quoted; no entries gives empty output."""
    if not entries:
        return b""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(_csv_row(e) for e in entries)
    return buffer.getvalue().encode("utf-8")


def entries_to_json(entries: list[AuditLogResult]) -> bytes:
    """Pretty-printed JSON array, same field names as the list endpoint."""
    return audit_log_list_adapter.dump_json(entries, indent=2)


def normalize_filters(filters: AuditLogFilters) -> AuditLogFilters:
    """Clamp paging and normalize sort order."""
    sort_order = filters.sort_order.upper()
    if sort_order not in ("ASC", "DESC"):
        raise ValidationException("sort_order must be ASC or DESC", field="sort_order")
    return replace(
        filters,
        page=max(1, filters.page),
        limit=min(max(1, filters.limit), AUDIT_MAX_PAGE_SIZE),
        sort_order=sort_order,
    )


class AuditLogService:
    """Application service over IAuditLogRepository."""

    def __init__(self, repo: IAuditLogRepository) -> None:
        self.repo = repo

    @traced("audit.log_activity")
    async def log_activity(self, entry: AuditLogEntryCreate) -> AuditLogResult:
        """Persist one audit entry.

        Raises:
            AuditWriteFailedException: If the store rejected the write.
        """
        logger.debug("Creating audit log: %s by %s", entry.action, entry.user_email)
        try:
            return await self.repo.create(entry)
        except Exception as e:
            logger.error(
                "Failed to create audit log (action=%s user=%s request=%s): %s",
                entry.action,
                entry.user_id,
                entry.request_id,
                e,
                exc_info=True,
            )
            raise AuditWriteFailedException(entry.action, str(e)) from e

    def _entry(
        self,
        actor: AuditActor,
        request: RequestMetadata,
        *,
        action: LogAction,
        resource: str,
        status: LogStatus,
        severity: LogSeverity,
        category: LogCategory,
        subcategory: str,
        details: dict[str, Any] | None,
        metadata: dict[str, Any],
    ) -> AuditLogEntryCreate:
        return AuditLogEntryCreate(
            user_id=actor.user_id,
            user_email=actor.user_email,
            user_name=actor.user_name,
            user_role=actor.user_role,
            action=action.value,
            resource=resource,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
            session_id=request.session_id,
            request_id=request.request_id,
            status=status.value,
            severity=severity.value,
            category=category.value,
            subcategory=subcategory,
            details=details,
            metadata=metadata,
        )

    @staticmethod
    def _short_metadata(user_agent: str) -> dict[str, str]:
        return {"browser": extract_browser(user_agent), "os": extract_os(user_agent)}

    async def log_login(
        self,
        actor: AuditActor | None,
        request: RequestMetadata,
        *,
        success: bool = True,
        attempted_email: str | None = None,
        reason: str | None = None,
    ) -> AuditLogResult:
        """Record a login attempt.

        A failed attempt for an unknown account has no actor; it is attributed
        to a placeholder principal carrying the attempted email.
        """
        if actor is None:
            actor = AuditActor(
                user_id=AUDIT_UNKNOWN_USER_ID,
                user_email=attempted_email or "",
                user_name="",
                user_role=AUDIT_UNKNOWN_ROLE,
            )
        details: dict[str, Any] = {
            "login_time": utc_now().isoformat(),
            "success": success,
            "ip_address": request.ip_address,
            "user_agent": request.user_agent,
        }
        if reason:
            details["reason"] = reason
        return await self.log_activity(
            self._entry(
                actor,
                request,
                action=LogAction.LOGIN if success else LogAction.LOGIN_FAILED,
                resource="auth",
                status=LogStatus.SUCCESS if success else LogStatus.FAILURE,
                severity=LogSeverity.LOW if success else LogSeverity.MEDIUM,
                category=LogCategory.AUTHENTICATION,
                subcategory="login_attempt",
                details=details,
                metadata=classify_user_agent(request.user_agent),
            )
        )

    async def log_logout(self, actor: AuditActor, request: RequestMetadata) -> AuditLogResult:
        return await self.log_activity(
            self._entry(
                actor,
                request,
                action=LogAction.LOGOUT,
                resource="auth",
                status=LogStatus.SUCCESS,
                severity=LogSeverity.LOW,
                category=LogCategory.AUTHENTICATION,
                subcategory="logout",
                details={"logout_time": utc_now().isoformat()},
                metadata=self._short_metadata(request.user_agent),
            )
        )

    async def log_permission_denied(
        self,
        actor: AuditActor,
        request: RequestMetadata,
        *,
        resource: str,
        attempted_action: str,
        extra: dict[str, Any] | None = None,
    ) -> AuditLogResult:
        """Record a denied permission check (failure, high severity)."""
        details: dict[str, Any] = {
            "attempted_action": attempted_action,
            "denied_at": utc_now().isoformat(),
            "reason": "Insufficient permissions",
        }
        if extra:
            details.update(extra)
        return await self.log_activity(
            self._entry(
                actor,
                request,
                action=LogAction.PERMISSION_DENIED,
                resource=resource,
                status=LogStatus.FAILURE,
                severity=LogSeverity.HIGH,
                category=LogCategory.AUTHORIZATION,
                subcategory="permission_denied",
                details=details,
                metadata=self._short_metadata(request.user_agent),
            )
        )

    async def log_user_management(
        self,
        actor: AuditActor,
        request: RequestMetadata,
        *,
        action: LogAction,
        target_user_id: str,
        target_user_email: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLogResult:
        """Record an action on another account; deletes, suspensions and bulk actions are high severity."""
        severity = (
            LogSeverity.HIGH if action in _HIGH_SEVERITY_USER_ACTIONS else LogSeverity.MEDIUM
        )
        return await self.log_activity(
            self._entry(
                actor,
                request,
                action=action,
                resource="user_management",
                status=LogStatus.SUCCESS,
                severity=severity,
                category=LogCategory.USER_MANAGEMENT,
                subcategory=_USER_SUBCATEGORIES.get(action, "user_management"),
                details={
                    "target_user_id": target_user_id,
                    "target_user_email": target_user_email,
                    **(details or {}),
                },
                metadata=self._short_metadata(request.user_agent),
            )
        )

    async def log_wallet_activity(
        self,
        actor: AuditActor,
        request: RequestMetadata,
        *,
        action: LogAction,
        details: dict[str, Any] | None = None,
    ) -> AuditLogResult:
        return await self.log_activity(
            self._entry(
                actor,
                request,
                action=action,
                resource="wallet",
                status=LogStatus.SUCCESS,
                severity=LogSeverity.MEDIUM,
                category=LogCategory.WALLET_MANAGEMENT,
                subcategory=_WALLET_SUBCATEGORIES.get(action, "wallet_activity"),
                details=details or {},
                metadata=self._short_metadata(request.user_agent),
            )
        )

    async def log_customer_support(
        self,
        actor: AuditActor,
        request: RequestMetadata,
        *,
        action: LogAction,
        ticket_id: str,
        details: dict[str, Any] | None = None,
    ) -> AuditLogResult:
        return await self.log_activity(
            self._entry(
                actor,
                request,
                action=action,
                resource="customer_support",
                status=LogStatus.SUCCESS,
                severity=LogSeverity.MEDIUM,
                category=LogCategory.CUSTOMER_SUPPORT,
                subcategory=_SUPPORT_SUBCATEGORIES.get(action, "customer_support"),
                details={"ticket_id": ticket_id, **(details or {})},
                metadata=self._short_metadata(request.user_agent),
            )
        )

    @traced("audit.get_logs")
    async def get_logs(self, filters: AuditLogFilters) -> AuditLogPage:
        return await self.repo.find_by_filters(normalize_filters(filters))

    async def get_statistics(self, period: str = StatisticsPeriod.DAY.value) -> AuditLogStatistics:
        """Aggregates over the trailing period; unknown periods mean one day."""
        days = AUDIT_PERIOD_DAYS.get(period, AUDIT_PERIOD_DAYS[StatisticsPeriod.DAY.value])
        return await self.repo.get_statistics(days_ago(days))

    async def get_recent_activity(
        self, user_id: str, limit: int = AUDIT_RECENT_ACTIVITY_LIMIT
    ) -> list[AuditLogResult]:
        return await self.repo.get_recent_activity(
            user_id, min(max(1, limit), AUDIT_MAX_PAGE_SIZE)
        )

    async def detect_suspicious_activity(
        self, user_id: str, time_window_minutes: int = AUDIT_SUSPICIOUS_WINDOW_MINUTES
    ) -> list[AuditLogResult]:
        """High-severity entries for the user within the trailing window, newest first."""
        if time_window_minutes <= 0:
            raise ValidationException("time window must be positive", field="time_window")
        logger.warning("Detecting suspicious activity for user: %s", user_id)
        return await self.repo.find_high_severity_since(
            user_id, minutes_ago(time_window_minutes)
        )

    @traced("audit.export_logs")
    async def export_logs(
        self,
        filters: AuditLogFilters,
        fmt: str = ExportFormat.CSV.value,
        max_rows: int | None = None,
    ) -> bytes:
        """Export all entries matching filters (paging ignored) as CSV or JSON bytes.

        Raises:
            ValidationException: Unknown format, or more than max_rows entries
                match (the export is refused rather than cut short).
        """
        if fmt not in ExportFormat.values():
            raise ValidationException(f"Unsupported export format: {fmt}", field="format")
        limit = max_rows + 1 if max_rows is not None else None
        entries = await self.repo.list_for_export(normalize_filters(filters), limit)
        if max_rows is not None and len(entries) > max_rows:
            logger.warning("Audit export refused: more than %s matching entries", max_rows)
            raise ValidationException(
                f"Export matches more than {max_rows} entries; narrow the filters",
                field="filters",
            )
        logger.info("Exporting %s audit logs as %s", len(entries), fmt)
        if fmt == ExportFormat.JSON.value:
            return entries_to_json(entries)
        return entries_to_csv(entries)

    @traced("audit.delete_old_logs")
    async def delete_old_logs(self, retention_days: int = 365) -> int:
        """Hard-delete entries older than retention_days; return how many were removed."""
        if retention_days < 1:
            raise ValidationException("retention_days must be at least 1", field="retention_days")
        deleted = await self.repo.delete_older_than(days_ago(retention_days))
        logger.info("Deleted %s old audit logs (retention=%s days)", deleted, retention_days)
        return deleted
