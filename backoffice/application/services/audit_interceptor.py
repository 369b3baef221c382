"""Audit interceptor: one audit entry per handled admin request.

The entry is written after the handler resolves, in its own session, so a
failed audit write never rolls back the business transaction and never
changes the response. Business exceptions are re-raised unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import TypeVar

from backoffice.application.dtos.audit_log import (
    AuditActor,
    AuditLogEntryCreate,
    RequestMetadata,
)
from backoffice.application.services.audit_log_service import AuditLogService
from backoffice.core.exception_handlers import status_for
from backoffice.domain.exceptions import BackofficeException, PermissionDeniedException
from backoffice.shared.enums import LogAction, LogCategory, LogSeverity, LogStatus
from backoffice.shared.request_audit import (
    action_for_request,
    resource_for_path,
    subcategory_for_path,
)
from backoffice.shared.user_agent import classify_user_agent
from backoffice.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

AuditServiceScope = Callable[[], AbstractAsyncContextManager[AuditLogService]]


def severity_for_status(status_code: int) -> LogSeverity:
    if status_code >= 500:
        return LogSeverity.HIGH
    if status_code >= 400:
        return LogSeverity.MEDIUM
    return LogSeverity.LOW


def _error_status(error: BaseException) -> int:
    if isinstance(error, BackofficeException):
        return status_for(error)
    return getattr(error, "status_code", 500)


def build_entry(
    actor: AuditActor,
    meta: RequestMetadata,
    *,
    status_code: int,
    error: BaseException | None = None,
    duration_ms: int | None = None,
) -> AuditLogEntryCreate:
    """Audit entry for one request outcome.

    Permission denials are recorded as permission_denied / authorization /
    high whatever the path; other outcomes derive action, resource and
    category from method and path.
    """
    resource, category = resource_for_path(meta.path)
    action = action_for_request(meta.method, meta.path)
    subcategory = subcategory_for_path(meta.path)
    details: dict = {
        "method": meta.method,
        "url": meta.path,
        "status_code": status_code,
        "timestamp": utc_now().isoformat(),
    }
    if duration_ms is not None:
        details["response_time_ms"] = duration_ms

    if isinstance(error, PermissionDeniedException):
        action = LogAction.PERMISSION_DENIED
        category = LogCategory.AUTHORIZATION
        subcategory = "permission_denied"
        status = LogStatus.FAILURE
        severity = LogSeverity.HIGH
        details["attempted_resource"] = error.details.get("resource")
        details["attempted_action"] = error.details.get(
            "permission", error.details.get("permissions")
        )
        details["reason"] = error.message
    elif error is not None or status_code >= 400:
        status = LogStatus.FAILURE
        severity = severity_for_status(status_code)
        if error is not None:
            details["error"] = str(error)
            details["error_type"] = type(error).__name__
    else:
        status = LogStatus.SUCCESS
        severity = LogSeverity.LOW

    return AuditLogEntryCreate(
        user_id=actor.user_id,
        user_email=actor.user_email,
        user_name=actor.user_name,
        user_role=actor.user_role,
        action=action.value,
        resource=resource,
        ip_address=meta.ip_address,
        user_agent=meta.user_agent,
        session_id=meta.session_id,
        request_id=meta.request_id,
        status=status.value,
        severity=severity.value,
        category=category.value,
        subcategory=subcategory,
        details=details,
        metadata=classify_user_agent(meta.user_agent),
    )


class AuditInterceptor:
    """Writes the audit entry for a request; audit failures are logged, never raised.

    ``service_scope`` opens an AuditLogService bound to its own unit of work
    (committed when the scope exits).
    """

    def __init__(self, service_scope: AuditServiceScope) -> None:
        self.service_scope = service_scope

    async def record(
        self,
        actor: AuditActor,
        meta: RequestMetadata,
        *,
        status_code: int,
        error: BaseException | None = None,
        duration_ms: int | None = None,
    ) -> bool:
        """Write one entry for a finished request. Returns False if the write failed."""
        entry = build_entry(
            actor, meta, status_code=status_code, error=error, duration_ms=duration_ms
        )
        try:
            async with self.service_scope() as service:
                await service.log_activity(entry)
        except Exception as e:
            logger.error(
                "Audit write dropped (action=%s request=%s): %s",
                entry.action,
                entry.request_id,
                e,
            )
            return False
        return True

    async def around(
        self,
        actor: AuditActor,
        meta: RequestMetadata,
        handler: Callable[[], Awaitable[T]],
        success_status: int = 200,
    ) -> T:
        """Run handler, record the outcome, and return its result or re-raise its error."""
        started = time.perf_counter()
        try:
            result = await handler()
        except Exception as e:
            await self.record(
                actor,
                meta,
                status_code=_error_status(e),
                error=e,
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
            raise
        await self.record(
            actor,
            meta,
            status_code=success_status,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return result
