"""Tests for the request audit interceptor (entry mapping and failure isolation)."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

from backoffice.application.dtos.audit_log import AuditActor, RequestMetadata
from backoffice.application.services.audit_interceptor import (
    AuditInterceptor,
    build_entry,
    severity_for_status,
)
from backoffice.domain.exceptions import (
    AuditWriteFailedException,
    PermissionDeniedException,
    ResourceNotFoundException,
)
from backoffice.shared.enums import LogSeverity

ACTOR = AuditActor(
    user_id="admin-1", user_email="admin@example.com", user_name="admin", user_role="ADMIN"
)


def _meta(method: str = "GET", path: str = "/api/v1/roles") -> RequestMetadata:
    return RequestMetadata(
        ip_address="10.0.0.1",
        user_agent="Mozilla/5.0 (X11; Linux x86_64) Firefox/121.0",
        session_id="sess-1",
        request_id="req-1",
        method=method,
        path=path,
    )


def _scope_for(service):
    @asynccontextmanager
    async def _scope():
        yield service

    return _scope


def test_severity_for_status() -> None:
    assert severity_for_status(200) is LogSeverity.LOW
    assert severity_for_status(404) is LogSeverity.MEDIUM
    assert severity_for_status(503) is LogSeverity.HIGH


def test_successful_request_entry() -> None:
    entry = build_entry(ACTOR, _meta(), status_code=200, duration_ms=12)
    assert entry.action == "data_viewed"
    assert entry.resource == "roles"
    assert entry.category == "authorization"
    assert entry.subcategory == "api_call"
    assert (entry.status, entry.severity) == ("success", "low")
    assert entry.details["status_code"] == 200
    assert entry.details["response_time_ms"] == 12
    assert entry.metadata["os"] == "Linux"


def test_permission_denied_entry() -> None:
    error = PermissionDeniedException(resource="users", permission="delete")
    entry = build_entry(
        ACTOR, _meta("DELETE", "/api/v1/users/42"), status_code=403, error=error
    )
    assert entry.action == "permission_denied"
    assert entry.category == "authorization"
    assert entry.subcategory == "permission_denied"
    assert (entry.status, entry.severity) == ("failure", "high")
    assert entry.details["attempted_resource"] == "users"
    assert entry.details["attempted_action"] == "delete"
    assert entry.user_id == "admin-1"


def test_error_entry_records_error_type() -> None:
    entry = build_entry(
        ACTOR,
        _meta("PUT", "/api/v1/roles/1"),
        status_code=500,
        error=RuntimeError("boom"),
    )
    assert (entry.status, entry.severity) == ("failure", "high")
    assert entry.details["error_type"] == "RuntimeError"
    assert entry.details["error"] == "boom"


def test_client_error_without_exception() -> None:
    entry = build_entry(ACTOR, _meta(), status_code=404)
    assert (entry.status, entry.severity) == ("failure", "medium")
    assert "error" not in entry.details


async def test_record_writes_one_entry() -> None:
    service = AsyncMock()
    interceptor = AuditInterceptor(_scope_for(service))
    assert await interceptor.record(ACTOR, _meta(), status_code=200) is True
    service.log_activity.assert_awaited_once()
    (entry,) = service.log_activity.await_args.args
    assert entry.request_id == "req-1"


async def test_record_swallows_audit_failures() -> None:
    service = AsyncMock()
    service.log_activity.side_effect = AuditWriteFailedException("data_viewed", "disk full")
    interceptor = AuditInterceptor(_scope_for(service))
    assert await interceptor.record(ACTOR, _meta(), status_code=200) is False


async def test_around_returns_result_even_if_audit_fails() -> None:
    service = AsyncMock()
    service.log_activity.side_effect = RuntimeError("store down")
    interceptor = AuditInterceptor(_scope_for(service))

    async def handler() -> str:
        return "ok"

    assert await interceptor.around(ACTOR, _meta(), handler) == "ok"


async def test_around_reraises_business_error_after_recording() -> None:
    service = AsyncMock()
    interceptor = AuditInterceptor(_scope_for(service))

    async def handler() -> None:
        raise ResourceNotFoundException("role", "r-1")

    with pytest.raises(ResourceNotFoundException):
        await interceptor.around(ACTOR, _meta(), handler)
    (entry,) = service.log_activity.await_args.args
    assert entry.status == "failure"
    assert entry.details["status_code"] == 404
    assert entry.details["error_type"] == "ResourceNotFoundException"
