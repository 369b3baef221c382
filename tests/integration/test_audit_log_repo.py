"""Audit log repository and service against SQLite: filters, windows, stats, purge."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.application.dtos.audit_log import AuditLogEntryCreate, AuditLogFilters
from backoffice.application.services.audit_log_service import (
    AuditLogService,
    audit_log_list_adapter,
)
from backoffice.domain.exceptions import ValidationException
from backoffice.infrastructure.persistence.repositories import AuditLogRepository
from backoffice.shared.utils.datetime import utc_now


def _entry(**overrides) -> AuditLogEntryCreate:
    values = dict(
        user_id="admin-1",
        user_email="admin@example.com",
        user_name="Ada Admin",
        user_role="ADMIN",
        action="data_viewed",
        resource="roles",
        ip_address="10.0.0.1",
        user_agent="ua",
        session_id="sess-1",
        request_id="req-1",
        status="success",
        severity="low",
        category="data_access",
        details={"k": "v"},
        metadata={"browser": "Unknown"},
    )
    values.update(overrides)
    return AuditLogEntryCreate(**values)


@pytest.fixture
def repo(db_session: AsyncSession) -> AuditLogRepository:
    return AuditLogRepository(db_session)


@pytest.fixture
def service(repo: AuditLogRepository) -> AuditLogService:
    return AuditLogService(repo)


async def test_create_returns_stored_entry(repo: AuditLogRepository) -> None:
    created = await repo.create(_entry())
    assert created.id
    assert created.created_at.tzinfo is not None
    assert created.metadata == {"browser": "Unknown"}
    assert created.details == {"k": "v"}


async def test_filters_and_paging(repo: AuditLogRepository, service: AuditLogService) -> None:
    now = utc_now()
    for i in range(5):
        await repo.create(_entry(request_id=f"req-{i}", created_at=now - timedelta(minutes=i)))
    await repo.create(_entry(user_id="other", user_email="bob@corp.test", status="failure"))

    page = await service.get_logs(AuditLogFilters(user_id="admin-1", page=2, limit=2))
    assert page.total == 5
    assert page.total_pages == 3
    assert page.has_next and page.has_prev
    # Newest first: page 2 holds the third and fourth newest.
    assert [e.request_id for e in page.data] == ["req-2", "req-3"]

    failures = await service.get_logs(AuditLogFilters(status="failure"))
    assert [e.user_id for e in failures.data] == ["other"]

    by_email = await service.get_logs(AuditLogFilters(user_email="corp.te"))
    assert by_email.total == 1

    oldest_first = await service.get_logs(
        AuditLogFilters(user_id="admin-1", sort_order="asc", limit=1)
    )
    assert oldest_first.data[0].request_id == "req-4"


async def test_search_and_date_range(repo: AuditLogRepository, service: AuditLogService) -> None:
    now = utc_now()
    await repo.create(_entry(action="login", created_at=now - timedelta(days=3)))
    await repo.create(_entry(action="permission_denied", created_at=now - timedelta(hours=1)))

    recent = await service.get_logs(AuditLogFilters(start_date=now - timedelta(days=1)))
    assert [e.action for e in recent.data] == ["permission_denied"]

    searched = await service.get_logs(AuditLogFilters(search="denied"))
    assert searched.total == 1
    assert (await service.get_logs(AuditLogFilters(search="Ada"))).total == 2


async def test_empty_result_page(service: AuditLogService) -> None:
    page = await service.get_logs(AuditLogFilters(user_id="nobody"))
    assert page.total == 0
    assert page.total_pages == 0
    assert page.data == []
    assert not page.has_next and not page.has_prev


async def test_suspicious_activity_window(repo: AuditLogRepository, service: AuditLogService) -> None:
    """Only HIGH entries inside the trailing window count, newest first."""
    now = utc_now()
    await repo.create(_entry(severity="low", created_at=now - timedelta(minutes=90)))
    await repo.create(
        _entry(severity="high", request_id="old-high", created_at=now - timedelta(minutes=50))
    )
    await repo.create(
        _entry(severity="high", request_id="new-high", created_at=now - timedelta(minutes=10))
    )
    await repo.create(_entry(severity="low", created_at=now - timedelta(minutes=1)))
    await repo.create(_entry(user_id="someone-else", severity="high"))

    found = await service.detect_suspicious_activity("admin-1", 60)
    assert [e.request_id for e in found] == ["new-high", "old-high"]
    assert [e.request_id for e in await service.detect_suspicious_activity("admin-1", 30)] == [
        "new-high"
    ]


async def test_recent_activity(repo: AuditLogRepository, service: AuditLogService) -> None:
    now = utc_now()
    for i in range(4):
        await repo.create(_entry(request_id=f"r{i}", created_at=now - timedelta(seconds=i)))
    recent = await service.get_recent_activity("admin-1", limit=2)
    assert [e.request_id for e in recent] == ["r0", "r1"]


async def test_statistics(repo: AuditLogRepository, service: AuditLogService) -> None:
    now = utc_now()
    await repo.create(_entry(status="success", category="authentication"))
    await repo.create(_entry(status="failure", severity="high", category="authorization"))
    await repo.create(_entry(status="warning", user_email="bob@example.com"))
    await repo.create(_entry(status="failure", created_at=now - timedelta(days=10)))

    stats = await service.get_statistics("week")
    assert stats.total_logs == 3
    assert (stats.success_logs, stats.failure_logs, stats.warning_logs) == (1, 1, 1)
    assert stats.category_stats["authorization"] == 1
    assert stats.severity_stats == {"low": 2, "high": 1}
    assert stats.user_stats == {"admin@example.com": 2, "bob@example.com": 1}
    assert sum(stats.hourly_stats.values()) == 3

    assert (await service.get_statistics("month")).total_logs == 4


async def test_retention_purge_is_idempotent(
    repo: AuditLogRepository, service: AuditLogService
) -> None:
    now = utc_now()
    await repo.create(_entry(request_id="ancient", created_at=now - timedelta(days=400)))
    await repo.create(_entry(request_id="recent", created_at=now - timedelta(days=10)))

    assert await service.delete_old_logs(365) == 1
    assert await service.delete_old_logs(365) == 0
    remaining = await service.get_logs(AuditLogFilters())
    assert [e.request_id for e in remaining.data] == ["recent"]


async def test_export_ignores_paging(repo: AuditLogRepository, service: AuditLogService) -> None:
    for i in range(3):
        await repo.create(_entry(request_id=f"x{i}"))
    body = await service.export_logs(AuditLogFilters(page=3, limit=1), "json")
    exported = audit_log_list_adapter.validate_json(body)
    assert sorted(e.request_id for e in exported) == ["x0", "x1", "x2"]

    csv_body = await service.export_logs(AuditLogFilters(), "csv", max_rows=3)
    assert len(csv_body.decode().splitlines()) == 4


async def test_export_over_cap_is_refused(
    repo: AuditLogRepository, service: AuditLogService
) -> None:
    for i in range(3):
        await repo.create(_entry(request_id=f"x{i}"))
    await repo.create(_entry(user_id="admin-2", request_id="y0"))
    with pytest.raises(ValidationException) as exc:
        await service.export_logs(AuditLogFilters(), "csv", max_rows=2)
    assert exc.value.details == {"field": "filters"}

    narrowed = await service.export_logs(AuditLogFilters(user_id="admin-2"), "json", max_rows=2)
    assert [e.request_id for e in audit_log_list_adapter.validate_json(narrowed)] == ["y0"]


async def test_export_with_no_matches(service: AuditLogService) -> None:
    assert await service.export_logs(AuditLogFilters(user_id="nobody"), "csv") == b""
    assert await service.export_logs(AuditLogFilters(user_id="nobody"), "json") == b"[]"
