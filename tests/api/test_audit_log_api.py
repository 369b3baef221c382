"""Audit log API: request auditing, queries, export and retention purge."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from backoffice.application.dtos.audit_log import AuditLogEntryCreate
from backoffice.core.config import get_settings
from backoffice.infrastructure.persistence.database import get_session_factory
from backoffice.infrastructure.persistence.repositories import AuditLogRepository
from backoffice.shared.utils.datetime import utc_now


async def _store(**overrides) -> None:
    values = dict(
        user_id="admin-1",
        user_email="admin@example.com",
        user_name="admin",
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
    )
    values.update(overrides)
    async with get_session_factory()() as session:
        async with session.begin():
            await AuditLogRepository(session).create(AuditLogEntryCreate(**values))


@pytest.fixture
async def root_headers(make_principal, headers_for) -> dict[str, str]:
    return headers_for(await make_principal("SUPER_ADMIN", email="root@example.com"))


async def test_permission_denial_is_audited(
    client: AsyncClient, audit_interceptor, make_principal, grant, headers_for, root_headers
) -> None:
    target = await grant("ADMIN", "roles", ["read"])
    admin = await make_principal("ADMIN", email="ada@example.com")

    denied = await client.delete(
        f"/api/v1/roles/{target.role_id}",
        headers={**headers_for(admin), "X-Request-ID": "req-denied", "User-Agent": "curl/8.0"},
    )
    assert denied.status_code == 403

    response = await client.get(
        "/api/v1/audit-logs",
        params={"user_id": admin.id, "action": "permission_denied"},
        headers=root_headers,
    )
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 1
    entry = page["data"][0]
    assert (entry["status"], entry["severity"], entry["category"]) == (
        "failure",
        "high",
        "authorization",
    )
    assert entry["user_email"] == "ada@example.com"
    assert entry["request_id"] == "req-denied"
    assert entry["user_agent"] == "curl/8.0"
    assert entry["details"]["attempted_resource"] == "roles"
    assert entry["details"]["attempted_action"] == "delete"


async def test_reads_are_audited_but_health_is_not(
    client: AsyncClient, audit_interceptor, root_headers
) -> None:
    await client.get("/api/v1/health")
    await client.get("/api/v1/roles", headers=root_headers)
    response = await client.get(
        "/api/v1/audit-logs", params={"action": "data_viewed"}, headers=root_headers
    )
    paths = [e["details"]["url"] for e in response.json()["data"]]
    assert paths == ["/api/v1/roles"]


async def test_unauthenticated_requests_are_not_audited(
    client: AsyncClient, audit_interceptor, root_headers
) -> None:
    assert (await client.get("/api/v1/roles")).status_code == 401
    response = await client.get("/api/v1/audit-logs", headers=root_headers)
    assert response.json()["total"] == 0


async def test_list_requires_audit_read(
    client: AsyncClient, make_principal, headers_for
) -> None:
    support = await make_principal("SUPPORT")
    response = await client.get("/api/v1/audit-logs", headers=headers_for(support))
    assert response.status_code == 403


async def test_statistics_need_the_audit_menu(
    client: AsyncClient, make_principal, grant, headers_for
) -> None:
    await grant("MODERATOR", "audit_logs", ["read"])
    await grant("AUDITOR", "audit_logs", ["read"])
    moderator = headers_for(await make_principal("MODERATOR"))
    auditor = headers_for(await make_principal("AUDITOR"))

    assert (await client.get("/api/v1/audit-logs", headers=moderator)).status_code == 200
    denied = await client.get("/api/v1/audit-logs/statistics", headers=moderator)
    assert denied.status_code == 403
    assert denied.json()["error"] == "MENU_ACCESS_DENIED"
    assert denied.json()["details"] == {"menu_key": "audit-logs"}

    allowed = await client.get("/api/v1/audit-logs/statistics", headers=auditor)
    assert allowed.status_code == 200


async def test_list_paging(client: AsyncClient, root_headers) -> None:
    now = utc_now()
    for i in range(3):
        await _store(request_id=f"r{i}", created_at=now - timedelta(minutes=i))
    response = await client.get(
        "/api/v1/audit-logs", params={"limit": 2, "page": 1}, headers=root_headers
    )
    page = response.json()
    assert (page["total"], page["total_pages"], page["has_next"], page["has_prev"]) == (
        3,
        2,
        True,
        False,
    )
    assert [e["request_id"] for e in page["data"]] == ["r0", "r1"]

    too_big = await client.get("/api/v1/audit-logs", params={"limit": 500}, headers=root_headers)
    assert too_big.status_code == 422


async def test_statistics_default_to_week(client: AsyncClient, root_headers) -> None:
    await _store(status="failure", severity="high", category="authorization")
    await _store()
    await _store(created_at=utc_now() - timedelta(days=20))
    response = await client.get("/api/v1/audit-logs/statistics", headers=root_headers)
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_logs"] == 2
    assert stats["failure_logs"] == 1
    assert stats["severity_stats"] == {"high": 1, "low": 1}

    month = await client.get(
        "/api/v1/audit-logs/statistics", params={"period": "month"}, headers=root_headers
    )
    assert month.json()["total_logs"] == 3


async def test_recent_and_suspicious_activity(
    client: AsyncClient, make_principal, grant, headers_for, root_headers
) -> None:
    now = utc_now()
    await _store(request_id="low", created_at=now - timedelta(minutes=5))
    await _store(request_id="high", severity="high", created_at=now - timedelta(minutes=2))

    recent = await client.get("/api/v1/audit-logs/user/admin-1/recent", headers=root_headers)
    assert [e["request_id"] for e in recent.json()] == ["high", "low"]

    suspicious = await client.get(
        "/api/v1/audit-logs/user/admin-1/suspicious",
        params={"time_window": 60},
        headers=root_headers,
    )
    assert [e["request_id"] for e in suspicious.json()] == ["high"]

    await grant("AUDITOR", "audit_logs", ["read"])
    auditor = await make_principal("AUDITOR")
    forbidden = await client.get(
        "/api/v1/audit-logs/user/admin-1/suspicious", headers=headers_for(auditor)
    )
    assert forbidden.status_code == 403


async def test_csv_export(client: AsyncClient, root_headers) -> None:
    await _store(user_name='Doe, "JJ"')
    await _store(user_id="other")
    response = await client.get(
        "/api/v1/audit-logs/export",
        params={"format": "csv", "user_id": "admin-1", "limit": 1, "page": 5},
        headers=root_headers,
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    expected = f'attachment; filename="audit-logs-{utc_now().date().isoformat()}.csv"'
    assert response.headers["content-disposition"] == expected
    lines = response.text.splitlines()
    assert lines[0].startswith('"ID","User ID"')
    assert len(lines) == 2
    assert '"Doe, ""JJ"""' in lines[1]


async def test_json_export(client: AsyncClient, root_headers) -> None:
    await _store(request_id="j1")
    response = await client.get(
        "/api/v1/audit-logs/export", params={"format": "json"}, headers=root_headers
    )
    assert response.headers["content-type"].startswith("application/json")
    assert response.headers["content-disposition"].endswith('.json"')
    assert [e["request_id"] for e in response.json()] == ["j1"]


async def test_export_over_row_cap_is_refused(
    client: AsyncClient, root_headers, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("AUDIT_EXPORT_MAX_ROWS", "1")
    get_settings.cache_clear()
    await _store(request_id="e1")
    await _store(request_id="e2", user_id="other")

    refused = await client.get("/api/v1/audit-logs/export", headers=root_headers)
    assert refused.status_code == 400
    assert refused.json()["error"] == "VALIDATION_ERROR"

    narrowed = await client.get(
        "/api/v1/audit-logs/export",
        params={"format": "json", "user_id": "other"},
        headers=root_headers,
    )
    assert narrowed.status_code == 200
    assert [e["request_id"] for e in narrowed.json()] == ["e2"]
    get_settings.cache_clear()


async def test_export_rejects_unknown_format(client: AsyncClient, root_headers) -> None:
    response = await client.get(
        "/api/v1/audit-logs/export", params={"format": "xml"}, headers=root_headers
    )
    assert response.status_code == 422


async def test_cleanup(client: AsyncClient, root_headers) -> None:
    await _store(request_id="old", created_at=utc_now() - timedelta(days=40))
    await _store(request_id="new")
    response = await client.post(
        "/api/v1/audit-logs/cleanup", params={"retention_days": 30}, headers=root_headers
    )
    assert response.status_code == 200
    assert response.json() == {
        "message": "Successfully deleted 1 old audit logs",
        "deleted_count": 1,
    }
    remaining = await client.get("/api/v1/audit-logs", headers=root_headers)
    assert [e["request_id"] for e in remaining.json()["data"]] == ["new"]
