"""Shared helpers for audit logging: request metadata and path classification.

Derives client identity from a Starlette request and maps method + path to
the audit action, resource, category and subcategory recorded for API calls.
"""

from __future__ import annotations

from starlette.requests import HTTPConnection

from backoffice.application.dtos.audit_log import AuditActor, RequestMetadata
from backoffice.application.dtos.permission import PrincipalResult
from backoffice.shared.enums import LogAction, LogCategory
from backoffice.shared.utils.generators import generate_request_id

_UNKNOWN = "unknown"


def get_client_ip(conn: HTTPConnection) -> str:
    """Client IP from X-Forwarded-For (first hop) or the socket peer."""
    forwarded = conn.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return conn.client.host if conn.client else _UNKNOWN


def get_request_id(
    conn: HTTPConnection,
    request_id_header: str = "X-Request-ID",
    correlation_id_header: str = "X-Correlation-ID",
) -> str:
    """Request id from state (set by RequestIDMiddleware), headers, or a fresh token."""
    state_id = getattr(conn.state, "request_id", None)
    if state_id:
        return state_id
    return (
        conn.headers.get(request_id_header)
        or conn.headers.get(correlation_id_header)
        or generate_request_id()
    )


def get_request_metadata(
    conn: HTTPConnection, session_id_header: str = "X-Session-ID"
) -> RequestMetadata:
    """Return the request facts recorded on every audit entry."""
    return RequestMetadata(
        ip_address=get_client_ip(conn),
        user_agent=conn.headers.get("User-Agent") or "Unknown",
        session_id=conn.headers.get(session_id_header) or _UNKNOWN,
        request_id=get_request_id(conn),
        method=conn.scope.get("method", ""),
        path=conn.url.path,
    )


def actor_from_principal(principal: PrincipalResult) -> AuditActor:
    return AuditActor(
        user_id=principal.id,
        user_email=principal.email,
        user_name=principal.username,
        user_role=principal.role,
    )


def action_for_request(method: str, path: str) -> LogAction:
    """Audit action from well-known paths, else from the HTTP method."""
    if "/auth/login" in path:
        return LogAction.LOGIN
    if "/auth/logout" in path:
        return LogAction.LOGOUT
    if "/users" in path and method == "POST":
        return LogAction.USER_CREATED
    if "/users" in path and method in ("PUT", "PATCH"):
        return LogAction.USER_UPDATED
    if "/users" in path and method == "DELETE":
        return LogAction.USER_DELETED
    if "/wallet" in path:
        return LogAction.TRANSACTION_VIEWED
    if "/customer" in path:
        return LogAction.TICKET_CREATED
    if "/export" in path:
        return LogAction.DATA_EXPORTED
    return {
        "POST": LogAction.DATA_MODIFIED,
        "PUT": LogAction.DATA_MODIFIED,
        "PATCH": LogAction.DATA_MODIFIED,
        "DELETE": LogAction.DATA_DELETED,
    }.get(method, LogAction.DATA_VIEWED)


# Checked in order; first substring match wins.
_PATH_RESOURCES: tuple[tuple[str, str, LogCategory], ...] = (
    ("/auth", "auth", LogCategory.AUTHENTICATION),
    ("/admin-users", "admin_users", LogCategory.USER_MANAGEMENT),
    ("/users", "user_management", LogCategory.USER_MANAGEMENT),
    ("/wallet", "wallet", LogCategory.WALLET_MANAGEMENT),
    ("/customer", "customer_support", LogCategory.CUSTOMER_SUPPORT),
    ("/audit-logs", "audit_logs", LogCategory.SYSTEM_ADMINISTRATION),
    ("/permissions", "permissions", LogCategory.AUTHORIZATION),
    ("/roles", "roles", LogCategory.AUTHORIZATION),
)


def resource_for_path(path: str) -> tuple[str, LogCategory]:
    """(resource, category) for an API path; unknown paths are data access on 'api'."""
    for fragment, resource, category in _PATH_RESOURCES:
        if fragment in path:
            return resource, category
    return "api", LogCategory.DATA_ACCESS


_PATH_SUBCATEGORIES: tuple[tuple[str, str], ...] = (
    ("/login", "login_attempt"),
    ("/logout", "logout"),
    ("/approve", "user_approval"),
    ("/reject", "user_rejection"),
    ("/suspend", "user_suspension"),
    ("/activate", "user_activation"),
    ("/export", "data_export"),
    ("/bulk", "bulk_operation"),
)


def subcategory_for_path(path: str) -> str:
    for fragment, subcategory in _PATH_SUBCATEGORIES:
        if fragment in path:
            return subcategory
    return "api_call"
