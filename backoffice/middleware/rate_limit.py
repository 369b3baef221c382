"""Rate limit middleware.

Consults app.state.rate_limiter for every HTTP request. Rejections are
answered here with 429 and the X-RateLimit-* / Retry-After headers;
admitted responses carry the X-RateLimit-* headers. When the limiter is
missing or its store is down the request passes untouched.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

from typing import Callable

from starlette.requests import HTTPConnection

from backoffice.domain.exceptions import (
    RateLimitExceededException,
    RequestTooFrequentException,
)
from backoffice.middleware._asgi import append_headers, send_json
from backoffice.shared.request_audit import get_client_ip


def RateLimitMiddleware(
    app: Callable, exempt_paths: tuple[str, ...] = ()
) -> Callable:
    """Apply per-client, per-path request limits. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or scope.get("path", "").endswith(exempt_paths):
            await app(scope, receive, send)
            return
        starlette_app = scope.get("app")
        limiter = getattr(getattr(starlette_app, "state", None), "rate_limiter", None)
        if limiter is None:
            await app(scope, receive, send)
            return

        conn = HTTPConnection(scope)
        principal = scope.get("state", {}).get("principal")
        try:
            headers = await limiter.enforce(
                conn.url.path,
                ip_address=get_client_ip(conn),
                user_agent=conn.headers.get("User-Agent"),
                principal_id=principal.id if principal is not None else None,
            )
        except (RateLimitExceededException, RequestTooFrequentException) as e:
            await send_json(send, 429, e.to_dict(), e.headers)
            return

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start" and headers:
                append_headers(message, headers)
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
