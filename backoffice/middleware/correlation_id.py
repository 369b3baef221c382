"""Correlation ID middleware.

Propagates X-Correlation-ID across services; falls back to the request id.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming and background tasks.
"""

from typing import Callable

from backoffice.middleware._asgi import append_headers, get_header
from backoffice.middleware.request_id import sanitize_request_id


def CorrelationIDMiddleware(
    app: Callable, header_name: str = "X-Correlation-ID"
) -> Callable:
    """Add or forward the correlation id. Must run inside RequestIDMiddleware. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        state = scope.setdefault("state", {})
        raw = get_header(scope, header_name) or state.get("request_id")
        correlation_id = sanitize_request_id(raw)
        state["correlation_id"] = correlation_id

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                append_headers(message, {header_name: correlation_id})
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
