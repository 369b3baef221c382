"""Raw ASGI helpers shared by the middleware in this package."""

import json
from collections.abc import Callable
from typing import Any


def get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def append_headers(message: dict, headers: dict[str, str]) -> None:
    """Add headers to an http.response.start message, skipping names already set."""
    existing = list(message.get("headers", []))
    seen = {k.lower() for k, _ in existing}
    for name, value in headers.items():
        if name.lower().encode() not in seen:
            existing.append((name.encode(), value.encode()))
    message["headers"] = existing


async def send_json(
    send: Callable,
    status: int,
    content: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> None:
    """Send a complete JSON response."""
    body = json.dumps(content).encode()
    raw_headers = [
        (b"content-type", b"application/json"),
        (b"content-length", str(len(body)).encode()),
    ]
    raw_headers.extend((k.encode(), v.encode()) for k, v in (headers or {}).items())
    await send({"type": "http.response.start", "status": status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body, "more_body": False})
