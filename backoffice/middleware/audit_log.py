"""API audit log middleware.

Writes one audit entry per request made by an authenticated principal,
through app.state.audit_interceptor (own session, failures logged and
dropped). Permission denials are recognised from request.state.audit_error,
which the domain exception handler sets.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backoffice.core.config import get_settings
from backoffice.shared.request_audit import actor_from_principal, get_request_metadata

logger = logging.getLogger(__name__)


def AuditLogMiddleware(app: Callable, exempt_paths: tuple[str, ...] = ()) -> Callable:
    """Audit every request that carries a principal."""

    class _Middleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next: Callable) -> Response:
            principal = getattr(request.state, "principal", None)
            interceptor = getattr(request.app.state, "audit_interceptor", None)
            if (
                principal is None
                or interceptor is None
                or request.url.path.endswith(exempt_paths)
            ):
                return await call_next(request)

            settings = get_settings()
            actor = actor_from_principal(principal)
            meta = get_request_metadata(request, settings.session_id_header)
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception as e:
                await interceptor.record(
                    actor,
                    meta,
                    status_code=500,
                    error=e,
                    duration_ms=int((time.perf_counter() - started) * 1000),
                )
                raise
            await interceptor.record(
                actor,
                meta,
                status_code=response.status_code,
                error=getattr(request.state, "audit_error", None),
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
            return response

    return _Middleware(app)
