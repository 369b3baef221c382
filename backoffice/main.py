"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here. See backoffice.core.lifespan and
backoffice.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.api.v1.router import api_router
from backoffice.core.config import get_settings
from backoffice.core.exception_handlers import register_exception_handlers
from backoffice.core.lifespan import create_lifespan
from backoffice.middleware import (
    AuditLogMiddleware,
    CorrelationIDMiddleware,
    PrincipalContextMiddleware,
    RateLimitMiddleware,
    RequestIDMiddleware,
)
from backoffice.shared.telemetry import setup_logging

_UNLIMITED_PATHS = ("/health", "/health/ready")


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    # Middleware: last added = outermost. Request order:
    # request ID -> correlation ID -> CORS -> principal -> rate limit -> audit -> routes.
    app.add_middleware(AuditLogMiddleware, exempt_paths=_UNLIMITED_PATHS)
    app.add_middleware(RateLimitMiddleware, exempt_paths=_UNLIMITED_PATHS)
    app.add_middleware(PrincipalContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "X-RateLimit-Window",
            "Retry-After",
            settings.request_id_header,
        ],
    )
    app.add_middleware(CorrelationIDMiddleware, header_name=settings.correlation_id_header)
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)

    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_app()
