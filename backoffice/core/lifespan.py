"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (cache, rate limiter, audit
interceptor, authenticator, telemetry, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from backoffice.core.config import Settings, get_settings
from backoffice.infrastructure.cache import CacheProtocol

logger = logging.getLogger(__name__)


def init_app_state(app: FastAPI, settings: Settings, cache: CacheProtocol | None) -> None:
    """Attach cache, rate limiter, audit interceptor and authenticator to app.state.

    Split out of the lifespan so tests can wire an app without running it.
    An authenticator already on app.state is kept.
    """
    from backoffice.api.v1.dependencies import make_audit_service_scope
    from backoffice.application.services.audit_interceptor import AuditInterceptor
    from backoffice.application.services.rate_limiter import (
        RateLimiter,
        rules_from_settings,
    )
    from backoffice.infrastructure.persistence.database import get_session_factory
    from backoffice.infrastructure.services import TrustedHeaderAuthenticator

    app.state.cache = cache
    app.state.rate_limiter = (
        RateLimiter(
            cache,
            rules_from_settings(settings.rate_limit_rules),
            min_interval_ms=settings.rate_limit_min_interval_ms,
            api_prefix=settings.api_prefix,
        )
        if settings.rate_limit_enabled
        else None
    )
    session_factory = get_session_factory()
    app.state.audit_interceptor = AuditInterceptor(make_audit_service_scope(session_factory))
    if getattr(app.state, "authenticator", None) is None:
        app.state.authenticator = (
            TrustedHeaderAuthenticator(session_factory, settings.principal_header)
            if settings.principal_header
            else None
        )
        if app.state.authenticator is None:
            logger.warning(
                "No principal authenticator configured; protected endpoints will return 401"
            )


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: telemetry (if enabled), cache (Redis when enabled,
    otherwise in-process), app state. Shutdown order: cache disconnect,
    telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    telemetry = None
    if settings.telemetry_enabled:
        from backoffice.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig.from_settings(settings)
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        telemetry.instrument_logging()

    cache: CacheProtocol
    if settings.redis_enabled:
        from backoffice.infrastructure.cache.redis_cache import CacheService

        cache = CacheService()
        await cache.connect()
        if telemetry is not None:
            telemetry.instrument_redis()
    else:
        from backoffice.infrastructure.cache.memory_cache import InMemoryCache

        cache = InMemoryCache()
        logger.info("Redis disabled; using in-process cache")

    init_app_state(app, settings, cache)

    if telemetry is not None:
        from backoffice.infrastructure.persistence import database

        if database.engine is not None:
            telemetry.instrument_sqlalchemy(database.engine)

    yield

    # ---- Shutdown ----
    disconnect = getattr(app.state.cache, "disconnect", None)
    if disconnect is not None:
        await disconnect()
        logger.info("Cache disconnected")

    if telemetry is not None:
        from backoffice.shared.telemetry.telemetry import set_telemetry

        telemetry.shutdown()
        set_telemetry(None)

    from backoffice.infrastructure.persistence.database import dispose_engine

    await dispose_engine()
    logger.info("Database engine disposed")
