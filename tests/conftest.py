"""Pytest configuration and fixtures for the backoffice service.

Environment is set before any backoffice import: backoffice.main builds the
app at import time, and settings are cached on first read.

- db_session: in-memory SQLite session for repository and service tests.
- app / client: the FastAPI app against a throwaway SQLite file, with an
  in-process cache and the trusted-header authenticator (X-Admin-User-ID).
"""

import os
import tempfile
from collections.abc import AsyncIterator, Awaitable, Callable

_DB_PATH = os.path.join(tempfile.gettempdir(), f"backoffice-test-{os.getpid()}.db")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["REDIS_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PRINCIPAL_HEADER"] = "X-Admin-User-ID"

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import backoffice.infrastructure.persistence.models  # noqa: E402,F401
from backoffice.application.dtos.permission import PrincipalResult  # noqa: E402
from backoffice.application.dtos.role import RolePermissionResult  # noqa: E402
from backoffice.core.config import get_settings  # noqa: E402
from backoffice.core.lifespan import init_app_state  # noqa: E402
from backoffice.infrastructure.cache import InMemoryCache  # noqa: E402
from backoffice.infrastructure.persistence.database import (  # noqa: E402
    Base,
    create_schema,
    dispose_engine,
    get_session_factory,
)
from backoffice.infrastructure.persistence.repositories import (  # noqa: E402
    AdminUserRepository,
    RolePermissionRepository,
    RoleRepository,
)
from backoffice.main import create_app  # noqa: E402

PRINCIPAL_HEADER = "X-Admin-User-ID"


@pytest.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    """Session on a fresh in-memory database; nothing is committed."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
async def app() -> AsyncIterator[FastAPI]:
    """App on an empty database.

    ASGITransport does not run the lifespan, so app state is wired with
    init_app_state. Rate limiting and request auditing are off unless a test
    installs them (see rate_limited and audit_interceptor).
    """
    get_settings.cache_clear()
    await dispose_engine()
    if os.path.exists(_DB_PATH):
        os.remove(_DB_PATH)
    await create_schema()
    application = create_app()
    init_app_state(application, get_settings(), InMemoryCache())
    application.state.audit_interceptor = None
    yield application
    await dispose_engine()
    if os.path.exists(_DB_PATH):
        os.remove(_DB_PATH)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def audit_interceptor(app: FastAPI):
    """Enable per-request auditing on the app (own session per write)."""
    from backoffice.api.v1.dependencies import make_audit_service_scope
    from backoffice.application.services.audit_interceptor import AuditInterceptor

    interceptor = AuditInterceptor(make_audit_service_scope(get_session_factory()))
    app.state.audit_interceptor = interceptor
    return interceptor


@pytest.fixture
def make_principal(app: FastAPI) -> Callable[..., Awaitable[PrincipalResult]]:
    """Factory: insert an admin user into the app database."""

    async def _make(
        role: str,
        *,
        email: str | None = None,
        status: str = "APPROVED",
        is_active: bool = True,
    ) -> PrincipalResult:
        email = email or f"{role.lower()}-{os.urandom(4).hex()}@example.com"
        async with get_session_factory()() as session:
            async with session.begin():
                return await AdminUserRepository(session).create_admin_user(
                    email=email,
                    username=email.split("@")[0],
                    role=role,
                    status=status,
                    is_active=is_active,
                )

    return _make


@pytest.fixture
def grant(app: FastAPI) -> Callable[..., Awaitable[RolePermissionResult]]:
    """Factory: give a role permissions on a resource (role created if missing)."""

    async def _grant(role: str, resource: str, permissions: list[str]) -> RolePermissionResult:
        async with get_session_factory()() as session:
            async with session.begin():
                roles = RoleRepository(session)
                existing = await roles.get_by_name(role)
                if existing is None:
                    existing = await roles.create_role(role)
                return await RolePermissionRepository(session).upsert_merge(
                    existing.id, resource, permissions
                )

    return _grant


@pytest.fixture
def headers_for() -> Callable[[PrincipalResult], dict[str, str]]:
    """Request headers that authenticate as the given principal."""

    def _headers(principal: PrincipalResult) -> dict[str, str]:
        return {PRINCIPAL_HEADER: principal.id}

    return _headers


@pytest.fixture
def rate_limited(app: FastAPI):
    """Install a tight limiter: 3 requests per minute, no minimum interval."""
    from backoffice.application.dtos.rate_limit import RateLimitRule
    from backoffice.application.services.rate_limiter import RateLimiter

    limiter = RateLimiter(
        app.state.cache,
        {"default": RateLimitRule(max_requests=3, window_ms=60_000)},
        min_interval_ms=0,
        api_prefix=get_settings().api_prefix,
    )
    app.state.rate_limiter = limiter
    return limiter
