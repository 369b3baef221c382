"""Create the schema and seed built-in roles and their default grants.

Usage:
    python -m scripts.seed_rbac [super_admin_email]
With an email, also creates an approved SUPER_ADMIN admin user (skipped when
the email exists). Re-running is safe: seeding is skipped once grants exist.
"""

import asyncio
import sys
from functools import partial

from sqlalchemy import select

from backoffice.application.services.authorization_service import AuthorizationService
from backoffice.application.services.role_permission_service import (
    RolePermissionService,
)
from backoffice.core.config import get_settings
from backoffice.domain.enums import AdminRole
from backoffice.infrastructure.cache import CacheService
from backoffice.infrastructure.persistence.database import (
    after_commit,
    create_schema,
    dispose_engine,
    get_session_factory,
    run_after_commit,
)
from backoffice.infrastructure.persistence.models import AdminUser
from backoffice.infrastructure.persistence.repositories import (
    AdminUserRepository,
    RolePermissionRepository,
    RoleRepository,
)
from backoffice.infrastructure.services import PermissionResolver
from backoffice.shared.telemetry import setup_logging


async def main() -> None:
    """Seed RBAC and optionally bootstrap a super admin."""
    settings = get_settings()
    setup_logging()
    admin_email = sys.argv[1] if len(sys.argv) > 1 else None

    await create_schema()

    # Invalidate shared caches so running services see the seeded grants.
    cache = None
    if settings.redis_enabled:
        cache = CacheService()
        await cache.connect()

    try:
        async with get_session_factory()() as session:
            async with session.begin():
                authorization = AuthorizationService(
                    PermissionResolver(session), cache=cache, super_role=settings.super_role
                )
                svc = RolePermissionService(
                    RoleRepository(session),
                    RolePermissionRepository(session),
                    authorization,
                    after_commit=partial(after_commit, session),
                )
                seeded = await svc.initialize_default_permissions()
                print("Seeded default roles and grants" if seeded else "Grants already present")

                if admin_email:
                    existing = (
                        await session.execute(
                            select(AdminUser).where(AdminUser.email == admin_email)
                        )
                    ).scalar_one_or_none()
                    if existing is not None:
                        print(f"Admin user already exists: {admin_email} ({existing.id})")
                    else:
                        created = await AdminUserRepository(session).create_admin_user(
                            email=admin_email,
                            username=admin_email.split("@")[0],
                            role=AdminRole.SUPER_ADMIN.value,
                        )
                        print(f"Created SUPER_ADMIN {admin_email} ({created.id})")
            await run_after_commit(session)
    finally:
        if cache is not None:
            await cache.disconnect()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
