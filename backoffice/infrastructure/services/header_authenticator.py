"""Authenticator for deployments behind an auth gateway.

The gateway verifies the admin's token and forwards the admin user id in a
trusted header; this class only loads the matching principal. Never enable
it on a service reachable without the gateway in front.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import HTTPConnection

from backoffice.application.dtos.permission import PrincipalResult
from backoffice.infrastructure.persistence.repositories.admin_user_repo import (
    AdminUserRepository,
)

logger = logging.getLogger(__name__)


class TrustedHeaderAuthenticator:
    """Implements IPrincipalAuthenticator from a gateway-set header."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        header_name: str,
    ) -> None:
        self.session_factory = session_factory
        self.header_name = header_name

    async def authenticate(self, conn: HTTPConnection) -> PrincipalResult | None:
        principal_id = (conn.headers.get(self.header_name) or "").strip()
        if not principal_id:
            return None
        async with self.session_factory() as session:
            principal = await AdminUserRepository(session).get_principal(principal_id)
        if principal is None:
            logger.info("Unknown principal in %s header: %s", self.header_name, principal_id)
        return principal
