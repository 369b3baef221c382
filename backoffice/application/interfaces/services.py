"""Service interfaces (ports) for the application layer.

Protocols define contracts for services consumed across layers.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from backoffice.application.dtos.permission import PrincipalResult


# Queues a coroutine function to run after the current unit of work commits.
AfterCommitHook = Callable[[Callable[[], Awaitable[None]]], None]


class IPermissionResolver(Protocol):
    """Loads principals and role grants from the permission store."""

    async def get_principal(self, principal_id: str) -> PrincipalResult | None:
        """Return the principal or None. Raises StoreUnavailableException on store errors."""

    async def get_role_grants(self, role: str) -> dict[str, list[str]]:
        """Return resource -> permission values for a role (empty when none)."""


class IPrincipalAuthenticator(Protocol):
    """Turns an incoming request into a principal (token verification lives outside)."""

    async def authenticate(self, conn: HTTPConnection) -> PrincipalResult | None:
        """Return the principal for the request, or None when unauthenticated."""
