"""Principal context middleware.

Asks the configured authenticator (app.state.authenticator) for the
request's principal and stores it on scope state as ``principal``. No
authenticator, or a request it rejects, leaves the principal as None;
protected routes then answer 401. Raw ASGI so that the rate limiter and
audit middleware further in see the same state.
"""

import logging
from typing import Callable

from starlette.requests import HTTPConnection

from backoffice.domain.exceptions import AuthenticationException

logger = logging.getLogger(__name__)


def PrincipalContextMiddleware(app: Callable) -> Callable:
    """Resolve the request principal before routing. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        state = scope.setdefault("state", {})
        state["principal"] = None
        starlette_app = scope.get("app")
        authenticator = getattr(getattr(starlette_app, "state", None), "authenticator", None)
        if authenticator is not None:
            try:
                state["principal"] = await authenticator.authenticate(HTTPConnection(scope))
            except AuthenticationException as e:
                logger.info("Authentication rejected for %s: %s", scope.get("path"), e.message)
        await app(scope, receive, send)

    return asgi_app
