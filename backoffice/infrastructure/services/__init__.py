"""Infrastructure implementations of application service interfaces."""

from backoffice.infrastructure.services.header_authenticator import (
    TrustedHeaderAuthenticator,
)
from backoffice.infrastructure.services.permission_resolver import PermissionResolver

__all__ = ["PermissionResolver", "TrustedHeaderAuthenticator"]
