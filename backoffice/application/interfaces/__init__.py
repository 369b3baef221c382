"""Application ports: repository and service protocols."""

from backoffice.application.interfaces.repositories import (
    IAdminUserRepository,
    IAuditLogRepository,
    IRolePermissionRepository,
    IRoleRepository,
)
from backoffice.application.interfaces.services import (
    AfterCommitHook,
    IPermissionResolver,
    IPrincipalAuthenticator,
)

__all__ = [
    "AfterCommitHook",
    "IAdminUserRepository",
    "IAuditLogRepository",
    "IPermissionResolver",
    "IPrincipalAuthenticator",
    "IRolePermissionRepository",
    "IRoleRepository",
]
