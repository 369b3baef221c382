"""Domain layer: access-control enums, RBAC catalog, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from backoffice.domain.enums import AdminRole, Permission, PrincipalStatus, Resource
from backoffice.domain.exceptions import (
    AuditWriteFailedException,
    AuthenticationException,
    BackofficeException,
    MenuAccessDeniedException,
    PermissionDeniedException,
    PrincipalInactiveException,
    PrincipalNotFoundException,
    RateLimitExceededException,
    RequestTooFrequentException,
    ResourceNotFoundException,
    StoreUnavailableException,
    ValidationException,
)

__all__ = [
    # Enums
    "AdminRole",
    "Permission",
    "PrincipalStatus",
    "Resource",
    # Exceptions
    "AuditWriteFailedException",
    "AuthenticationException",
    "BackofficeException",
    "MenuAccessDeniedException",
    "PermissionDeniedException",
    "PrincipalInactiveException",
    "PrincipalNotFoundException",
    "RateLimitExceededException",
    "RequestTooFrequentException",
    "ResourceNotFoundException",
    "StoreUnavailableException",
    "ValidationException",
]
