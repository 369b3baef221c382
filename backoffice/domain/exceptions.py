"""Domain exceptions for the backoffice access-control service.

Defines domain-level exceptions that represent authorization, rate-limit
and audit failures. These exceptions are independent of infrastructure
concerns. Presentation layer maps them to HTTP responses in exception
handlers.
"""

from typing import Any


class BackofficeException(Exception):
    """Base exception for all backoffice errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(BackofficeException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(BackofficeException):
    """Raised when a protected operation is called without a principal."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class PrincipalNotFoundException(BackofficeException):
    """Raised when the principal id does not resolve to an admin user."""

    def __init__(self, principal_id: str) -> None:
        """Initialize with the missing principal id.

        Args:
            principal_id: The admin user id that was not found.
        """
        super().__init__(
            f"Principal not found: {principal_id}",
            "PRINCIPAL_NOT_FOUND",
            {"principal_id": principal_id},
        )


class PrincipalInactiveException(BackofficeException):
    """Raised when the principal exists but is not approved and active."""

    def __init__(self, principal_id: str, status: str | None = None) -> None:
        """Initialize with principal id and current status.

        Args:
            principal_id: The admin user id.
            status: Current lifecycle status (e.g. 'PENDING', 'SUSPENDED').
        """
        details: dict[str, Any] = {"principal_id": principal_id}
        if status:
            details["status"] = status
        super().__init__(
            f"Principal is not active: {principal_id}",
            "PRINCIPAL_INACTIVE",
            details,
        )


class PermissionDeniedException(BackofficeException):
    """Raised when the principal lacks the required permission on a resource."""

    def __init__(
        self,
        resource: str | None = None,
        permission: str | list[str] | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with optional resource, permission(s), and message.

        Args:
            resource: Resource that was targeted (e.g. 'users', 'audit_logs').
            permission: Required permission, or list of acceptable permissions.
            message: Human-readable message; default used when resource omitted.
        """
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if isinstance(permission, list):
            details["permissions"] = permission
            if resource:
                message = f"Permission denied: any of {', '.join(permission)} on {resource}"
        elif permission:
            details["permission"] = permission
            if resource:
                message = f"Permission denied: {permission} on {resource}"
        super().__init__(message, "PERMISSION_DENIED", details)


class MenuAccessDeniedException(BackofficeException):
    """Raised when the principal's role may not open a backoffice menu."""

    def __init__(self, menu_key: str) -> None:
        super().__init__(
            f"Menu access denied: {menu_key}",
            "MENU_ACCESS_DENIED",
            {"menu_key": menu_key},
        )


class RateLimitExceededException(BackofficeException):
    """Raised when a client has used up its request quota for the window.

    Attributes:
        headers: X-RateLimit-* headers to send with the rejection.
    """

    def __init__(
        self,
        limit: int,
        reset_at_seconds: int,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize with quota and reset time.

        Args:
            limit: Max requests allowed in the window.
            reset_at_seconds: Epoch seconds when the window resets.
            headers: Rate-limit response headers.
        """
        self.headers = headers or {}
        super().__init__(
            "Too many requests, please try again later",
            "RATE_LIMIT_EXCEEDED",
            {"limit": limit, "reset_at": reset_at_seconds},
        )


class RequestTooFrequentException(BackofficeException):
    """Raised when two requests from the same client arrive too close together."""

    def __init__(
        self,
        min_interval_ms: int,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.headers = headers or {}
        super().__init__(
            "Requests are too frequent, please slow down",
            "REQUEST_TOO_FREQUENT",
            {"min_interval_ms": min_interval_ms},
        )


class AuditWriteFailedException(BackofficeException):
    """Raised when an audit entry could not be persisted."""

    def __init__(self, action: str, reason: str) -> None:
        """Initialize with the action being logged and the underlying reason.

        Args:
            action: Audit action value (e.g. 'login').
            reason: Short description of the underlying failure.
        """
        super().__init__(
            f"Failed to write audit log entry: {action}",
            "AUDIT_WRITE_FAILED",
            {"action": action, "reason": reason},
        )


class StoreUnavailableException(BackofficeException):
    """Raised when the permission store cannot be reached (fail closed)."""

    def __init__(self, store: str = "permission_store") -> None:
        super().__init__(
            f"Backing store unavailable: {store}",
            "STORE_UNAVAILABLE",
            {"store": store},
        )


class ResourceNotFoundException(BackofficeException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'role', 'role_permission').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class DuplicateRoleException(BackofficeException):
    """Raised when creating or renaming a role to a name that already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Role with name '{name}' already exists",
            "DUPLICATE_ROLE",
            {"name": name},
        )


class SystemRoleException(BackofficeException):
    """Raised when deleting or renaming a built-in system role."""

    def __init__(self, name: str, action: str = "deleted") -> None:
        super().__init__(
            f"System role cannot be {action}: {name}",
            "SYSTEM_ROLE_PROTECTED",
            {"name": name},
        )
