"""DTOs for permission resolution."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PrincipalResult:
    """Admin user as seen by the permission resolver."""

    id: str
    email: str
    username: str
    role: str
    is_active: bool
    status: str

    @property
    def is_eligible(self) -> bool:
        """Only approved, active principals may pass permission checks."""
        return self.is_active and self.status == "APPROVED"


@dataclass(frozen=True)
class ResourcePermissions:
    """Permissions held on a single resource."""

    resource: str
    permissions: tuple[str, ...]


@dataclass(frozen=True)
class UserPermissions:
    """Effective permission set of a principal (cacheable)."""

    principal_id: str
    role: str
    permissions: tuple[ResourcePermissions, ...] = field(default_factory=tuple)

    def to_cache(self) -> dict:
        return {
            "principal_id": self.principal_id,
            "role": self.role,
            "permissions": [
                {"resource": p.resource, "permissions": list(p.permissions)}
                for p in self.permissions
            ],
        }

    @classmethod
    def from_cache(cls, data: dict) -> "UserPermissions":
        return cls(
            principal_id=data["principal_id"],
            role=data["role"],
            permissions=tuple(
                ResourcePermissions(p["resource"], tuple(p["permissions"]))
                for p in data.get("permissions", [])
            ),
        )
