"""Permission and role-permission API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from backoffice.domain.enums import Permission, Resource


class ResourcePermissionsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    resource: str
    permissions: list[str]


class UserPermissionsResponse(BaseModel):
    """Effective permissions of a principal."""

    model_config = ConfigDict(from_attributes=True)

    principal_id: str
    role: str
    permissions: list[ResourcePermissionsResponse]


class PermissionCheckResponse(BaseModel):
    resource: str
    permission: str
    has_permission: bool


class MenuAccessResponse(BaseModel):
    menu_key: str
    has_access: bool


class RolePermissionCreateRequest(BaseModel):
    """Grant permissions to a role on a resource (merged into an existing grant)."""

    role: str = Field(..., min_length=1, max_length=64)
    resource: Resource
    permissions: list[Permission] = Field(..., min_length=1)


class RolePermissionUpdateRequest(BaseModel):
    """Partial update of a grant; permissions replace the stored set."""

    role: str | None = Field(default=None, min_length=1, max_length=64)
    resource: Resource | None = None
    permissions: list[Permission] | None = Field(default=None, min_length=1)


class RolePermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role_id: str
    role: str
    resource: str
    permissions: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InitializePermissionsResponse(BaseModel):
    initialized: bool
    message: str
