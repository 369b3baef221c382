"""Role API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RoleCreateRequest(BaseModel):
    """Request body for creating a custom role."""

    name: str = Field(..., min_length=1, max_length=64)
    description: str | None = Field(default=None, max_length=500)


class RoleUpdate(BaseModel):
    """Request body for updating a role (partial)."""

    name: str | None = Field(default=None, min_length=1, max_length=64)
    description: str | None = Field(default=None, max_length=500)


class RoleResponse(BaseModel):
    """Role list/detail response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    is_system: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
