"""Roles API: list, get, create, update, delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from backoffice.api.v1.dependencies import (
    get_role_service,
    get_role_service_for_write,
    require_any_permission,
    require_permission,
)
from backoffice.application.services.role_service import RoleService
from backoffice.domain.enums import Permission, Resource
from backoffice.schemas.role import RoleCreateRequest, RoleResponse, RoleUpdate

router = APIRouter()

RoleReadDep = Annotated[RoleService, Depends(get_role_service)]
RoleWriteDep = Annotated[RoleService, Depends(get_role_service_for_write)]


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    svc: RoleReadDep,
    _: Annotated[object, Depends(require_permission(Resource.ROLES, Permission.READ))],
):
    """All roles, by name."""
    return [RoleResponse.model_validate(r) for r in await svc.list_roles()]


@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    body: RoleCreateRequest,
    svc: RoleWriteDep,
    _: Annotated[object, Depends(require_permission(Resource.ROLES, Permission.CREATE))],
):
    """Create a custom role (409 when the name is taken)."""
    created = await svc.create_role(body.name, body.description)
    return RoleResponse.model_validate(created)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    svc: RoleReadDep,
    _: Annotated[
        object,
        Depends(require_any_permission(Resource.ROLES, [Permission.READ, Permission.UPDATE])),
    ],
):
    """One role; editors without READ may load the role they are updating."""
    return RoleResponse.model_validate(await svc.get_role(role_id))


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    body: RoleUpdate,
    svc: RoleWriteDep,
    _: Annotated[object, Depends(require_permission(Resource.ROLES, Permission.UPDATE))],
):
    updated = await svc.update_role(
        role_id, name=body.name, description=body.description
    )
    return RoleResponse.model_validate(updated)


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: str,
    svc: RoleWriteDep,
    _: Annotated[object, Depends(require_permission(Resource.ROLES, Permission.DELETE))],
) -> Response:
    """Delete a custom role and its grants; system roles are protected."""
    await svc.delete_role(role_id)
    return Response(status_code=204)
