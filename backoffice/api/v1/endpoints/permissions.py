"""Permissions API: effective permissions, checks, menu access, role grants."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from backoffice.api.v1.dependencies import (
    CurrentPrincipal,
    get_authorization_service,
    get_role_permission_service,
    get_role_permission_service_for_write,
    require_permission,
)
from backoffice.application.services.authorization_service import AuthorizationService
from backoffice.application.services.role_permission_service import (
    RolePermissionService,
)
from backoffice.domain.enums import Permission, Resource
from backoffice.schemas.permission import (
    InitializePermissionsResponse,
    MenuAccessResponse,
    PermissionCheckResponse,
    RolePermissionCreateRequest,
    RolePermissionResponse,
    RolePermissionUpdateRequest,
    UserPermissionsResponse,
)

router = APIRouter()

AuthorizationDep = Annotated[AuthorizationService, Depends(get_authorization_service)]
GrantReadDep = Annotated[RolePermissionService, Depends(get_role_permission_service)]
GrantWriteDep = Annotated[
    RolePermissionService, Depends(get_role_permission_service_for_write)
]


@router.get("/me", response_model=UserPermissionsResponse)
async def get_my_permissions(principal: CurrentPrincipal, auth_svc: AuthorizationDep):
    """Effective permissions of the calling principal."""
    resolved = await auth_svc.get_user_permissions(principal.id)
    return UserPermissionsResponse.model_validate(resolved)


@router.get("/user/{user_id}", response_model=UserPermissionsResponse)
async def get_user_permissions(
    user_id: str,
    auth_svc: AuthorizationDep,
    _: Annotated[object, Depends(require_permission(Resource.PERMISSIONS, Permission.READ))],
):
    """Effective permissions of any admin user."""
    resolved = await auth_svc.get_user_permissions(user_id)
    return UserPermissionsResponse.model_validate(resolved)


@router.get("/check", response_model=PermissionCheckResponse)
async def check_permission(
    principal: CurrentPrincipal,
    auth_svc: AuthorizationDep,
    resource: Resource = Query(...),
    permission: Permission = Query(...),
):
    """Whether the calling principal holds permission on resource."""
    allowed = await auth_svc.has_permission(principal.id, resource.value, permission.value)
    return PermissionCheckResponse(
        resource=resource.value, permission=permission.value, has_permission=allowed
    )


@router.get("/menu-access/{menu_key}", response_model=MenuAccessResponse)
async def check_menu_access(
    menu_key: str, principal: CurrentPrincipal, auth_svc: AuthorizationDep
):
    """Whether the calling principal's role may open a backoffice menu."""
    allowed = await auth_svc.has_menu_access(principal.id, menu_key)
    return MenuAccessResponse(menu_key=menu_key, has_access=allowed)


@router.get("/role-permissions", response_model=list[RolePermissionResponse])
async def list_role_permissions(
    svc: GrantReadDep,
    _: Annotated[object, Depends(require_permission(Resource.PERMISSIONS, Permission.READ))],
):
    grants = await svc.get_all_role_permissions()
    return [RolePermissionResponse.model_validate(g) for g in grants]


@router.post("/role-permissions", response_model=RolePermissionResponse, status_code=201)
async def create_role_permission(
    body: RolePermissionCreateRequest,
    svc: GrantWriteDep,
    _: Annotated[
        object, Depends(require_permission(Resource.PERMISSIONS, Permission.CREATE))
    ],
):
    """Grant permissions; merged into the role's existing grant for the resource."""
    created = await svc.create_role_permission(
        body.role, body.resource.value, [p.value for p in body.permissions]
    )
    return RolePermissionResponse.model_validate(created)


@router.get("/role-permissions/{role}", response_model=list[RolePermissionResponse])
async def get_role_permissions(
    role: str,
    svc: GrantReadDep,
    _: Annotated[object, Depends(require_permission(Resource.PERMISSIONS, Permission.READ))],
):
    grants = await svc.get_role_permissions(role)
    return [RolePermissionResponse.model_validate(g) for g in grants]


@router.put("/role-permissions/{grant_id}", response_model=RolePermissionResponse)
async def update_role_permission(
    grant_id: str,
    body: RolePermissionUpdateRequest,
    svc: GrantWriteDep,
    _: Annotated[
        object, Depends(require_permission(Resource.PERMISSIONS, Permission.UPDATE))
    ],
):
    updated = await svc.update_role_permission(
        grant_id,
        role=body.role,
        resource=body.resource.value if body.resource is not None else None,
        permissions=(
            [p.value for p in body.permissions] if body.permissions is not None else None
        ),
    )
    return RolePermissionResponse.model_validate(updated)


@router.delete("/role-permissions/{grant_id}", status_code=204)
async def delete_role_permission(
    grant_id: str,
    svc: GrantWriteDep,
    _: Annotated[
        object, Depends(require_permission(Resource.PERMISSIONS, Permission.DELETE))
    ],
) -> Response:
    await svc.delete_role_permission(grant_id)
    return Response(status_code=204)


@router.post("/initialize", response_model=InitializePermissionsResponse)
async def initialize_default_permissions(
    svc: GrantWriteDep,
    _: Annotated[
        object, Depends(require_permission(Resource.PERMISSIONS, Permission.MANAGE))
    ],
):
    """Seed built-in roles and default grants (no-op when grants exist)."""
    initialized = await svc.initialize_default_permissions()
    message = (
        "Default permissions initialized"
        if initialized
        else "Permissions already initialized"
    )
    return InitializePermissionsResponse(initialized=initialized, message=message)
