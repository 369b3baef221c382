"""Roles API: guards and CRUD rules."""

from httpx import AsyncClient


async def test_role_crud(client: AsyncClient, make_principal, headers_for) -> None:
    root = await make_principal("SUPER_ADMIN")
    headers = headers_for(root)

    created = await client.post(
        "/api/v1/roles", json={"name": "ANALYST", "description": "Numbers"}, headers=headers
    )
    assert created.status_code == 201
    role = created.json()
    assert (role["name"], role["is_system"]) == ("ANALYST", False)

    duplicate = await client.post("/api/v1/roles", json={"name": "ANALYST"}, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "DUPLICATE_ROLE"

    fetched = await client.get(f"/api/v1/roles/{role['id']}", headers=headers)
    assert fetched.json()["description"] == "Numbers"

    renamed = await client.put(
        f"/api/v1/roles/{role['id']}", json={"name": "DATA_ANALYST"}, headers=headers
    )
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "DATA_ANALYST"

    listed = await client.get("/api/v1/roles", headers=headers)
    assert [r["name"] for r in listed.json()] == ["DATA_ANALYST"]

    deleted = await client.delete(f"/api/v1/roles/{role['id']}", headers=headers)
    assert deleted.status_code == 204
    gone = await client.get(f"/api/v1/roles/{role['id']}", headers=headers)
    assert gone.status_code == 404


async def test_system_role_cannot_be_deleted(
    client: AsyncClient, make_principal, headers_for
) -> None:
    root = await make_principal("SUPER_ADMIN")
    headers = headers_for(root)
    await client.post("/api/v1/permissions/initialize", headers=headers)
    roles = (await client.get("/api/v1/roles", headers=headers)).json()
    admin = next(r for r in roles if r["name"] == "ADMIN")

    response = await client.delete(f"/api/v1/roles/{admin['id']}", headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "SYSTEM_ROLE_PROTECTED"


async def test_read_only_admin_cannot_delete_roles(
    client: AsyncClient, make_principal, grant, headers_for
) -> None:
    target = await grant("ADMIN", "roles", ["read"])
    admin = await make_principal("ADMIN")
    headers = headers_for(admin)

    assert (await client.get("/api/v1/roles", headers=headers)).status_code == 200
    response = await client.delete(f"/api/v1/roles/{target.role_id}", headers=headers)
    assert response.status_code == 403
    assert response.json()["details"] == {"resource": "roles", "permission": "delete"}


async def test_create_role_validates_body(
    client: AsyncClient, make_principal, headers_for
) -> None:
    root = await make_principal("SUPER_ADMIN")
    response = await client.post("/api/v1/roles", json={"name": ""}, headers=headers_for(root))
    assert response.status_code == 422


async def test_system_role_cannot_be_renamed(
    client: AsyncClient, make_principal, headers_for
) -> None:
    root = await make_principal("SUPER_ADMIN")
    headers = headers_for(root)
    await client.post("/api/v1/permissions/initialize", headers=headers)
    roles = (await client.get("/api/v1/roles", headers=headers)).json()
    support = next(r for r in roles if r["name"] == "SUPPORT")

    response = await client.put(
        f"/api/v1/roles/{support['id']}", json={"name": "HELPDESK"}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "SYSTEM_ROLE_PROTECTED"

    described = await client.put(
        f"/api/v1/roles/{support['id']}", json={"description": "Tier 1"}, headers=headers
    )
    assert described.status_code == 200
    assert described.json()["name"] == "SUPPORT"


async def test_role_editor_can_fetch_role_without_read(
    client: AsyncClient, make_principal, grant, headers_for
) -> None:
    editable = await grant("SUPPORT", "roles", ["update"])
    editor = await make_principal("SUPPORT")
    outsider = await make_principal("AUDITOR")

    fetched = await client.get(f"/api/v1/roles/{editable.role_id}", headers=headers_for(editor))
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "SUPPORT"

    listed = await client.get("/api/v1/roles", headers=headers_for(editor))
    assert listed.status_code == 403

    denied = await client.get(
        f"/api/v1/roles/{editable.role_id}", headers=headers_for(outsider)
    )
    assert denied.status_code == 403
    assert denied.json()["details"] == {"resource": "roles", "permissions": ["read", "update"]}
