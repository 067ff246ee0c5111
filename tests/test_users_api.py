"""User management endpoints (admin only)."""

import uuid

NEW_USER = {
    "name": "Nina Newhire",
    "email": "Nina@MIC.io",
    "password": "s3cure-pass",
    "role": "technician",
    "department": "Maintenance",
}


async def test_admin_creates_user(client, admin, auth_headers_for):
    response = await client.post("/api/users", json=NEW_USER, headers=auth_headers_for(admin))

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "nina@mic.io"
    assert data["role"] == "technician"
    assert "password" not in data
    assert "hashed_password" not in data


async def test_duplicate_email_is_conflict(client, admin, make_user, auth_headers_for):
    await make_user(email="nina@mic.io")

    response = await client.post("/api/users", json=NEW_USER, headers=auth_headers_for(admin))

    assert response.status_code == 400
    assert response.json()["code"] == "ConflictError"


async def test_non_admin_is_forbidden(client, technician, auth_headers_for):
    response = await client.get("/api/users", headers=auth_headers_for(technician))

    assert response.status_code == 403
    assert "not authorized" in response.json()["error"]


async def test_list_filters_by_role(client, admin, technician, plain_user, auth_headers_for):
    response = await client.get("/api/users", params={"role": "technician"}, headers=auth_headers_for(admin))

    ids = {u["id"] for u in response.json()["data"]}
    assert ids == {str(technician.id)}


async def test_update_user_changes_role(client, admin, plain_user, auth_headers_for):
    response = await client.put(
        f"/api/users/{plain_user.id}", json={"role": "technician"}, headers=auth_headers_for(admin)
    )

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "technician"


async def test_demotion_applies_to_existing_token(client, admin, make_user, auth_headers_for):
    target = await make_user(role=admin.role)
    headers = auth_headers_for(target)
    assert (await client.get("/api/users", headers=headers)).status_code == 200

    await client.put(f"/api/users/{target.id}", json={"role": "user"}, headers=auth_headers_for(admin))

    assert (await client.get("/api/users", headers=headers)).status_code == 403


async def test_admin_cannot_delete_self(client, admin, auth_headers_for):
    response = await client.delete(f"/api/users/{admin.id}", headers=auth_headers_for(admin))

    assert response.status_code == 403
    assert "your own account" in response.json()["error"]


async def test_delete_missing_user_is_not_found(client, admin, auth_headers_for):
    response = await client.delete(f"/api/users/{uuid.uuid4()}", headers=auth_headers_for(admin))
    assert response.status_code == 404


async def test_admin_deletes_other_user(client, admin, plain_user, auth_headers_for):
    response = await client.delete(f"/api/users/{plain_user.id}", headers=auth_headers_for(admin))
    assert response.status_code == 200

    response = await client.get(f"/api/users/{plain_user.id}", headers=auth_headers_for(admin))
    assert response.status_code == 404
