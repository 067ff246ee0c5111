"""Registration, login and profile endpoints."""


async def test_register_returns_token(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Rita", "email": "rita@mic.io", "password": "password123"},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["user"]["role"] == "user"
    assert data["token_type"] == "bearer"

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "rita@mic.io"


async def test_register_cannot_claim_admin(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Mallory", "email": "mallory@mic.io", "password": "password123", "role": "admin"},
    )

    assert response.status_code == 201
    assert response.json()["data"]["user"]["role"] == "user"


async def test_register_as_technician(client):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Ted", "email": "ted@mic.io", "password": "password123", "role": "technician"},
    )
    assert response.json()["data"]["user"]["role"] == "technician"


async def test_register_duplicate_email(client, make_user):
    await make_user(email="dup@mic.io")

    response = await client.post(
        "/api/auth/register",
        json={"name": "Dup", "email": "DUP@mic.io", "password": "password123"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "ConflictError"


async def test_login_success(client, make_user):
    user = await make_user(email="login@mic.io")

    response = await client.post("/api/auth/login", json={"email": "login@mic.io", "password": "password123"})

    assert response.status_code == 200
    assert response.json()["data"]["user"]["id"] == str(user.id)
    assert response.json()["data"]["token"]


async def test_login_wrong_password(client, make_user):
    await make_user(email="login@mic.io")

    response = await client.post("/api/auth/login", json={"email": "login@mic.io", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["code"] == "AuthenticationFailed"


async def test_login_inactive_account(client, make_user):
    await make_user(email="gone@mic.io", is_active=False)

    response = await client.post("/api/auth/login", json={"email": "gone@mic.io", "password": "password123"})

    assert response.status_code == 401
    assert "deactivated" in response.json()["error"]


async def test_missing_token_is_unauthorized(client):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["error"] == "Not authorized, no token"


async def test_garbage_token_is_unauthorized(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["error"] == "Not authorized, token failed"


async def test_deactivated_user_token_is_forbidden(client, make_user, auth_headers_for):
    user = await make_user(is_active=False)

    response = await client.get("/api/auth/me", headers=auth_headers_for(user))

    assert response.status_code == 403


async def test_profile_update_changes_password(client, make_user, auth_headers_for):
    user = await make_user(email="prof@mic.io")

    response = await client.put(
        "/api/auth/profile",
        json={"name": "Renamed", "password": "brand-new-pass"},
        headers=auth_headers_for(user),
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Renamed"

    old = await client.post("/api/auth/login", json={"email": "prof@mic.io", "password": "password123"})
    new = await client.post("/api/auth/login", json={"email": "prof@mic.io", "password": "brand-new-pass"})
    assert old.status_code == 401
    assert new.status_code == 200
