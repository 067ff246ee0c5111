"""Tests for error handling and clean error responses.

Verifies that:
1. Malformed bodies return 400 with code ValidationError
2. Non-existent resources return 404 with ResourceNotFound
3. Every error uses the {data, meta, error, code} envelope
"""

import uuid


class TestBadInput:
    """Malformed requests produce clean 400s."""

    async def test_invalid_json_body(self, client, plain_user, auth_headers_for):
        response = await client.post(
            "/api/alerts",
            content="{ not valid json }",
            headers={"Content-Type": "application/json", **auth_headers_for(plain_user)},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "ValidationError"
        assert data["data"] is None
        assert "traceback" not in str(data).lower()

    async def test_missing_required_field(self, client, plain_user, make_machine, auth_headers_for):
        machine = await make_machine()

        response = await client.post(
            "/api/alerts",
            json={"title": "No description", "machine_id": str(machine.id)},
            headers=auth_headers_for(plain_user),
        )

        assert response.status_code == 400
        assert "description" in response.json()["error"]

    async def test_malformed_enum_value(self, client, plain_user, make_machine, auth_headers_for):
        machine = await make_machine()

        response = await client.post(
            "/api/alerts",
            json={"title": "t", "description": "d", "machine_id": str(machine.id), "priority": "urgent"},
            headers=auth_headers_for(plain_user),
        )

        assert response.status_code == 400

    async def test_malformed_path_id(self, client, plain_user, auth_headers_for):
        response = await client.get("/api/alerts/not-a-uuid", headers=auth_headers_for(plain_user))
        assert response.status_code == 400


class TestResourceNotFound:
    async def test_nonexistent_alert(self, client, admin, auth_headers_for):
        missing = uuid.uuid4()
        response = await client.get(f"/api/alerts/{missing}", headers=auth_headers_for(admin))

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Alert not found"
        assert data["code"] == "ResourceNotFound"
        assert data["details"] == {"resource_type": "Alert", "resource_id": str(missing)}
        assert "timestamp" in data["meta"]

    async def test_not_found_wins_over_forbidden(self, client, plain_user, auth_headers_for):
        response = await client.put(
            f"/api/alerts/{uuid.uuid4()}", json={"title": "x"}, headers=auth_headers_for(plain_user)
        )
        assert response.status_code == 404


class TestEnvelope:
    async def test_success_envelope_carries_request_id(self, client, plain_user, auth_headers_for):
        response = await client.get(
            "/api/alerts", headers={"X-Request-ID": "req-123", **auth_headers_for(plain_user)}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["error"] is None
        assert body["meta"]["request_id"] == "req-123"
        assert response.headers["X-Request-ID"] == "req-123"

    async def test_unknown_route_uses_envelope(self, client):
        response = await client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.json()["data"] is None

    async def test_root_banner(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["docs_url"] == "/docs"

    async def test_health_reports_uninitialized_database(self, client):
        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
