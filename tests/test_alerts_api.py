"""Alert endpoints end to end: envelope, status codes and machine coupling."""

import uuid

from db.models import Machine
from schemas.alert import AlertStatus
from schemas.machine import MachineStatus


async def test_critical_alert_over_http_escalates_machine(
    client, db_session, make_machine, plain_user, technician, auth_headers_for
):
    machine = await make_machine()

    response = await client.post(
        "/api/alerts",
        json={
            "title": "Smoke from gearbox",
            "description": "Visible smoke near the main gearbox",
            "machine_id": str(machine.id),
            "priority": "critical",
        },
        headers=auth_headers_for(plain_user),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["error"] is None
    assert body["data"]["status"] == "open"
    assert body["data"]["machine"]["name"] == machine.name
    assert body["data"]["created_by"]["name"] == plain_user.name

    stored = await db_session.get(Machine, machine.id, populate_existing=True)
    assert stored.status == MachineStatus.ERROR

    alert_id = body["data"]["id"]
    response = await client.put(
        f"/api/alerts/{alert_id}",
        json={"status": "resolved"},
        headers=auth_headers_for(technician),
    )
    assert response.status_code == 200
    assert response.json()["data"]["resolved_by"]["id"] == str(technician.id)

    stored = await db_session.get(Machine, machine.id, populate_existing=True)
    assert stored.status == MachineStatus.OPERATIONAL


async def test_listing_is_paginated(client, make_machine, make_alert, admin, auth_headers_for):
    machine = await make_machine()
    for n in range(15):
        await make_alert(machine, admin, title=f"Alert {n}")

    response = await client.get("/api/alerts?page=2&limit=10", headers=auth_headers_for(admin))

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 5
    assert body["meta"]["total_count"] == 15
    assert body["meta"]["total_pages"] == 2
    assert body["meta"]["page"] == 2


async def test_oversized_limit_reports_applied_page_size(client, make_machine, make_alert, admin, auth_headers_for):
    await make_alert(await make_machine(), admin)

    response = await client.get("/api/alerts?limit=500", headers=auth_headers_for(admin))

    assert response.status_code == 200
    meta = response.json()["meta"]
    assert meta["page_size"] == 100
    assert meta["total_pages"] == 1


async def test_user_cannot_view_someone_elses_alert(
    client, make_machine, make_alert, make_user, plain_user, auth_headers_for
):
    alert = await make_alert(await make_machine(), await make_user())

    response = await client.get(f"/api/alerts/{alert.id}", headers=auth_headers_for(plain_user))

    assert response.status_code == 403
    assert response.json()["code"] == "PermissionDenied"


async def test_assign_to_self_requires_staff(
    client, make_machine, make_alert, plain_user, technician, auth_headers_for
):
    alert = await make_alert(await make_machine(), plain_user)

    denied = await client.put(f"/api/alerts/{alert.id}/assign", headers=auth_headers_for(plain_user))
    assert denied.status_code == 403

    taken = await client.put(f"/api/alerts/{alert.id}/assign", headers=auth_headers_for(technician))
    assert taken.status_code == 200
    assert taken.json()["data"]["status"] == "assigned"
    assert taken.json()["data"]["assigned_to"]["id"] == str(technician.id)


async def test_backwards_transition_is_bad_request(
    client, make_machine, make_alert, plain_user, admin, auth_headers_for
):
    alert = await make_alert(await make_machine(), plain_user, status=AlertStatus.CLOSED)

    response = await client.put(
        f"/api/alerts/{alert.id}", json={"status": "open"}, headers=auth_headers_for(admin)
    )

    assert response.status_code == 400
    assert response.json()["code"] == "InvalidTransition"


async def test_blank_title_is_rejected(client, make_machine, make_alert, plain_user, auth_headers_for):
    alert = await make_alert(await make_machine(), plain_user)

    response = await client.put(
        f"/api/alerts/{alert.id}", json={"title": "   "}, headers=auth_headers_for(plain_user)
    )

    assert response.status_code == 400
    assert response.json()["code"] == "ValidationError"


async def test_delete_alert(client, make_machine, make_alert, plain_user, technician, admin, auth_headers_for):
    alert = await make_alert(await make_machine(), plain_user)

    assert (await client.delete(f"/api/alerts/{alert.id}", headers=auth_headers_for(technician))).status_code == 403

    response = await client.delete(f"/api/alerts/{alert.id}", headers=auth_headers_for(admin))
    assert response.status_code == 200
    assert response.json()["data"]["message"] == "Alert removed"

    missing = await client.get(f"/api/alerts/{alert.id}", headers=auth_headers_for(admin))
    assert missing.status_code == 404


async def test_alert_on_unknown_machine_is_not_found(client, plain_user, auth_headers_for):
    response = await client.post(
        "/api/alerts",
        json={"title": "x", "description": "y", "machine_id": str(uuid.uuid4())},
        headers=auth_headers_for(plain_user),
    )

    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "Machine"
