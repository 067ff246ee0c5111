"""Maintenance scheduling endpoints and the completion side effect."""

import uuid
from datetime import datetime

from db.models import Machine


def _record(machine_id, **overrides):
    payload = {
        "title": "Quarterly spindle service",
        "description": "Replace bearings and re-grease",
        "machine_id": str(machine_id),
        "scheduled_date": "2023-02-01T08:00:00Z",
        "estimated_duration": 4,
        "required_parts": ["bearing 6205", "grease"],
    }
    payload.update(overrides)
    return payload


async def test_technician_schedules_maintenance(client, make_machine, technician, auth_headers_for):
    machine = await make_machine()

    response = await client.post(
        "/api/maintenance",
        json=_record(machine.id, assigned_technicians=[str(technician.id)]),
        headers=auth_headers_for(technician),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "scheduled"
    assert data["maintenance_type"] == "preventive"
    assert [t["id"] for t in data["technicians"]] == [str(technician.id)]
    assert data["required_parts"] == ["bearing 6205", "grease"]


async def test_plain_user_cannot_schedule(client, make_machine, plain_user, auth_headers_for):
    machine = await make_machine()
    response = await client.post("/api/maintenance", json=_record(machine.id), headers=auth_headers_for(plain_user))
    assert response.status_code == 403


async def test_unknown_technician_is_not_found(client, make_machine, admin, auth_headers_for):
    machine = await make_machine()

    response = await client.post(
        "/api/maintenance",
        json=_record(machine.id, assigned_technicians=[str(uuid.uuid4())]),
        headers=auth_headers_for(admin),
    )

    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "User"


async def test_non_positive_duration_is_rejected(client, make_machine, admin, auth_headers_for):
    machine = await make_machine()
    response = await client.post(
        "/api/maintenance", json=_record(machine.id, estimated_duration=0), headers=auth_headers_for(admin)
    )
    assert response.status_code == 400


async def test_completing_maintenance_advances_machine_calendar(
    client, db_session, make_machine, technician, auth_headers_for
):
    machine = await make_machine(maintenance_interval=30, last_maintenance=datetime(2022, 12, 1))
    created = await client.post(
        "/api/maintenance", json=_record(machine.id), headers=auth_headers_for(technician)
    )
    record_id = created.json()["data"]["id"]

    response = await client.put(
        f"/api/maintenance/{record_id}",
        json={"status": "completed", "completed_date": "2023-01-01T00:00:00Z", "actual_duration": 3.5},
        headers=auth_headers_for(technician),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "completed"
    assert data["completed_by"]["id"] == str(technician.id)

    stored = await db_session.get(Machine, machine.id, populate_existing=True)
    assert stored.last_maintenance.date().isoformat() == "2023-01-01"
    assert stored.next_scheduled_maintenance.date().isoformat() == "2023-01-31"


async def test_list_is_ordered_by_schedule(client, make_machine, admin, plain_user, auth_headers_for):
    machine = await make_machine()
    for day in ("2023-03-01", "2023-01-01", "2023-02-01"):
        await client.post(
            "/api/maintenance",
            json=_record(machine.id, title=day, scheduled_date=f"{day}T08:00:00Z"),
            headers=auth_headers_for(admin),
        )

    response = await client.get("/api/maintenance", headers=auth_headers_for(plain_user))

    assert [r["title"] for r in response.json()["data"]] == ["2023-01-01", "2023-02-01", "2023-03-01"]
    assert response.json()["meta"]["total_count"] == 3


async def test_only_admin_deletes(client, make_machine, technician, admin, auth_headers_for):
    machine = await make_machine()
    created = await client.post("/api/maintenance", json=_record(machine.id), headers=auth_headers_for(admin))
    record_id = created.json()["data"]["id"]

    assert (await client.delete(f"/api/maintenance/{record_id}", headers=auth_headers_for(technician))).status_code == 403
    assert (await client.delete(f"/api/maintenance/{record_id}", headers=auth_headers_for(admin))).status_code == 200
    assert (await client.get(f"/api/maintenance/{record_id}", headers=auth_headers_for(admin))).status_code == 404
