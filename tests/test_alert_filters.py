"""Alert listing: role scoping, explicit filters and pagination."""

import pytest

from schemas.alert import AlertPriority, AlertStatus
from schemas.response import APIResponse
from services.alert_filters import AlertFilter, escape_like
from services.alert_service import AlertService


@pytest.fixture
async def seeded(make_machine, make_alert, make_user, plain_user, technician):
    """A small mixed population of alerts across two machines."""
    other_user = await make_user()
    other_tech = await make_user(role=technician.role)
    press, lathe = await make_machine(name="Press"), await make_machine(name="Lathe")

    alerts = {
        "mine_open": await make_alert(press, plain_user, title="Hydraulic leak"),
        "mine_resolved": await make_alert(lathe, plain_user, status=AlertStatus.RESOLVED),
        "other_open": await make_alert(lathe, other_user, priority=AlertPriority.CRITICAL),
        "other_assigned_tech": await make_alert(
            press, other_user, status=AlertStatus.ASSIGNED, assigned_to=technician
        ),
        "other_assigned_elsewhere": await make_alert(
            press, other_user, status=AlertStatus.IN_PROGRESS, assigned_to=other_tech
        ),
        "assigned_to_user": await make_alert(
            lathe, other_user, status=AlertStatus.ASSIGNED, assigned_to=plain_user
        ),
    }
    return {"press": press, "lathe": lathe, "alerts": alerts}


def _ids(items):
    return {a.id for a in items}


class TestRoleScope:
    async def test_user_sees_only_own_alerts(self, db_session, seeded, plain_user, actor_of):
        items, total, _ = await AlertService(db_session).list_alerts(actor_of(plain_user))

        alerts = seeded["alerts"]
        assert _ids(items) == {alerts["mine_open"].id, alerts["mine_resolved"].id}
        assert total == 2
        assert all(a.created_by_id == plain_user.id for a in items)

    async def test_user_scope_survives_explicit_filters(self, db_session, seeded, plain_user, actor_of):
        filters = AlertFilter(status=AlertStatus.OPEN, machine_id=seeded["lathe"].id)
        items, total, _ = await AlertService(db_session).list_alerts(actor_of(plain_user), filters)

        assert items == []
        assert total == 0

    async def test_technician_sees_open_or_assigned_to_them(
        self, db_session, seeded, technician, actor_of
    ):
        items, _, _ = await AlertService(db_session).list_alerts(actor_of(technician))

        alerts = seeded["alerts"]
        assert _ids(items) == {
            alerts["mine_open"].id,
            alerts["other_open"].id,
            alerts["other_assigned_tech"].id,
        }
        assert all(a.status == AlertStatus.OPEN or a.assigned_to_id == technician.id for a in items)

    async def test_technician_scope_intersects_filters(self, db_session, seeded, technician, actor_of):
        filters = AlertFilter(machine_id=seeded["press"].id)
        items, _, _ = await AlertService(db_session).list_alerts(actor_of(technician), filters)

        alerts = seeded["alerts"]
        assert _ids(items) == {alerts["mine_open"].id, alerts["other_assigned_tech"].id}

    async def test_admin_sees_everything(self, db_session, seeded, admin, actor_of):
        items, total, _ = await AlertService(db_session).list_alerts(actor_of(admin))
        assert total == len(seeded["alerts"])


class TestExplicitFilters:
    async def test_priority_filter(self, db_session, seeded, admin, actor_of):
        items, _, _ = await AlertService(db_session).list_alerts(
            actor_of(admin), AlertFilter(priority=AlertPriority.CRITICAL)
        )
        assert _ids(items) == {seeded["alerts"]["other_open"].id}

    async def test_search_matches_title_case_insensitively(self, db_session, seeded, admin, actor_of):
        items, _, _ = await AlertService(db_session).list_alerts(
            actor_of(admin), AlertFilter(search="HYDRAULIC")
        )
        assert _ids(items) == {seeded["alerts"]["mine_open"].id}

    async def test_search_wildcards_match_literally(self, db_session, seeded, admin, actor_of):
        items, _, _ = await AlertService(db_session).list_alerts(actor_of(admin), AlertFilter(search="%"))
        assert items == []


class TestPagination:
    async def test_second_page_of_fifteen(self, db_session, make_machine, make_alert, admin, actor_of):
        machine = await make_machine()
        for n in range(15):
            await make_alert(machine, admin, title=f"Alert {n}")

        items, total, limit = await AlertService(db_session).list_alerts(actor_of(admin), page=2, limit=10)

        assert len(items) == 5
        assert total == 15
        assert APIResponse.paginated(items, page=2, page_size=limit, total_count=total).meta.total_pages == 2

    async def test_newest_first(self, db_session, make_machine, make_alert, admin, actor_of):
        machine = await make_machine()
        first = await make_alert(machine, admin, title="first")
        last = await make_alert(machine, admin, title="last")

        items, _, _ = await AlertService(db_session).list_alerts(actor_of(admin))

        assert [a.id for a in items] == [last.id, first.id]

    async def test_limit_is_capped(self, db_session, admin, actor_of):
        service = AlertService(db_session)
        _, _, limit = await service.list_alerts(actor_of(admin), limit=10_000)
        assert limit == service.max_page_size


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


@pytest.mark.parametrize("total,limit,pages", [(0, 10, 0), (10, 10, 1), (11, 10, 2), (15, 10, 2)])
def test_total_pages(total, limit, pages):
    assert APIResponse.paginated([], page=1, page_size=limit, total_count=total).meta.total_pages == pages
