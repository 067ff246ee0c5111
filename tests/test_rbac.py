"""
RBAC tests: the access policy as pure functions.

- user: files alerts, sees and edits only alerts they created or are assigned.
- technician: works any alert, manages machines and maintenance.
- admin: everything, except deleting their own account.
"""

import uuid
from types import SimpleNamespace

import pytest

from core.exceptions import PermissionDenied
from schemas.security import Actor, UserRole
from services.rbac_service import (
    Operation,
    authorize,
    can_assign_to_self,
    can_delete_user,
    can_update_alert,
    can_view_alert,
    is_allowed,
    roles_for,
)


def _actor(role: UserRole) -> Actor:
    return Actor(id=uuid.uuid4(), role=role, name=role.value)


def _alert(created_by=None, assigned_to=None):
    return SimpleNamespace(created_by_id=created_by, assigned_to_id=assigned_to)


@pytest.fixture
def user():
    return _actor(UserRole.USER)


@pytest.fixture
def technician():
    return _actor(UserRole.TECHNICIAN)


@pytest.fixture
def admin():
    return _actor(UserRole.ADMIN)


class TestAlertOwnership:
    def test_creator_can_view_and_update(self, user):
        alert = _alert(created_by=user.id)
        assert can_view_alert(user, alert)
        assert can_update_alert(user, alert)

    def test_assignee_can_view_and_update(self, user):
        alert = _alert(created_by=uuid.uuid4(), assigned_to=user.id)
        assert can_view_alert(user, alert)
        assert can_update_alert(user, alert)

    def test_stranger_user_cannot_view(self, user):
        alert = _alert(created_by=uuid.uuid4())
        assert not can_view_alert(user, alert)
        assert not can_update_alert(user, alert)

    @pytest.mark.parametrize("role", [UserRole.TECHNICIAN, UserRole.ADMIN])
    def test_staff_see_every_alert(self, role):
        alert = _alert(created_by=uuid.uuid4())
        assert can_view_alert(_actor(role), alert)
        assert can_update_alert(_actor(role), alert)

    def test_unassigned_alert_does_not_match_missing_ids(self, user):
        assert not can_view_alert(user, _alert())


class TestRoleGrants:
    def test_assign_to_self_is_staff_only(self, user, technician, admin):
        assert not can_assign_to_self(user)
        assert can_assign_to_self(technician)
        assert can_assign_to_self(admin)

    @pytest.mark.parametrize(
        "operation",
        [
            Operation.DELETE_ALERT,
            Operation.DELETE_MACHINE,
            Operation.MANAGE_USERS,
            Operation.DELETE_MAINTENANCE,
            Operation.UPDATE_FEEDBACK,
            Operation.DELETE_FEEDBACK,
        ],
    )
    def test_admin_only_operations(self, operation, user, technician, admin):
        assert roles_for(operation) == frozenset({UserRole.ADMIN})
        assert not is_allowed(user, operation)
        assert not is_allowed(technician, operation)
        assert is_allowed(admin, operation)

    @pytest.mark.parametrize(
        "operation",
        [
            Operation.CREATE_MACHINE,
            Operation.UPDATE_MACHINE,
            Operation.UPDATE_MACHINE_STATUS,
            Operation.UPDATE_MACHINE_METRICS,
            Operation.CREATE_MAINTENANCE,
            Operation.UPDATE_MAINTENANCE,
        ],
    )
    def test_staff_operations(self, operation, user, technician, admin):
        assert not is_allowed(user, operation)
        assert is_allowed(technician, operation)
        assert is_allowed(admin, operation)

    def test_everyone_files_and_lists_alerts(self, user, technician, admin):
        for actor in (user, technician, admin):
            assert is_allowed(actor, Operation.CREATE_ALERT)
            assert is_allowed(actor, Operation.LIST_ALERTS)

    def test_everyone_submits_feedback_but_only_authors_read_it(self, user, technician, admin):
        for actor in (user, technician, admin):
            assert is_allowed(actor, Operation.SUBMIT_FEEDBACK)

        feedback = _alert(created_by=user.id)
        assert is_allowed(user, Operation.VIEW_FEEDBACK, feedback)
        assert not is_allowed(technician, Operation.VIEW_FEEDBACK, feedback)
        assert is_allowed(admin, Operation.VIEW_FEEDBACK, feedback)

    def test_every_operation_has_a_grant(self):
        for operation in Operation:
            assert roles_for(operation)


class TestUserDeletion:
    def test_admin_deletes_other_accounts(self, admin):
        assert can_delete_user(admin, uuid.uuid4())

    def test_admin_cannot_delete_self(self, admin):
        assert not can_delete_user(admin, admin.id)
        with pytest.raises(PermissionDenied) as exc_info:
            authorize(admin, Operation.DELETE_USER, admin.id)
        assert "your own account" in exc_info.value.message

    def test_non_admin_cannot_delete_anyone(self, technician):
        assert not can_delete_user(technician, uuid.uuid4())


class TestAuthorize:
    def test_denial_names_action_and_roles(self, user):
        with pytest.raises(PermissionDenied) as exc_info:
            authorize(user, Operation.DELETE_MACHINE)
        assert exc_info.value.status_code == 403
        assert "delete" in exc_info.value.message

    def test_allowed_returns_none(self, admin):
        assert authorize(admin, Operation.DELETE_MACHINE) is None
