"""
RBAC service: who may do what to which record.

Pure functions of (actor, operation, record). No I/O; the services call
``authorize`` after loading the record so a missing record always surfaces
as ResourceNotFound before any permission decision is made.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Protocol

from core.exceptions import PermissionDenied
from schemas.security import Actor, UserRole

_ALL_ROLES = frozenset(UserRole)
_STAFF = frozenset({UserRole.TECHNICIAN, UserRole.ADMIN})
_ADMIN = frozenset({UserRole.ADMIN})


class Operation(str, Enum):
    LIST_ALERTS = "list_alerts"
    VIEW_ALERT = "view_alert"
    CREATE_ALERT = "create_alert"
    UPDATE_ALERT = "update_alert"
    ASSIGN_ALERT_SELF = "assign_alert_self"
    DELETE_ALERT = "delete_alert"

    CREATE_MACHINE = "create_machine"
    UPDATE_MACHINE = "update_machine"
    DELETE_MACHINE = "delete_machine"
    UPDATE_MACHINE_STATUS = "update_machine_status"
    UPDATE_MACHINE_METRICS = "update_machine_metrics"

    MANAGE_USERS = "manage_users"
    DELETE_USER = "delete_user"

    CREATE_MAINTENANCE = "create_maintenance"
    UPDATE_MAINTENANCE = "update_maintenance"
    DELETE_MAINTENANCE = "delete_maintenance"

    SUBMIT_FEEDBACK = "submit_feedback"
    VIEW_FEEDBACK = "view_feedback"
    UPDATE_FEEDBACK = "update_feedback"
    DELETE_FEEDBACK = "delete_feedback"


# Roles that pass unconditionally. Operations marked in _OWNER_OPERATIONS
# also pass for the record's creator or assignee.
ROLE_GRANTS: dict[Operation, frozenset[UserRole]] = {
    Operation.LIST_ALERTS: _ALL_ROLES,
    Operation.VIEW_ALERT: _STAFF,
    Operation.CREATE_ALERT: _ALL_ROLES,
    Operation.UPDATE_ALERT: _STAFF,
    Operation.ASSIGN_ALERT_SELF: _STAFF,
    Operation.DELETE_ALERT: _ADMIN,
    Operation.CREATE_MACHINE: _STAFF,
    Operation.UPDATE_MACHINE: _STAFF,
    Operation.DELETE_MACHINE: _ADMIN,
    Operation.UPDATE_MACHINE_STATUS: _STAFF,
    Operation.UPDATE_MACHINE_METRICS: _STAFF,
    Operation.MANAGE_USERS: _ADMIN,
    Operation.DELETE_USER: _ADMIN,
    Operation.CREATE_MAINTENANCE: _STAFF,
    Operation.UPDATE_MAINTENANCE: _STAFF,
    Operation.DELETE_MAINTENANCE: _ADMIN,
    Operation.SUBMIT_FEEDBACK: _ALL_ROLES,
    Operation.VIEW_FEEDBACK: _ADMIN,
    Operation.UPDATE_FEEDBACK: _ADMIN,
    Operation.DELETE_FEEDBACK: _ADMIN,
}

_OWNER_OPERATIONS = frozenset({Operation.VIEW_ALERT, Operation.UPDATE_ALERT, Operation.VIEW_FEEDBACK})

_LABELS: dict[Operation, tuple[str, str]] = {
    Operation.LIST_ALERTS: ("list", "alerts"),
    Operation.VIEW_ALERT: ("view", "this alert"),
    Operation.CREATE_ALERT: ("create", "alerts"),
    Operation.UPDATE_ALERT: ("update", "this alert"),
    Operation.ASSIGN_ALERT_SELF: ("assign", "alerts"),
    Operation.DELETE_ALERT: ("delete", "alerts"),
    Operation.CREATE_MACHINE: ("create", "machines"),
    Operation.UPDATE_MACHINE: ("update", "machines"),
    Operation.DELETE_MACHINE: ("delete", "machines"),
    Operation.UPDATE_MACHINE_STATUS: ("update", "machine status"),
    Operation.UPDATE_MACHINE_METRICS: ("update", "machine metrics"),
    Operation.MANAGE_USERS: ("manage", "users"),
    Operation.DELETE_USER: ("delete", "users"),
    Operation.CREATE_MAINTENANCE: ("create", "maintenance records"),
    Operation.UPDATE_MAINTENANCE: ("update", "maintenance records"),
    Operation.DELETE_MAINTENANCE: ("delete", "maintenance records"),
    Operation.SUBMIT_FEEDBACK: ("submit", "feedback"),
    Operation.VIEW_FEEDBACK: ("view", "this feedback"),
    Operation.UPDATE_FEEDBACK: ("update", "feedback"),
    Operation.DELETE_FEEDBACK: ("delete", "feedback"),
}


class OwnedRecord(Protocol):
    """Anything with a creator and an optional assignee (alerts, feedback)."""

    created_by_id: uuid.UUID | None
    assigned_to_id: uuid.UUID | None


def roles_for(operation: Operation) -> frozenset[UserRole]:
    """Roles that may perform ``operation`` regardless of ownership."""
    return ROLE_GRANTS[operation]


def is_creator_or_assignee(actor: Actor, record: OwnedRecord) -> bool:
    return actor.id in (record.created_by_id, record.assigned_to_id)


def is_allowed(actor: Actor, operation: Operation, record: Any = None) -> bool:
    """Decide whether ``actor`` may perform ``operation``.

    Args:
        actor: The authenticated identity.
        operation: What is being attempted.
        record: The target. An alert for view/update, the target user's id
            for DELETE_USER, otherwise ignored.

    Returns:
        True when permitted.
    """
    if operation == Operation.DELETE_USER and record is not None and record == actor.id:
        return False

    if actor.role in ROLE_GRANTS[operation]:
        return True

    if operation in _OWNER_OPERATIONS and record is not None:
        return is_creator_or_assignee(actor, record)

    return False


def authorize(
    actor: Actor,
    operation: Operation,
    record: Any = None,
    resource: str | None = None,
) -> None:
    """Raise PermissionDenied unless ``actor`` may perform ``operation``."""
    if is_allowed(actor, operation, record):
        return

    if operation == Operation.DELETE_USER and record == actor.id:
        raise PermissionDenied("delete", "your own account")

    action, default_resource = _LABELS[operation]
    grants = ROLE_GRANTS[operation]
    raise PermissionDenied(
        action,
        resource or default_resource,
        required_role=" or ".join(sorted(r.value for r in grants)),
    )


# =============================================================================
# Convenience predicates
# =============================================================================

def can_view_alert(actor: Actor, alert: OwnedRecord) -> bool:
    return is_allowed(actor, Operation.VIEW_ALERT, alert)


def can_update_alert(actor: Actor, alert: OwnedRecord) -> bool:
    return is_allowed(actor, Operation.UPDATE_ALERT, alert)


def can_assign_to_self(actor: Actor) -> bool:
    return is_allowed(actor, Operation.ASSIGN_ALERT_SELF)


def can_delete_user(actor: Actor, target_user_id: uuid.UUID) -> bool:
    return is_allowed(actor, Operation.DELETE_USER, target_user_id)
