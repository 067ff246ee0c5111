"""MIC Service — Alert query filters.

Turns the listing query parameters plus the caller's role into SQLAlchemy
WHERE clauses. Role scoping is always ANDed on top of the explicit
filters, never instead of them:

    technician  ->  assigned_to = actor OR status = open
    user        ->  created_by = actor
    admin       ->  (no extra scope)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import ColumnElement, or_

from db.models import Alert
from schemas.alert import AlertPriority, AlertStatus
from schemas.security import Actor, UserRole

LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class AlertFilter:
    """Explicit listing filters. ``None`` means "not filtered"."""

    status: AlertStatus | None = None
    priority: AlertPriority | None = None
    machine_id: uuid.UUID | None = None
    search: str | None = None


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def role_scope(actor: Actor) -> list[ColumnElement[bool]]:
    if actor.role == UserRole.TECHNICIAN:
        return [or_(Alert.assigned_to_id == actor.id, Alert.status == AlertStatus.OPEN)]
    if actor.role == UserRole.USER:
        return [Alert.created_by_id == actor.id]
    return []


def build_alert_conditions(filters: AlertFilter, actor: Actor) -> list[ColumnElement[bool]]:
    """Build the WHERE clauses for an alert listing.

    Returns:
        Clauses to be ANDed together. An empty list means "everything".
    """
    conditions: list[ColumnElement[bool]] = []

    if filters.status is not None:
        conditions.append(Alert.status == filters.status)
    if filters.priority is not None:
        conditions.append(Alert.priority == filters.priority)
    if filters.machine_id is not None:
        conditions.append(Alert.machine_id == filters.machine_id)

    term = (filters.search or "").strip()
    if term:
        pattern = f"%{escape_like(term)}%"
        conditions.append(
            or_(
                Alert.title.ilike(pattern, escape=LIKE_ESCAPE),
                Alert.description.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    conditions.extend(role_scope(actor))
    return conditions
