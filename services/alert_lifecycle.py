"""MIC Service — Alert Lifecycle.

Declared transition table for ``Alert.status``. Alerts only move forward:

    open ──► assigned ──► in_progress ──► resolved ──► closed
      └────────┴──────────────┴──────────────┴──────────►┘

Any state may jump ahead to ``resolved`` or ``closed``; ``closed`` is
terminal. With strict checking disabled every transition is accepted.
"""

from __future__ import annotations

from core.exceptions import InvalidTransition
from schemas.alert import AlertStatus

TRANSITIONS: dict[AlertStatus, frozenset[AlertStatus]] = {
    AlertStatus.OPEN: frozenset({
        AlertStatus.ASSIGNED,
        AlertStatus.IN_PROGRESS,
        AlertStatus.RESOLVED,
        AlertStatus.CLOSED,
    }),
    AlertStatus.ASSIGNED: frozenset({
        AlertStatus.IN_PROGRESS,
        AlertStatus.RESOLVED,
        AlertStatus.CLOSED,
    }),
    AlertStatus.IN_PROGRESS: frozenset({AlertStatus.RESOLVED, AlertStatus.CLOSED}),
    AlertStatus.RESOLVED: frozenset({AlertStatus.CLOSED}),
    AlertStatus.CLOSED: frozenset(),
}


def allowed_transitions(current: AlertStatus) -> frozenset[AlertStatus]:
    return TRANSITIONS[AlertStatus(current)]


def is_valid_transition(current: AlertStatus, requested: AlertStatus) -> bool:
    return AlertStatus(requested) in allowed_transitions(current)


def check_transition(
    current: AlertStatus,
    requested: AlertStatus,
    strict: bool = True,
) -> AlertStatus:
    """Validate a status change and return the new status.

    Args:
        current: Status the alert is in.
        requested: Status the caller asked for (must differ from current).
        strict: Reject changes outside the transition table.

    Raises:
        InvalidTransition: In strict mode, when ``requested`` is not
            reachable from ``current``.
    """
    requested = AlertStatus(requested)
    if strict and not is_valid_transition(current, requested):
        raise InvalidTransition(AlertStatus(current).value, requested.value)
    return requested
