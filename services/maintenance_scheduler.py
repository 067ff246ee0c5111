"""MIC Service — Maintenance scheduling arithmetic.

Pure date arithmetic for a machine's maintenance calendar. The next date is
always derived from the *last* maintenance, never from the moment of an
edit, so changing the interval shifts the schedule relative to the work
that was actually done.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from core.exceptions import ValidationError
from db.base import utcnow

DEFAULT_INTERVAL_DAYS = 90


def resolve_interval(value: Any, default: int = DEFAULT_INTERVAL_DAYS) -> int:
    """Normalise a requested maintenance interval to whole days.

    Missing or non-numeric values fall back to ``default``.

    Raises:
        ValidationError: If the value is numeric but not positive.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        days = int(value)
    except (TypeError, ValueError):
        return default
    if days <= 0:
        raise ValidationError("maintenance_interval", "must be a positive number of days")
    return days


def next_maintenance(last_maintenance: datetime, interval_days: int) -> datetime:
    return last_maintenance + timedelta(days=interval_days)


def on_machine_create(
    interval_days: int,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Initial schedule for a new machine.

    Returns:
        ``(last_maintenance, next_scheduled_maintenance)``.
    """
    now = now or utcnow()
    return now, next_maintenance(now, interval_days)


def on_interval_change(last_maintenance: datetime, new_interval_days: int) -> datetime:
    """Recompute the next date after the interval changed."""
    return next_maintenance(last_maintenance, new_interval_days)


def on_maintenance_completed(
    completed_at: datetime,
    interval_days: int,
) -> tuple[datetime, datetime]:
    """Schedule after maintenance work is completed.

    Returns:
        ``(last_maintenance, next_scheduled_maintenance)``.
    """
    return completed_at, next_maintenance(completed_at, interval_days)
