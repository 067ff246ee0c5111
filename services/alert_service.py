"""MIC Service — Alert Service.

Encapsulates the alert workflow and its coupling to machine status:

    - Filing a critical alert against an operational machine puts the
      machine into ``error``.
    - Resolving the last outstanding critical alert on a machine that is
      still in ``error`` returns it to ``operational``. A machine a human
      has since moved to ``maintenance`` or ``offline`` is left alone.

Both couplings run inside the same transaction as the alert write. The
resolve path locks the machine row, recounts outstanding critical alerts,
and flips the status with a compare-and-swap UPDATE, so two technicians
resolving the last two critical alerts concurrently cannot both leave the
machine in ``error``.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from core.exceptions import ResourceNotFound
from db.base import utcnow
from db.models import Alert, Machine, User
from logger import get_logger
from schemas.alert import (
    OUTSTANDING_STATUSES,
    AlertCreate,
    AlertPriority,
    AlertStatus,
    AlertUpdate,
)
from schemas.machine import MachineStatus
from schemas.security import Actor
from services.alert_filters import AlertFilter, build_alert_conditions
from services.alert_lifecycle import check_transition
from services.base import BaseService
from services.rbac_service import Operation, authorize

logger = get_logger(__name__)


class AlertService(BaseService[Alert]):
    """Service for the alert lifecycle.

    This service encapsulates:
    - Role-scoped, filtered, paginated listing
    - Creation with critical-alert machine escalation
    - Patch updates (explicit status first, then assignment)
    - Self-assignment and deletion
    """

    resource_name = "Alert"

    def __init__(self, db: AsyncSession, strict_transitions: bool | None = None):
        super().__init__(Alert, db)
        settings = get_settings().alerts
        self.strict_transitions = (
            settings.strict_transitions if strict_transitions is None else strict_transitions
        )
        self.default_page_size = settings.default_page_size
        self.max_page_size = settings.max_page_size

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_alerts(
        self,
        actor: Actor,
        filters: AlertFilter | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> tuple[list[Alert], int, int]:
        """List alerts visible to ``actor``, newest first.

        Args:
            actor: Caller; determines role scoping.
            filters: Explicit filters (status, priority, machine, search).
            page: 1-indexed page.
            limit: Page size, capped at ``ALERT_MAX_PAGE_SIZE``.

        Returns:
            ``(items, total_count, limit)`` where ``limit`` is the page size
            actually applied.
        """
        authorize(actor, Operation.LIST_ALERTS)
        limit = min(limit or self.default_page_size, self.max_page_size)
        conditions = build_alert_conditions(filters or AlertFilter(), actor)

        items, total = await self.paginate(
            conditions,
            order_by=(Alert.created_at.desc(), Alert.id.desc()),
            page=page,
            limit=limit,
        )
        self.logger.debug("Listed alerts", count=len(items), total=total, page=page)
        return items, total, limit

    async def get_alert(self, alert_id: uuid.UUID, actor: Actor) -> Alert:
        """Fetch one alert.

        Raises:
            ResourceNotFound: Checked first, so existence is all an
                unauthorized caller can learn.
            PermissionDenied: Caller is neither creator, assignee nor staff.
        """
        alert = await self.get_or_raise(alert_id)
        authorize(actor, Operation.VIEW_ALERT, alert)
        return alert

    async def count_outstanding_critical(
        self,
        machine_id: uuid.UUID,
        exclude_alert_id: uuid.UUID | None = None,
    ) -> int:
        conditions = [
            Alert.machine_id == machine_id,
            Alert.priority == AlertPriority.CRITICAL,
            Alert.status.in_(list(OUTSTANDING_STATUSES)),
        ]
        if exclude_alert_id is not None:
            conditions.append(Alert.id != exclude_alert_id)
        total = await self.db.scalar(select(func.count(Alert.id)).where(*conditions))
        return int(total or 0)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_alert(self, payload: AlertCreate, actor: Actor) -> Alert:
        """File a new alert (status ``open``).

        Raises:
            ResourceNotFound: If the machine does not exist.
        """
        authorize(actor, Operation.CREATE_ALERT)

        machine = await self.db.get(Machine, payload.machine_id)
        if machine is None:
            raise ResourceNotFound("Machine", payload.machine_id)

        alert = Alert(
            title=payload.title,
            description=payload.description,
            machine_id=machine.id,
            priority=payload.priority,
            status=AlertStatus.OPEN,
            created_by_id=actor.id,
            photos=list(payload.photos),
        )
        self.db.add(alert)
        await self.db.flush()

        escalated = False
        if payload.priority == AlertPriority.CRITICAL:
            escalated = await self._escalate_machine(machine.id)

        await self.commit()
        self.logger.info(
            "Alert created",
            alert_id=str(alert.id),
            machine_id=str(machine.id),
            priority=payload.priority.value,
            machine_escalated=escalated,
        )
        return await self.reload(alert.id)

    async def update_alert(
        self,
        alert_id: uuid.UUID,
        patch: AlertUpdate,
        actor: Actor,
    ) -> Alert:
        """Apply a partial update.

        Field merge, then two rules in this order:

        1. Explicit ``status`` that differs from the current one is applied
           (checked against the transition table in strict mode). Entering
           ``resolved`` stamps resolved_at/resolved_by and may release the
           machine. Entering ``assigned`` with ``assigned_to`` sets the
           assignee.
        2. ``assigned_to`` that differs from the current assignee is set, and
           an alert still ``open`` at this point is promoted to ``assigned``,
           even if rule 1 was asked to keep it ``open``.

        Raises:
            ResourceNotFound: Alert or assignee does not exist.
            PermissionDenied: Caller may not update this alert.
            InvalidTransition: Strict mode and the status moves backwards.
        """
        alert = await self.get_or_raise(alert_id)
        authorize(actor, Operation.UPDATE_ALERT, alert)

        data: dict[str, Any] = {
            k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None
        }
        new_status: AlertStatus | None = data.pop("status", None)
        assignee_id: uuid.UUID | None = data.pop("assigned_to", None)

        if assignee_id is not None and await self.db.get(User, assignee_id) is None:
            raise ResourceNotFound("User", assignee_id)

        changed = self.apply_patch(alert, data)
        machine_released = False

        # Rule 1: explicit status
        if new_status is not None and new_status != alert.status:
            previous = alert.status
            alert.status = check_transition(previous, new_status, strict=self.strict_transitions)
            changed.append("status")

            if alert.status == AlertStatus.RESOLVED:
                alert.resolved_at = utcnow()
                alert.resolved_by_id = actor.id
                machine_released = await self._release_machine(alert)
            elif alert.status == AlertStatus.ASSIGNED and assignee_id is not None:
                alert.assigned_to_id = assignee_id
                changed.append("assigned_to")

            self.logger.info(
                "Alert status changed",
                alert_id=str(alert.id),
                from_status=AlertStatus(previous).value,
                to_status=alert.status.value,
            )

        # Rule 2: assignment and open -> assigned promotion
        if assignee_id is not None and assignee_id != alert.assigned_to_id:
            alert.assigned_to_id = assignee_id
            changed.append("assigned_to")
            if alert.status == AlertStatus.OPEN:
                alert.status = AlertStatus.ASSIGNED
                changed.append("status")

        await self.commit()
        self.logger.info(
            "Alert updated",
            alert_id=str(alert.id),
            changes=sorted(set(changed)),
            machine_released=machine_released,
        )
        return await self.reload(alert.id)

    async def assign_to_self(self, alert_id: uuid.UUID, actor: Actor) -> Alert:
        """Assign the alert to the caller and set status ``assigned``.

        The current status is not consulted: a resolved or closed alert is
        reopened as ``assigned`` by this path.

        Raises:
            ResourceNotFound: Alert does not exist.
            PermissionDenied: Caller is not a technician or admin.
        """
        alert = await self.get_or_raise(alert_id)
        authorize(actor, Operation.ASSIGN_ALERT_SELF)

        previous = alert.status
        alert.assigned_to_id = actor.id
        alert.status = AlertStatus.ASSIGNED

        await self.commit()
        self.logger.info(
            "Alert self-assigned",
            alert_id=str(alert.id),
            assignee_id=str(actor.id),
            from_status=AlertStatus(previous).value,
        )
        return await self.reload(alert.id)

    async def delete_alert(self, alert_id: uuid.UUID, actor: Actor) -> None:
        """Hard-delete an alert (admin only)."""
        alert = await self.get_or_raise(alert_id)
        authorize(actor, Operation.DELETE_ALERT)
        await self.delete(alert)

    # =========================================================================
    # Machine status coupling
    # =========================================================================

    async def _escalate_machine(self, machine_id: uuid.UUID) -> bool:
        """operational -> error, atomically. Returns True if the row flipped."""
        result = await self.db.execute(
            update(Machine)
            .where(Machine.id == machine_id, Machine.status == MachineStatus.OPERATIONAL)
            .values(status=MachineStatus.ERROR)
        )
        escalated = result.rowcount == 1
        if escalated:
            self.logger.warning(
                "Machine status set to error by critical alert",
                machine_id=str(machine_id),
            )
        return escalated

    async def _release_machine(self, alert: Alert) -> bool:
        """error -> operational once no other critical alert is outstanding.

        Returns:
            True if the machine was returned to operational.
        """
        if alert.machine_id is None:
            return False
        machine = await self.db.scalar(
            select(Machine)
            .where(Machine.id == alert.machine_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if machine is None or machine.status != MachineStatus.ERROR:
            return False

        remaining = await self.count_outstanding_critical(machine.id, exclude_alert_id=alert.id)
        if remaining:
            self.logger.info(
                "Machine stays in error",
                machine_id=str(machine.id),
                outstanding_critical=remaining,
            )
            return False

        result = await self.db.execute(
            update(Machine)
            .where(Machine.id == machine.id, Machine.status == MachineStatus.ERROR)
            .values(status=MachineStatus.OPERATIONAL)
        )
        released = result.rowcount == 1
        if released:
            self.logger.info("Machine returned to operational", machine_id=str(machine.id))
        return released
