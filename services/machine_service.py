"""MIC Service — Machine Service.

Encapsulates all business logic for Machine assets: registry CRUD,
direct status and metric updates, and the maintenance calendar.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from core.exceptions import ConflictError
from db.models import Alert, Machine, MaintenanceRecord
from logger import get_logger
from schemas.machine import (
    MachineCreate,
    MachineMetricsUpdate,
    MachineStatus,
    MachineUpdate,
)
from schemas.security import Actor
from services.alert_filters import LIKE_ESCAPE, escape_like
from services.base import BaseService
from services.maintenance_scheduler import (
    on_interval_change,
    on_machine_create,
    resolve_interval,
)
from services.rbac_service import Operation, authorize

logger = get_logger(__name__)


class MachineService(BaseService[Machine]):
    """Service for managing the Machine registry.

    This service encapsulates:
    - Listing with status/location/search filters
    - Serial-number uniqueness
    - Maintenance schedule derivation on create and interval change
    - Cascading hard delete
    """

    resource_name = "Machine"

    def __init__(self, db: AsyncSession):
        super().__init__(Machine, db)
        settings = get_settings()
        self.default_interval = settings.maintenance.default_interval_days
        self.default_page_size = settings.alerts.default_page_size
        self.max_page_size = settings.alerts.max_page_size

    async def list_machines(
        self,
        status: MachineStatus | None = None,
        location: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> tuple[list[Machine], int, int]:
        """List machines, newest first.

        Returns:
            ``(items, total_count, limit)``.
        """
        limit = min(limit or self.default_page_size, self.max_page_size)
        conditions: list[Any] = []
        if status is not None:
            conditions.append(Machine.status == status)
        if location:
            conditions.append(Machine.location.ilike(f"%{escape_like(location)}%", escape=LIKE_ESCAPE))
        term = (search or "").strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            conditions.append(
                or_(*(
                    column.ilike(pattern, escape=LIKE_ESCAPE)
                    for column in (Machine.name, Machine.model, Machine.serial_number, Machine.location)
                ))
            )

        items, total = await self.paginate(
            conditions,
            order_by=(Machine.created_at.desc(), Machine.id.desc()),
            page=page,
            limit=limit,
        )
        return items, total, limit

    async def get_by_serial(self, serial_number: str) -> Machine | None:
        return await self.db.scalar(select(Machine).where(Machine.serial_number == serial_number))

    async def _ensure_serial_free(self, serial_number: str, exclude_id: uuid.UUID | None = None) -> None:
        existing = await self.get_by_serial(serial_number)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("Machine", "serial_number", serial_number)

    async def create_machine(self, payload: MachineCreate, actor: Actor) -> Machine:
        """Register a machine.

        Raises:
            ConflictError: Serial number already registered.
            ValidationError: Non-positive maintenance interval.
        """
        authorize(actor, Operation.CREATE_MACHINE)
        await self._ensure_serial_free(payload.serial_number)

        interval = resolve_interval(payload.maintenance_interval, default=self.default_interval)
        last_maintenance, next_maintenance = on_machine_create(interval)

        machine = Machine(
            name=payload.name,
            model=payload.model,
            serial_number=payload.serial_number,
            location=payload.location,
            description=payload.description,
            manufacturer=payload.manufacturer,
            notes=payload.notes,
            status=payload.status,
            installation_date=payload.installation_date or last_maintenance,
            last_maintenance=last_maintenance,
            next_scheduled_maintenance=next_maintenance,
            maintenance_interval=interval,
            created_by_id=actor.id,
        )
        self.db.add(machine)
        await self.commit(conflict_field="serial_number", conflict_value=payload.serial_number)

        self.logger.info(
            "Machine created",
            machine_id=str(machine.id),
            serial_number=machine.serial_number,
            maintenance_interval=interval,
        )
        return await self.reload(machine.id)

    async def update_machine(
        self,
        machine_id: uuid.UUID,
        patch: MachineUpdate,
        actor: Actor,
    ) -> Machine:
        """Partially update a machine.

        A new ``maintenance_interval`` moves the next maintenance date to
        last maintenance + interval.
        """
        authorize(actor, Operation.UPDATE_MACHINE)
        machine = await self.get_or_raise(machine_id)

        data = patch.model_dump(exclude_unset=True)
        interval_value = data.pop("maintenance_interval", None)

        serial = data.get("serial_number")
        if serial and serial != machine.serial_number:
            await self._ensure_serial_free(serial, exclude_id=machine.id)

        changed = self.apply_patch(machine, data)

        if interval_value is not None:
            interval = resolve_interval(interval_value, default=self.default_interval)
            anchor = machine.last_maintenance or machine.installation_date
            machine.maintenance_interval = interval
            machine.next_scheduled_maintenance = on_interval_change(anchor, interval)
            changed.append("maintenance_interval")

        await self.commit(conflict_field="serial_number", conflict_value=serial)
        self.logger.info("Machine updated", machine_id=str(machine.id), changes=changed)
        return await self.reload(machine.id)

    async def update_status(
        self,
        machine_id: uuid.UUID,
        status: MachineStatus,
        actor: Actor,
    ) -> Machine:
        authorize(actor, Operation.UPDATE_MACHINE_STATUS)
        machine = await self.get_or_raise(machine_id)
        previous = machine.status
        machine.status = status
        await self.commit()
        self.logger.info(
            "Machine status changed",
            machine_id=str(machine.id),
            from_status=MachineStatus(previous).value,
            to_status=status.value,
        )
        return machine

    async def update_metrics(
        self,
        machine_id: uuid.UUID,
        patch: MachineMetricsUpdate,
        actor: Actor,
    ) -> Machine:
        """Overwrite the provided gauges; the others keep their values."""
        authorize(actor, Operation.UPDATE_MACHINE_METRICS)
        machine = await self.get_or_raise(machine_id)
        changed = self.apply_patch(machine, patch.model_dump(exclude_unset=True))
        await self.commit()
        self.logger.info("Machine metrics updated", machine_id=str(machine.id), changes=changed)
        return machine

    async def delete_machine(self, machine_id: uuid.UUID, actor: Actor) -> None:
        """Hard-delete a machine.

        Alerts and maintenance records filed against it are kept as history
        with their machine reference cleared.
        """
        authorize(actor, Operation.DELETE_MACHINE)
        machine = await self.get_or_raise(machine_id)

        alerts = await self.db.execute(
            update(Alert)
            .where(Alert.machine_id == machine.id)
            .values(machine_id=None)
            .execution_options(synchronize_session="fetch")
        )
        records = await self.db.execute(
            update(MaintenanceRecord)
            .where(MaintenanceRecord.machine_id == machine.id)
            .values(machine_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.delete(machine)
        await self.commit()

        self.logger.info(
            "Machine deleted",
            machine_id=str(machine_id),
            alerts_detached=alerts.rowcount,
            maintenance_records_detached=records.rowcount,
        )
