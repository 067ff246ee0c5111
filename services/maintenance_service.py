"""MIC Service — Maintenance Service.

Scheduling and completion of maintenance work. Completing a record moves
the machine's maintenance calendar forward in the same transaction.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from core.exceptions import ResourceNotFound
from db.base import utcnow
from db.models import Machine, MaintenanceRecord, User
from logger import get_logger
from schemas.maintenance import (
    MaintenanceCreate,
    MaintenanceStatus,
    MaintenanceType,
    MaintenanceUpdate,
)
from schemas.security import Actor
from services.base import BaseService
from services.maintenance_scheduler import on_maintenance_completed
from services.rbac_service import Operation, authorize

logger = get_logger(__name__)


class MaintenanceService(BaseService[MaintenanceRecord]):
    """Service for maintenance records."""

    resource_name = "MaintenanceRecord"

    def __init__(self, db: AsyncSession):
        super().__init__(MaintenanceRecord, db)
        settings = get_settings().alerts
        self.default_page_size = settings.default_page_size
        self.max_page_size = settings.max_page_size

    async def list_records(
        self,
        status: MaintenanceStatus | None = None,
        machine_id: uuid.UUID | None = None,
        maintenance_type: MaintenanceType | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> tuple[list[MaintenanceRecord], int, int]:
        """List records, soonest scheduled first.

        Returns:
            ``(items, total_count, limit)``.
        """
        limit = min(limit or self.default_page_size, self.max_page_size)
        conditions: list[Any] = []
        if status is not None:
            conditions.append(MaintenanceRecord.status == status)
        if machine_id is not None:
            conditions.append(MaintenanceRecord.machine_id == machine_id)
        if maintenance_type is not None:
            conditions.append(MaintenanceRecord.maintenance_type == maintenance_type)

        items, total = await self.paginate(
            conditions,
            order_by=(MaintenanceRecord.scheduled_date.asc(), MaintenanceRecord.id.asc()),
            page=page,
            limit=limit,
        )
        return items, total, limit

    async def _load_technicians(self, user_ids: list[uuid.UUID]) -> list[User]:
        if not user_ids:
            return []
        wanted = list(dict.fromkeys(user_ids))
        result = await self.db.execute(select(User).where(User.id.in_(wanted)))
        found = {user.id: user for user in result.scalars().all()}
        for user_id in wanted:
            if user_id not in found:
                raise ResourceNotFound("User", user_id)
        return [found[user_id] for user_id in wanted]

    async def create_record(self, payload: MaintenanceCreate, actor: Actor) -> MaintenanceRecord:
        """Schedule maintenance.

        Raises:
            ResourceNotFound: Machine or a listed technician does not exist.
        """
        authorize(actor, Operation.CREATE_MAINTENANCE)

        machine = await self.db.get(Machine, payload.machine_id)
        if machine is None:
            raise ResourceNotFound("Machine", payload.machine_id)
        technicians = await self._load_technicians(payload.assigned_technicians)

        record = MaintenanceRecord(
            title=payload.title,
            description=payload.description,
            machine_id=machine.id,
            maintenance_type=payload.maintenance_type,
            scheduled_date=payload.scheduled_date,
            estimated_duration=payload.estimated_duration,
            required_parts=list(payload.required_parts),
            priority=payload.priority,
            status=MaintenanceStatus.SCHEDULED,
            notes=payload.notes,
            notify_users=payload.notify_users,
            cost=payload.cost,
            created_by_id=actor.id,
        )
        record.technicians = technicians
        self.db.add(record)
        await self.commit()

        self.logger.info(
            "Maintenance scheduled",
            record_id=str(record.id),
            machine_id=str(machine.id),
            technicians=len(technicians),
        )
        return await self.reload(record.id)

    async def update_record(
        self,
        record_id: uuid.UUID,
        patch: MaintenanceUpdate,
        actor: Actor,
    ) -> MaintenanceRecord:
        """Partially update a record.

        Moving into ``completed`` stamps completed_date (given or now) and
        completed_by, then sets the machine's last maintenance to the
        completion date and its next maintenance one interval later.
        """
        record = await self.get_or_raise(record_id)
        authorize(actor, Operation.UPDATE_MAINTENANCE)

        data = patch.model_dump(exclude_unset=True)
        technician_ids = data.pop("assigned_technicians", None)
        new_status = data.pop("status", None)

        changed = self.apply_patch(record, data)
        if technician_ids is not None:
            record.technicians = await self._load_technicians(technician_ids)
            changed.append("assigned_technicians")

        if new_status is not None and new_status != record.status:
            completing = new_status == MaintenanceStatus.COMPLETED
            record.status = new_status
            changed.append("status")
            if completing:
                record.completed_date = patch.completed_date or record.completed_date or utcnow()
                record.completed_by_id = actor.id
                await self._advance_machine_schedule(record)

        await self.commit()
        self.logger.info("Maintenance updated", record_id=str(record.id), changes=changed)
        return await self.reload(record.id)

    async def _advance_machine_schedule(self, record: MaintenanceRecord) -> None:
        if record.machine_id is None:
            return
        machine = await self.db.scalar(
            select(Machine)
            .where(Machine.id == record.machine_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if machine is None:
            return
        machine.last_maintenance, machine.next_scheduled_maintenance = on_maintenance_completed(
            record.completed_date, machine.maintenance_interval
        )
        self.logger.info(
            "Machine maintenance calendar advanced",
            machine_id=str(machine.id),
            next_maintenance=machine.next_scheduled_maintenance.isoformat(),
        )

    async def get_record(self, record_id: uuid.UUID) -> MaintenanceRecord:
        return await self.get_or_raise(record_id)

    async def delete_record(self, record_id: uuid.UUID, actor: Actor) -> None:
        record = await self.get_or_raise(record_id)
        authorize(actor, Operation.DELETE_MAINTENANCE)
        await self.delete(record)
