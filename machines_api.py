"""
Machines API Module
Endpoints for the machine registry, direct status/metric updates and the
maintenance calendar.

Import this into api_server.py to add the routes.
"""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from dependencies import AdminActor, CurrentActor, StaffActor
from schemas.machine import (
    MachineCreate,
    MachineMetrics,
    MachineMetricsUpdate,
    MachineRead,
    MachineStatus,
    MachineStatusUpdate,
    MachineUpdate,
)
from schemas.response import APIResponse
from services.machine_service import MachineService

machines_router = APIRouter(prefix="/api/machines", tags=["Machines"])


def get_machine_service(db: AsyncSession = Depends(get_db)) -> MachineService:
    return MachineService(db)


@machines_router.get("", response_model=APIResponse[list[MachineRead]])
async def list_machines(
    actor: CurrentActor,
    service: MachineService = Depends(get_machine_service),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status_filter: Optional[MachineStatus] = Query(None, alias="status"),
    location: Optional[str] = Query(None, max_length=255),
    search: Optional[str] = Query(None, max_length=255),
):
    items, total, page_size = await service.list_machines(
        status=status_filter,
        location=location,
        search=search,
        page=page,
        limit=limit,
    )
    return APIResponse.paginated(
        [MachineRead.model_validate(machine) for machine in items],
        page=page,
        page_size=page_size,
        total_count=total,
    )


@machines_router.get("/{machine_id}", response_model=APIResponse[MachineRead])
async def get_machine(
    machine_id: uuid.UUID,
    actor: CurrentActor,
    service: MachineService = Depends(get_machine_service),
):
    machine = await service.get_or_raise(machine_id)
    return APIResponse.success(MachineRead.model_validate(machine))


@machines_router.post(
    "",
    response_model=APIResponse[MachineRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_machine(
    payload: MachineCreate,
    actor: StaffActor,
    service: MachineService = Depends(get_machine_service),
):
    """
    Register a machine. Last maintenance is set to now and the next one
    to now + interval (90 days unless given).
    """
    machine = await service.create_machine(payload, actor)
    return APIResponse.success(MachineRead.model_validate(machine))


@machines_router.put("/{machine_id}", response_model=APIResponse[MachineRead])
async def update_machine(
    machine_id: uuid.UUID,
    patch: MachineUpdate,
    actor: StaffActor,
    service: MachineService = Depends(get_machine_service),
):
    machine = await service.update_machine(machine_id, patch, actor)
    return APIResponse.success(MachineRead.model_validate(machine))


@machines_router.delete("/{machine_id}", response_model=APIResponse[dict[str, Any]])
async def delete_machine(
    machine_id: uuid.UUID,
    actor: AdminActor,
    service: MachineService = Depends(get_machine_service),
):
    await service.delete_machine(machine_id, actor)
    return APIResponse.success({"id": str(machine_id), "message": "Machine removed"})


@machines_router.put("/{machine_id}/status", response_model=APIResponse[MachineStatusUpdate])
async def update_machine_status(
    machine_id: uuid.UUID,
    body: MachineStatusUpdate,
    actor: StaffActor,
    service: MachineService = Depends(get_machine_service),
):
    machine = await service.update_status(machine_id, body.status, actor)
    return APIResponse.success(MachineStatusUpdate(status=machine.status))


@machines_router.put("/{machine_id}/metrics", response_model=APIResponse[MachineMetrics])
async def update_machine_metrics(
    machine_id: uuid.UUID,
    body: MachineMetricsUpdate,
    actor: StaffActor,
    service: MachineService = Depends(get_machine_service),
):
    machine = await service.update_metrics(machine_id, body, actor)
    return APIResponse.success(MachineMetrics.model_validate(machine.metrics))
