"""
Maintenance API Module
Endpoints for scheduling and completing maintenance work on machines.

Import this into api_server.py to add the routes.
"""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from dependencies import AdminActor, CurrentActor, StaffActor
from schemas.maintenance import (
    MaintenanceCreate,
    MaintenanceRead,
    MaintenanceStatus,
    MaintenanceType,
    MaintenanceUpdate,
)
from schemas.response import APIResponse
from services.maintenance_service import MaintenanceService

maintenance_router = APIRouter(prefix="/api/maintenance", tags=["Maintenance"])


def get_maintenance_service(db: AsyncSession = Depends(get_db)) -> MaintenanceService:
    return MaintenanceService(db)


@maintenance_router.get("", response_model=APIResponse[list[MaintenanceRead]])
async def list_maintenance(
    actor: CurrentActor,
    service: MaintenanceService = Depends(get_maintenance_service),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status_filter: Optional[MaintenanceStatus] = Query(None, alias="status"),
    machine_id: Optional[uuid.UUID] = None,
    maintenance_type: Optional[MaintenanceType] = None,
):
    """List maintenance records, soonest scheduled first."""
    items, total, page_size = await service.list_records(
        status=status_filter,
        machine_id=machine_id,
        maintenance_type=maintenance_type,
        page=page,
        limit=limit,
    )
    return APIResponse.paginated(
        [MaintenanceRead.model_validate(record) for record in items],
        page=page,
        page_size=page_size,
        total_count=total,
    )


@maintenance_router.get("/{record_id}", response_model=APIResponse[MaintenanceRead])
async def get_maintenance(
    record_id: uuid.UUID,
    actor: CurrentActor,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    record = await service.get_record(record_id)
    return APIResponse.success(MaintenanceRead.model_validate(record))


@maintenance_router.post(
    "",
    response_model=APIResponse[MaintenanceRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_maintenance(
    payload: MaintenanceCreate,
    actor: StaffActor,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    record = await service.create_record(payload, actor)
    return APIResponse.success(MaintenanceRead.model_validate(record))


@maintenance_router.put("/{record_id}", response_model=APIResponse[MaintenanceRead])
async def update_maintenance(
    record_id: uuid.UUID,
    patch: MaintenanceUpdate,
    actor: StaffActor,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    """
    Update a record. Setting status to completed advances the machine's
    last/next maintenance dates.
    """
    record = await service.update_record(record_id, patch, actor)
    return APIResponse.success(MaintenanceRead.model_validate(record))


@maintenance_router.delete("/{record_id}", response_model=APIResponse[dict[str, Any]])
async def delete_maintenance(
    record_id: uuid.UUID,
    actor: AdminActor,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    await service.delete_record(record_id, actor)
    return APIResponse.success({"id": str(record_id), "message": "Maintenance record removed"})
