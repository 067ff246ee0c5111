"""
Alerts API Module
Endpoints for filing, listing, working and deleting machine alerts.

Import this into api_server.py to add the routes.
"""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from dependencies import CurrentActor
from schemas.alert import AlertCreate, AlertPriority, AlertRead, AlertStatus, AlertUpdate
from schemas.response import APIResponse
from services.alert_filters import AlertFilter
from services.alert_service import AlertService

alerts_router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


def get_alert_service(db: AsyncSession = Depends(get_db)) -> AlertService:
    return AlertService(db)


@alerts_router.get("", response_model=APIResponse[list[AlertRead]])
async def list_alerts(
    actor: CurrentActor,
    service: AlertService = Depends(get_alert_service),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, description="Page size, default 10, capped at 100"),
    status_filter: Optional[AlertStatus] = Query(None, alias="status"),
    priority: Optional[AlertPriority] = None,
    machine_id: Optional[uuid.UUID] = None,
    search: Optional[str] = Query(None, max_length=255),
):
    """
    List alerts visible to the caller, newest first.

    Technicians see open alerts and alerts assigned to them; users see the
    alerts they filed; admins see everything.

    A ``limit`` above ALERT_MAX_PAGE_SIZE (100 by default) is reduced to
    that maximum; ``meta.page_size`` reports the size actually applied.
    """
    filters = AlertFilter(
        status=status_filter,
        priority=priority,
        machine_id=machine_id,
        search=search,
    )
    items, total, page_size = await service.list_alerts(actor, filters, page=page, limit=limit)
    return APIResponse.paginated(
        [AlertRead.model_validate(alert) for alert in items],
        page=page,
        page_size=page_size,
        total_count=total,
    )


@alerts_router.get("/{alert_id}", response_model=APIResponse[AlertRead])
async def get_alert(
    alert_id: uuid.UUID,
    actor: CurrentActor,
    service: AlertService = Depends(get_alert_service),
):
    alert = await service.get_alert(alert_id, actor)
    return APIResponse.success(AlertRead.model_validate(alert))


@alerts_router.post(
    "",
    response_model=APIResponse[AlertRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_alert(
    payload: AlertCreate,
    actor: CurrentActor,
    service: AlertService = Depends(get_alert_service),
):
    """
    File an alert against a machine. A critical alert puts an operational
    machine into error.
    """
    alert = await service.create_alert(payload, actor)
    return APIResponse.success(AlertRead.model_validate(alert))


@alerts_router.put("/{alert_id}", response_model=APIResponse[AlertRead])
async def update_alert(
    alert_id: uuid.UUID,
    patch: AlertUpdate,
    actor: CurrentActor,
    service: AlertService = Depends(get_alert_service),
):
    alert = await service.update_alert(alert_id, patch, actor)
    return APIResponse.success(AlertRead.model_validate(alert))


@alerts_router.put("/{alert_id}/assign", response_model=APIResponse[AlertRead])
async def assign_alert_to_self(
    alert_id: uuid.UUID,
    actor: CurrentActor,
    service: AlertService = Depends(get_alert_service),
):
    """Technicians and admins take an alert."""
    alert = await service.assign_to_self(alert_id, actor)
    return APIResponse.success(AlertRead.model_validate(alert))


@alerts_router.delete("/{alert_id}", response_model=APIResponse[dict[str, Any]])
async def delete_alert(
    alert_id: uuid.UUID,
    actor: CurrentActor,
    service: AlertService = Depends(get_alert_service),
):
    await service.delete_alert(alert_id, actor)
    return APIResponse.success({"id": str(alert_id), "message": "Alert removed"})
