"""Panic Routes — activate, cancel and resolve panic alerts.

Invariants:
    - Every endpoint requires a Bearer access token
    - Activation answers 201 even when some notifications failed; the per
      channel outcome is in representatives_notified
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from vida.api.dependencies import current_user_id, get_panic_service
from vida.schemas.panic import PanicActivateRequest
from vida.services.panic_service import PanicService

router = APIRouter(prefix="/api/v1/emergency/panic", tags=["panic"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def activate_panic(
    body: PanicActivateRequest,
    user_id: UUID = Depends(current_user_id),
    panic: PanicService = Depends(get_panic_service),
):
    return await panic.activate(
        user_id, body.latitude, body.longitude, body.accuracy, body.message,
    )


@router.get("/active")
async def active_alerts(
    user_id: UUID = Depends(current_user_id),
    panic: PanicService = Depends(get_panic_service),
):
    alerts = await panic.active_alerts(user_id)
    return {"alerts": alerts, "count": len(alerts)}


@router.get("/history")
async def alert_history(
    limit: int = Query(10, ge=1, le=100),
    user_id: UUID = Depends(current_user_id),
    panic: PanicService = Depends(get_panic_service),
):
    alerts = await panic.history(user_id, limit=limit)
    return {"alerts": alerts, "count": len(alerts)}


@router.get("/{alert_id}")
async def get_alert(
    alert_id: UUID,
    user_id: UUID = Depends(current_user_id),
    panic: PanicService = Depends(get_panic_service),
):
    return await panic.get(alert_id, user_id)


@router.delete("/{alert_id}")
async def cancel_alert(
    alert_id: UUID,
    user_id: UUID = Depends(current_user_id),
    panic: PanicService = Depends(get_panic_service),
):
    return await panic.cancel(alert_id, user_id)


@router.post("/{alert_id}/resolve")
async def resolve_alert(
    alert_id: UUID,
    user_id: UUID = Depends(current_user_id),
    panic: PanicService = Depends(get_panic_service),
):
    return await panic.resolve(alert_id, user_id)
