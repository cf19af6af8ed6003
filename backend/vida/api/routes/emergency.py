"""Emergency Routes — QR access by first responders and the patient's access log.

Invariants:
    - POST /access is public: the QR token is the credential
    - Representative notification is scheduled as a background task and never
      delays or fails the responder's response
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from vida.api.dependencies import (
    current_user_id, get_email_gateway, get_emergency_service,
    get_field_cipher, get_realtime_hub, get_sms_gateway,
)
from vida.api.routes.auth import client_meta
from vida.config import Settings, get_settings
from vida.core.errors import ResourceNotFoundError
from vida.infrastructure.email_gateway import EmailGateway
from vida.infrastructure.encryption import FieldCipher
from vida.infrastructure.realtime import RealtimeHub
from vida.infrastructure.sms_gateway import SmsGateway
from vida.schemas.emergency import EmergencyAccessRequest
from vida.services.emergency_service import (
    EmergencyService, access_to_dict, notify_access,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/emergency", tags=["emergency"])


@router.post("/access")
async def emergency_access(
    body: EmergencyAccessRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    emergency: EmergencyService = Depends(get_emergency_service),
    sms: SmsGateway = Depends(get_sms_gateway),
    email: EmailGateway = Depends(get_email_gateway),
    hub: RealtimeHub = Depends(get_realtime_hub),
    cipher: FieldCipher = Depends(get_field_cipher),
    settings: Settings = Depends(get_settings),
):
    ip, user_agent = client_meta(request)
    result = await emergency.initiate_access(body, ip, user_agent)
    background_tasks.add_task(
        notify_access,
        result.patient_id,
        body.accessor_name,
        body.latitude,
        body.longitude,
        body.location_name,
        sms,
        email,
        hub,
        cipher,
        settings,
    )
    return result.payload


@router.get("/verify/{access_token}")
async def verify_access(
    access_token: str,
    emergency: EmergencyService = Depends(get_emergency_service),
):
    access = await emergency.verify_access_token(access_token)
    if not access:
        raise ResourceNotFoundError(
            "EmergencyAccess", access_token[:8], code="ACCESS_TOKEN_INVALID",
        )
    return {"valid": True, "access": access_to_dict(access)}


@router.get("/history")
async def access_history(
    user_id: UUID = Depends(current_user_id),
    emergency: EmergencyService = Depends(get_emergency_service),
):
    rows = await emergency.access_history(user_id)
    return {"accesses": [access_to_dict(a) for a in rows], "count": len(rows)}
