"""Emergency Service — QR scans by first responders and the follow-up alerts.

Invariants:
    - Unknown or deactivated QR tokens reveal nothing (404 PATIENT_NOT_FOUND)
    - Every successful scan inserts one EmergencyAccess row and one AuditLog row
    - Access tokens are random UUIDs valid for emergency_access_ttl_minutes
    - EmergencyAccess rows are never updated or deleted here

Design Decisions:
    - Representative notification runs as a FastAPI background task with its
      own DB session; the responder gets the medical data without waiting on
      SMS or SMTP round trips
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import Settings
from vida.core.clock import as_utc, utcnow
from vida.core.errors import ResourceNotFoundError
from vida.core.hospital_matching import summarize_for_notification
from vida.core.notification_messages import AlertKind
from vida.infrastructure.email_gateway import EmailGateway
from vida.infrastructure.encryption import FieldCipher
from vida.infrastructure.realtime import RealtimeHub, representative_room, user_room
from vida.infrastructure.sms_gateway import SmsGateway
from vida.models.audit_log import AuditLog
from vida.models.emergency_access import EmergencyAccess
from vida.models.user import User
from vida.schemas.emergency import EmergencyAccessRequest
from vida.services.directives_service import DirectivesService
from vida.services.hospital_service import HospitalService
from vida.services.notification_service import NotificationService
from vida.services.premium_service import PremiumService
from vida.services.profile_service import ProfileService
from vida.services.representatives_service import RepresentativesService

logger = logging.getLogger(__name__)

DATA_ACCESSED = [
    "profile", "allergies", "conditions", "medications",
    "directives", "representatives",
]
ACCESS_NOTIFY_RADIUS_KM = 20
ACCESS_NOTIFY_HOSPITAL_LIMIT = 5
UNKNOWN_LOCATION = "Ubicación no disponible"


@dataclass
class EmergencyAccessResult:
    patient_id: UUID
    payload: dict


def access_to_dict(access: EmergencyAccess) -> dict:
    return {
        "id": str(access.id),
        "accessor_name": access.accessor_name,
        "accessor_role": access.accessor_role,
        "accessor_license": access.accessor_license,
        "institution_id": str(access.institution_id) if access.institution_id else None,
        "institution_name": access.institution_name,
        "latitude": access.latitude,
        "longitude": access.longitude,
        "location_name": access.location_name,
        "data_accessed": access.data_accessed or [],
        "accessed_at": as_utc(access.accessed_at),
        "expires_at": as_utc(access.expires_at),
    }


class EmergencyService:
    def __init__(
        self,
        db: AsyncSession,
        profiles: ProfileService,
        directives: DirectivesService,
        representatives: RepresentativesService,
        settings: Settings,
    ):
        self.db = db
        self.profiles = profiles
        self.directives = directives
        self.representatives = representatives
        self.settings = settings

    async def initiate_access(
        self,
        data: EmergencyAccessRequest,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> EmergencyAccessResult:
        profile = await self.profiles.get_profile_by_qr_token(data.qr_token)
        if not profile:
            raise ResourceNotFoundError(
                "Patient", data.qr_token[:8], code="PATIENT_NOT_FOUND",
            )
        patient_id = profile["user_id"]

        directive = await self.directives.emergency_summary(patient_id)
        reps = await self.representatives.list_all(patient_id)

        access_token = str(uuid.uuid4())
        expires_at = utcnow() + timedelta(
            minutes=self.settings.emergency_access_ttl_minutes,
        )
        self.db.add(EmergencyAccess(
            patient_id=patient_id,
            accessor_name=data.accessor_name,
            accessor_role=data.accessor_role,
            accessor_license=data.accessor_license,
            institution_id=data.institution_id,
            institution_name=data.institution_name,
            qr_token_used=data.qr_token,
            ip_address=ip,
            user_agent=(user_agent or "")[:500] or None,
            latitude=data.latitude,
            longitude=data.longitude,
            location_name=data.location_name,
            data_accessed=list(DATA_ACCESSED),
            access_token=access_token,
            expires_at=expires_at,
        ))
        self.db.add(AuditLog(
            user_id=patient_id,
            actor_type="STAFF",
            actor_name=data.accessor_name,
            action="EMERGENCY_ACCESS",
            resource="patient_data",
            resource_id=str(patient_id),
            details={
                "accessor_role": data.accessor_role,
                "institution_name": data.institution_name,
                "location": data.location_name,
            },
            ip_address=ip,
            user_agent=(user_agent or "")[:500] or None,
        ))
        await self.db.commit()
        logger.info(
            "Emergency access granted",
            extra={"user_id": str(patient_id), "event": "emergency_access"},
        )

        payload = {
            "access_token": access_token,
            "expires_at": expires_at,
            "patient": {
                "name": profile["name"],
                "date_of_birth": profile["date_of_birth"],
                "sex": profile["sex"],
                "photo_url": profile["photo_url"],
            },
            "medical_info": {
                "blood_type": profile["blood_type"],
                "allergies": profile["allergies"],
                "conditions": profile["conditions"],
                "medications": profile["medications"],
            },
            "directive": directive,
            "donation": {"is_donor": profile["is_donor"]},
            "representatives": [
                {
                    "name": r.name,
                    "phone": r.phone,
                    "relation": r.relation,
                    "priority": r.priority,
                }
                for r in reps
            ],
        }
        return EmergencyAccessResult(patient_id=patient_id, payload=payload)

    async def verify_access_token(self, access_token: str) -> EmergencyAccess | None:
        result = await self.db.execute(
            select(EmergencyAccess).where(EmergencyAccess.access_token == access_token),
        )
        access = result.scalar_one_or_none()
        if not access or as_utc(access.expires_at) <= utcnow():
            return None
        return access

    async def access_history(self, user_id: UUID) -> list[EmergencyAccess]:
        result = await self.db.execute(
            select(EmergencyAccess)
            .where(EmergencyAccess.patient_id == user_id)
            .order_by(EmergencyAccess.accessed_at.desc()),
        )
        return list(result.scalars().all())


async def _notify_access(
    user_id: UUID,
    accessor_name: str,
    latitude: float | None,
    longitude: float | None,
    location_name: str | None,
    sms: SmsGateway,
    email: EmailGateway,
    hub: RealtimeHub,
    cipher: FieldCipher,
    settings: Settings,
) -> None:
    from vida.infrastructure import database

    if not database.db_manager:
        logger.error(f"Cannot notify QR access for {user_id}: database not initialized")
        return

    async with database.db_manager.session() as db:
        user = await db.get(User, user_id)
        if not user:
            logger.error(f"User {user_id} not found for QR access notification")
            return
        patient_name = user.name

        profiles = ProfileService(db, cipher, PremiumService(db, settings), settings)
        conditions = await profiles.get_conditions(user_id)
        ranked = []
        if latitude is not None and longitude is not None:
            hospitals = HospitalService(db)
            if conditions:
                ranked = await hospitals.find_for_conditions(
                    latitude, longitude, conditions,
                    radius_km=ACCESS_NOTIFY_RADIUS_KM,
                    limit=ACCESS_NOTIFY_HOSPITAL_LIMIT,
                    prioritize_by_condition=True,
                )
            else:
                ranked = await hospitals.find_nearby(
                    latitude, longitude,
                    radius_km=ACCESS_NOTIFY_RADIUS_KM,
                    limit=ACCESS_NOTIFY_HOSPITAL_LIMIT,
                )
        nearest = ranked[0].hospital.name if ranked else None
        summary = summarize_for_notification(ranked)

        outcomes = await NotificationService(db, sms, email).notify_representatives(
            user_id, patient_name, AlertKind.QR_ACCESS,
            latitude or 0.0, longitude or 0.0,
            accessor_name=accessor_name,
            nearest_hospital=nearest,
            nearby_hospitals=summary,
        )

    timestamp = utcnow().isoformat()
    await hub.emit(representative_room(user_id), "qr-access-alert", {
        "type": "QR_ACCESS_ALERT",
        "patient_name": patient_name,
        "patient_id": str(user_id),
        "accessor_name": accessor_name,
        "location": location_name or UNKNOWN_LOCATION,
        "nearest_hospital": nearest,
        "nearby_hospitals": summary,
        "patient_conditions": conditions,
        "timestamp": timestamp,
    })
    await hub.emit(user_room(user_id), "qr-access-notification", {
        "accessor_name": accessor_name,
        "location": location_name or UNKNOWN_LOCATION,
        "representatives_notified": len(outcomes),
        "timestamp": timestamp,
    })
    logger.info(
        f"QR access notification sent to {len(outcomes)} representatives",
        extra={"user_id": str(user_id), "event": "qr_access_notified"},
    )


async def notify_access(
    user_id: UUID,
    accessor_name: str,
    latitude: float | None,
    longitude: float | None,
    location_name: str | None,
    sms: SmsGateway,
    email: EmailGateway,
    hub: RealtimeHub,
    cipher: FieldCipher,
    settings: Settings,
) -> None:
    """Background task: alert representatives that the patient's QR was scanned.

    Uses its own DB session; the request session is already closed when this runs.
    Failures are logged; the responder already has the data.
    """
    try:
        await _notify_access(
            user_id, accessor_name, latitude, longitude, location_name,
            sms, email, hub, cipher, settings,
        )
    except Exception as e:
        logger.error(
            f"QR access notification failed: {e}",
            exc_info=True,
            extra={"user_id": str(user_id), "error_code": "NOTIFICATION_FAILED"},
        )
