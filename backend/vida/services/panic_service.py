"""Panic Service — panic-alert dispatch with nearby-hospital matching.

Invariants:
    - The ACTIVE alert is committed before any notification goes out
    - Notification or socket failures never roll back or change the alert
    - Status changes only through core/panic_lifecycle transitions
    - Stale ACTIVE alerts are expired (lazily) before every read

Design Decisions:
    - Hospital snapshot stored on the alert: the list the user saw stays
      reproducible even if the institution table changes later
    - Patients with recorded conditions get condition-prioritised ranking;
      everybody else gets plain distance order
    - Lazy expiry instead of a scheduler: no worker process to run
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import Settings
from vida.core.clock import as_utc, utcnow
from vida.core.domain_types import PanicStatus
from vida.core.errors import InvalidLocationError, ResourceNotFoundError
from vida.core.geolocation import is_valid_coordinates
from vida.core.hospital_matching import RankedHospital, summarize_for_notification
from vida.core.notification_messages import AlertKind
from vida.core.panic_lifecycle import (
    check_transition, is_expired, transition_timestamp_field,
)
from vida.infrastructure.realtime import RealtimeHub, representative_room, user_room
from vida.models.panic_alert import PanicAlert
from vida.models.user import User
from vida.services.hospital_service import HospitalService
from vida.services.notification_service import NotificationService
from vida.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


def alert_to_dict(alert: PanicAlert) -> dict:
    return {
        "id": str(alert.id),
        "user_id": str(alert.user_id),
        "status": alert.status,
        "latitude": alert.latitude,
        "longitude": alert.longitude,
        "accuracy": alert.accuracy,
        "location_name": alert.location_name,
        "message": alert.message,
        "nearby_hospitals": alert.nearby_hospitals or [],
        "notifications_sent": alert.notifications_sent or [],
        "created_at": as_utc(alert.created_at),
        "cancelled_at": as_utc(alert.cancelled_at),
        "resolved_at": as_utc(alert.resolved_at),
        "expired_at": as_utc(alert.expired_at),
    }


class PanicService:
    def __init__(
        self,
        db: AsyncSession,
        hospitals: HospitalService,
        notifier: NotificationService,
        profiles: ProfileService,
        hub: RealtimeHub,
        settings: Settings,
    ):
        self.db = db
        self.hospitals = hospitals
        self.notifier = notifier
        self.profiles = profiles
        self.hub = hub
        self.settings = settings

    async def _emit(self, room: str, event: str, data: dict) -> None:
        try:
            await self.hub.emit(room, event, data)
        except Exception as e:
            logger.warning(
                f"Realtime emit failed: {e}",
                extra={"event": event, "error_code": "REALTIME_FAILED"},
            )

    async def _rank_hospitals(
        self, user_id: UUID, lat: float, lon: float,
    ) -> list[RankedHospital]:
        radius = self.settings.panic_search_radius_km
        limit = self.settings.panic_hospital_limit
        conditions = await self.profiles.get_conditions(user_id)
        if conditions:
            return await self.hospitals.find_for_conditions(
                lat, lon, conditions, radius_km=radius, limit=limit,
                prioritize_by_condition=True,
            )
        return await self.hospitals.find_nearby(lat, lon, radius_km=radius, limit=limit)

    async def activate(
        self,
        user_id: UUID,
        latitude: float,
        longitude: float,
        accuracy: float | None = None,
        message: str | None = None,
    ) -> dict:
        if not is_valid_coordinates(latitude, longitude):
            raise InvalidLocationError()

        user = await self.db.get(User, user_id)
        if not user:
            raise ResourceNotFoundError("User", str(user_id), code="USER_NOT_FOUND")
        patient_name = user.name

        ranked = await self._rank_hospitals(user_id, latitude, longitude)
        alert = PanicAlert(
            user_id=user_id,
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            message=message,
            status=PanicStatus.ACTIVE.value,
            nearby_hospitals=[r.to_dict() for r in ranked],
            notifications_sent=[],
        )
        self.db.add(alert)
        await self.db.commit()
        await self.db.refresh(alert)
        alert_id = str(alert.id)
        created_at = as_utc(alert.created_at)
        logger.info(
            "Panic alert activated",
            extra={"user_id": str(user_id), "alert_id": alert_id, "event": "panic_activated"},
        )

        outcomes = []
        try:
            outcomes = await self.notifier.notify_representatives(
                user_id, patient_name, AlertKind.PANIC, latitude, longitude,
                nearest_hospital=ranked[0].hospital.name if ranked else None,
                nearby_hospitals=summarize_for_notification(ranked),
            )
            alert.notifications_sent = [o.to_dict() for o in outcomes]
            await self.db.commit()
        except Exception as e:
            logger.error(
                f"Panic notifications failed: {e}",
                extra={"alert_id": alert_id, "error_code": "NOTIFICATION_FAILED"},
            )
            await self.db.rollback()

        hospitals = [r.to_dict() for r in ranked]
        notified = [o.to_dict() for o in outcomes]
        await self._emit(representative_room(user_id), "panic-alert", {
            "alert_id": alert_id,
            "patient_name": patient_name,
            "latitude": latitude,
            "longitude": longitude,
            "message": message,
            "nearby_hospitals": hospitals,
            "created_at": created_at.isoformat(),
        })
        await self._emit(user_room(user_id), "panic-alert-sent", {
            "alert_id": alert_id,
            "representatives_notified": len(notified),
        })

        return {
            "alert_id": alert_id,
            "status": PanicStatus.ACTIVE.value,
            "nearby_hospitals": hospitals,
            "representatives_notified": notified,
            "created_at": created_at,
        }

    async def expire_stale(self, user_id: UUID) -> int:
        result = await self.db.execute(
            select(PanicAlert).where(
                PanicAlert.user_id == user_id,
                PanicAlert.status == PanicStatus.ACTIVE.value,
            ),
        )
        now = utcnow()
        expired = 0
        for alert in result.scalars().all():
            if is_expired(
                as_utc(alert.created_at), now, self.settings.panic_alert_ttl_minutes,
            ):
                self._apply(alert, PanicStatus.EXPIRED, now)
                expired += 1
        if expired:
            await self.db.commit()
            logger.info(
                f"Expired {expired} stale panic alerts",
                extra={"user_id": str(user_id), "event": "panic_expired"},
            )
        return expired

    def _apply(self, alert: PanicAlert, target: PanicStatus, now) -> None:
        check_transition(PanicStatus(alert.status), target)
        alert.status = target.value
        setattr(alert, transition_timestamp_field(target), now)

    async def _active_alert(self, alert_id: UUID, user_id: UUID) -> PanicAlert:
        await self.expire_stale(user_id)
        result = await self.db.execute(
            select(PanicAlert).where(
                PanicAlert.id == alert_id,
                PanicAlert.user_id == user_id,
                PanicAlert.status == PanicStatus.ACTIVE.value,
            ),
        )
        alert = result.scalar_one_or_none()
        if not alert:
            raise ResourceNotFoundError("PanicAlert", str(alert_id))
        return alert

    async def _close(
        self, alert_id: UUID, user_id: UUID, target: PanicStatus, event: str,
    ) -> dict:
        alert = await self._active_alert(alert_id, user_id)
        self._apply(alert, target, utcnow())
        await self.db.commit()
        await self.db.refresh(alert)
        logger.info(
            f"Panic alert {target.value.lower()}",
            extra={"user_id": str(user_id), "alert_id": str(alert_id), "event": event},
        )
        await self._emit(representative_room(user_id), event, {
            "alert_id": str(alert_id), "status": target.value,
        })
        return alert_to_dict(alert)

    async def cancel(self, alert_id: UUID, user_id: UUID) -> dict:
        return await self._close(alert_id, user_id, PanicStatus.CANCELLED, "panic-cancelled")

    async def resolve(self, alert_id: UUID, user_id: UUID) -> dict:
        return await self._close(alert_id, user_id, PanicStatus.RESOLVED, "panic-resolved")

    async def active_alerts(self, user_id: UUID) -> list[dict]:
        await self.expire_stale(user_id)
        result = await self.db.execute(
            select(PanicAlert)
            .where(
                PanicAlert.user_id == user_id,
                PanicAlert.status == PanicStatus.ACTIVE.value,
            )
            .order_by(PanicAlert.created_at.desc()),
        )
        return [alert_to_dict(a) for a in result.scalars().all()]

    async def history(self, user_id: UUID, limit: int = 10) -> list[dict]:
        await self.expire_stale(user_id)
        result = await self.db.execute(
            select(PanicAlert)
            .where(PanicAlert.user_id == user_id)
            .order_by(PanicAlert.created_at.desc())
            .limit(limit),
        )
        return [alert_to_dict(a) for a in result.scalars().all()]

    async def get(self, alert_id: UUID, user_id: UUID) -> dict:
        await self.expire_stale(user_id)
        result = await self.db.execute(
            select(PanicAlert).where(
                PanicAlert.id == alert_id, PanicAlert.user_id == user_id,
            ),
        )
        alert = result.scalar_one_or_none()
        if not alert:
            raise ResourceNotFoundError("PanicAlert", str(alert_id))
        return alert_to_dict(alert)
