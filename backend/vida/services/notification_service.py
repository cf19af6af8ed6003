"""Notification Service — fans an alert out to representatives over SMS and email.

Invariants:
    - Recipients are contacted in priority order
    - SMS is always attempted; email only when the representative has an address
    - Every attempt is persisted as a Notification row (SENT or FAILED)
    - Gateway errors are recorded as failed, never raised to the caller

Design Decisions:
    - Best effort, record outcome: a failed channel never aborts the loop,
      so the second representative is still reached when the first bounces
    - Notification rows are committed once after the loop
"""

import logging
from dataclasses import asdict, dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from vida.core.clock import utcnow
from vida.core.domain_types import (
    NotificationChannel, NotificationStatus, NotificationType,
)
from vida.core.notification_messages import (
    AlertKind, ChannelStatus,
    build_email_html, build_email_subject, build_sms_body,
)
from vida.infrastructure.email_gateway import EmailGateway
from vida.infrastructure.sms_gateway import DeliveryResult, SmsGateway
from vida.models.notification import Notification
from vida.models.representative import Representative
from vida.services.representatives_service import RepresentativesService

logger = logging.getLogger(__name__)

_TYPE_FOR_KIND = {
    AlertKind.PANIC: NotificationType.EMERGENCY_ALERT,
    AlertKind.QR_ACCESS: NotificationType.ACCESS_NOTIFICATION,
}


@dataclass
class NotificationOutcome:
    representative_id: str
    name: str
    phone: str
    email: str | None
    sms_status: ChannelStatus
    email_status: ChannelStatus
    message_id: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["sms_status"] = self.sms_status.value
        data["email_status"] = self.email_status.value
        return data


class NotificationService:
    def __init__(self, db: AsyncSession, sms: SmsGateway, email: EmailGateway):
        self.db = db
        self.sms = sms
        self.email = email

    async def _deliver_sms(self, phone: str, body: str) -> DeliveryResult:
        try:
            return await self.sms.send(phone, body)
        except Exception as e:
            logger.warning(
                f"SMS gateway raised: {e}",
                extra={"channel": "SMS", "error_code": "SMS_FAILED"},
            )
            return DeliveryResult(success=False, error=str(e)[:240])

    async def _deliver_email(self, to: str, subject: str, html: str) -> DeliveryResult:
        try:
            return await self.email.send(to, subject, html)
        except Exception as e:
            logger.warning(
                f"Email gateway raised: {e}",
                extra={"channel": "EMAIL", "error_code": "EMAIL_FAILED"},
            )
            return DeliveryResult(success=False, error=str(e)[:240])

    def _record(
        self,
        user_id: UUID,
        kind: AlertKind,
        channel: NotificationChannel,
        rep: Representative,
        body: str,
        result: DeliveryResult,
        lat: float,
        lon: float,
        subject: str | None = None,
    ) -> None:
        now = utcnow()
        self.db.add(Notification(
            user_id=user_id,
            phone=rep.phone if channel == NotificationChannel.SMS else None,
            email=rep.email if channel == NotificationChannel.EMAIL else None,
            type=_TYPE_FOR_KIND[kind].value,
            channel=channel.value,
            subject=subject,
            body=body,
            status=(
                NotificationStatus.SENT.value if result.success
                else NotificationStatus.FAILED.value
            ),
            sent_at=now if result.success else None,
            failed_at=None if result.success else now,
            error_message=result.error,
            metadata_={
                "simulated": result.simulated,
                "representative_id": str(rep.id),
                "message_id": result.message_id,
                "location": {"latitude": lat, "longitude": lon},
            },
        ))

    async def notify_representatives(
        self,
        user_id: UUID,
        patient_name: str,
        kind: AlertKind,
        lat: float,
        lon: float,
        accessor_name: str | None = None,
        nearest_hospital: str | None = None,
        nearby_hospitals: list[dict] | None = None,
    ) -> list[NotificationOutcome]:
        recipients = await RepresentativesService(self.db).recipients_for(user_id, kind)
        if not recipients:
            logger.info(
                "No representatives to notify",
                extra={"user_id": str(user_id), "event": kind.value},
            )
            return []

        sms_body = build_sms_body(
            kind, patient_name, lat, lon, accessor_name, nearest_hospital,
        )
        subject = build_email_subject(kind, patient_name)
        html = build_email_html(
            kind, patient_name, lat, lon, utcnow(),
            accessor_name=accessor_name,
            nearest_hospital=nearest_hospital,
            nearby_hospitals=nearby_hospitals,
        )

        outcomes = []
        for rep in recipients:
            errors = []
            sms_result = await self._deliver_sms(rep.phone, sms_body)
            self._record(
                user_id, kind, NotificationChannel.SMS, rep, sms_body,
                sms_result, lat, lon,
            )
            if sms_result.error:
                errors.append(f"SMS: {sms_result.error}")

            email_status = ChannelStatus.SKIPPED
            if rep.email:
                email_result = await self._deliver_email(rep.email, subject, html)
                self._record(
                    user_id, kind, NotificationChannel.EMAIL, rep, html,
                    email_result, lat, lon, subject=subject,
                )
                email_status = (
                    ChannelStatus.SENT if email_result.success
                    else ChannelStatus.FAILED
                )
                if email_result.error:
                    errors.append(f"Email: {email_result.error}")

            outcomes.append(NotificationOutcome(
                representative_id=str(rep.id),
                name=rep.name,
                phone=rep.phone,
                email=rep.email,
                sms_status=(
                    ChannelStatus.SENT if sms_result.success else ChannelStatus.FAILED
                ),
                email_status=email_status,
                message_id=sms_result.message_id,
                error="; ".join(errors) or None,
            ))

        await self.db.commit()
        logger.info(
            f"Notified {len(outcomes)} representatives",
            extra={"user_id": str(user_id), "event": kind.value},
        )
        return outcomes
