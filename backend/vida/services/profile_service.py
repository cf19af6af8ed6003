"""Profile Service — encrypted medical profile, QR token and emergency lookup.

Invariants:
    - Medical lists go through FieldCipher before touching the database
    - Donor preferences require the donor_preferences premium feature
    - get_profile_by_qr_token exposes critical data only (no insurance, no donor detail)
    - Regenerating the QR token invalidates every previously printed code
"""

import logging
import uuid
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import Settings
from vida.core.clock import as_utc, utcnow
from vida.core.errors import ResourceNotFoundError
from vida.infrastructure.encryption import FieldCipher
from vida.infrastructure.qr_codes import generate_emergency_qr
from vida.models.patient_profile import PatientProfile
from vida.models.user import User
from vida.schemas.profile import ProfileUpdate
from vida.services.premium_service import PremiumService

logger = logging.getLogger(__name__)

_ENCRYPTED_LISTS = {
    "allergies": "allergies_enc",
    "conditions": "conditions_enc",
    "medications": "medications_enc",
}
_PLAIN_FIELDS = (
    "blood_type", "insurance_provider", "insurance_policy",
    "insurance_phone", "photo_url", "is_donor",
)


class ProfileService:
    def __init__(
        self,
        db: AsyncSession,
        cipher: FieldCipher,
        premium: PremiumService,
        settings: Settings,
    ):
        self.db = db
        self.cipher = cipher
        self.premium = premium
        self.settings = settings

    def _decrypt_list(self, value: str | None) -> list[str]:
        return self.cipher.decrypt_json(value) if value else []

    def _serialize(self, profile: PatientProfile) -> dict:
        data = {
            "id": profile.id,
            "user_id": profile.user_id,
            "qr_generated_at": as_utc(profile.qr_generated_at),
            "updated_at": as_utc(profile.updated_at),
            "donor_preferences": (
                self.cipher.decrypt_json(profile.donor_preferences_enc)
                if profile.donor_preferences_enc else None
            ),
        }
        for field in _PLAIN_FIELDS:
            data[field] = getattr(profile, field)
        for field, column in _ENCRYPTED_LISTS.items():
            data[field] = self._decrypt_list(getattr(profile, column))
        return data

    async def _load(self, user_id: UUID) -> PatientProfile:
        result = await self.db.execute(
            select(PatientProfile).where(PatientProfile.user_id == user_id),
        )
        profile = result.scalar_one_or_none()
        if not profile:
            raise ResourceNotFoundError(
                "PatientProfile", str(user_id), code="PROFILE_NOT_FOUND",
            )
        return profile

    async def get_profile(self, user_id: UUID) -> dict:
        return self._serialize(await self._load(user_id))

    async def update_profile(self, user_id: UUID, data: ProfileUpdate) -> dict:
        changes = data.model_dump(exclude_unset=True)
        if changes.get("donor_preferences") is not None:
            await self.premium.require_feature(user_id, "donor_preferences")

        profile = await self._load(user_id)
        for field in _PLAIN_FIELDS:
            if field in changes:
                setattr(profile, field, changes[field])
        for field, column in _ENCRYPTED_LISTS.items():
            if field in changes:
                values = [v.strip() for v in changes[field] or [] if v.strip()]
                setattr(
                    profile, column,
                    self.cipher.encrypt_json(values) if values else None,
                )
        if "donor_preferences" in changes:
            prefs = changes["donor_preferences"]
            profile.donor_preferences_enc = (
                self.cipher.encrypt_json(prefs) if prefs is not None else None
            )

        await self.db.commit()
        await self.db.refresh(profile)
        logger.info("Profile updated", extra={"user_id": str(user_id)})
        return self._serialize(profile)

    async def get_conditions(self, user_id: UUID) -> list[str]:
        result = await self.db.execute(
            select(PatientProfile.conditions_enc)
            .where(PatientProfile.user_id == user_id),
        )
        return self._decrypt_list(result.scalar_one_or_none())

    async def get_qr(self, user_id: UUID) -> dict:
        profile = await self._load(user_id)
        qr = generate_emergency_qr(profile.qr_token, self.settings.frontend_url)
        return {
            "qr_token": qr.qr_token,
            "emergency_url": qr.emergency_url,
            "qr_data_url": qr.qr_data_url,
            "generated_at": as_utc(profile.qr_generated_at),
        }

    async def regenerate_qr(self, user_id: UUID) -> dict:
        profile = await self._load(user_id)
        profile.qr_token = str(uuid.uuid4())
        profile.qr_generated_at = utcnow()
        await self.db.commit()
        logger.info("QR token regenerated", extra={"user_id": str(user_id)})
        return await self.get_qr(user_id)

    async def get_profile_by_qr_token(self, qr_token: str) -> dict | None:
        result = await self.db.execute(
            select(PatientProfile, User)
            .join(User, User.id == PatientProfile.user_id)
            .where(PatientProfile.qr_token == qr_token, User.is_active.is_(True)),
        )
        row = result.first()
        if not row:
            return None
        profile, user = row
        return {
            "user_id": user.id,
            "name": user.name,
            "date_of_birth": user.date_of_birth,
            "sex": user.sex,
            "photo_url": profile.photo_url,
            "blood_type": profile.blood_type,
            "allergies": self._decrypt_list(profile.allergies_enc),
            "conditions": self._decrypt_list(profile.conditions_enc),
            "medications": self._decrypt_list(profile.medications_enc),
            "is_donor": profile.is_donor,
        }
