"""Profile Schemas — patient medical profile and QR payloads."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

BLOOD_TYPE_PATTERN = r"^(A|B|AB|O)[+-]$"


class DonorPreferences(BaseModel):
    organs: list[str] = Field(default_factory=list)
    tissues: list[str] = Field(default_factory=list)
    for_research: bool = False
    notes: str | None = Field(None, max_length=2000)


class ProfileUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    blood_type: str | None = Field(None, pattern=BLOOD_TYPE_PATTERN)
    allergies: list[str] | None = None
    conditions: list[str] | None = None
    medications: list[str] | None = None
    insurance_provider: str | None = Field(None, max_length=200)
    insurance_policy: str | None = Field(None, max_length=100)
    insurance_phone: str | None = Field(None, max_length=30)
    photo_url: str | None = None
    is_donor: bool | None = None
    donor_preferences: DonorPreferences | None = None


class ProfileResponse(BaseModel):
    id: UUID
    user_id: UUID
    blood_type: str | None = None
    allergies: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    insurance_provider: str | None = None
    insurance_policy: str | None = None
    insurance_phone: str | None = None
    photo_url: str | None = None
    is_donor: bool = False
    donor_preferences: dict | None = None
    qr_generated_at: datetime
    updated_at: datetime


class QRResponse(BaseModel):
    qr_token: str
    emergency_url: str
    qr_data_url: str
    generated_at: datetime
