"""Emergency Schemas — QR access by first responders."""

from uuid import UUID

from pydantic import BaseModel, Field


class EmergencyAccessRequest(BaseModel):
    qr_token: str = Field(min_length=8, max_length=64)
    accessor_name: str = Field(min_length=2, max_length=200)
    accessor_role: str = Field(min_length=2, max_length=100)
    accessor_license: str | None = Field(None, max_length=50)
    institution_id: UUID | None = None
    institution_name: str | None = Field(None, max_length=255)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    location_name: str | None = Field(None, max_length=255)
