"""Representative Schemas — emergency contact CRUD and reordering."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from vida.schemas.auth import EMAIL_PATTERN

PHONE_PATTERN = r"^\+?[0-9 ()\-.]{10,20}$"


class RepresentativeCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    phone: str = Field(pattern=PHONE_PATTERN)
    email: str | None = Field(None, pattern=EMAIL_PATTERN, max_length=255)
    relation: str = Field(min_length=2, max_length=50)
    priority: int | None = Field(None, ge=1)
    is_donor_spokesperson: bool = False
    notify_on_emergency: bool = True
    notify_on_access: bool = True


class RepresentativeUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=200)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    email: str | None = Field(None, pattern=EMAIL_PATTERN, max_length=255)
    relation: str | None = Field(None, min_length=2, max_length=50)
    priority: int | None = Field(None, ge=1)
    is_donor_spokesperson: bool | None = None
    notify_on_emergency: bool | None = None
    notify_on_access: bool | None = None


class ReorderRequest(BaseModel):
    ordered_ids: list[UUID] = Field(min_length=1)


class RepresentativeResponse(BaseModel):
    id: UUID
    name: str
    phone: str
    email: str | None = None
    relation: str
    priority: int
    is_donor_spokesperson: bool
    notify_on_emergency: bool
    notify_on_access: bool
    created_at: datetime

    model_config = {"from_attributes": True}
