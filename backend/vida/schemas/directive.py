"""Directive Schemas — advance directive drafts, uploads and state changes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from vida.core.domain_types import ValidationMethod


class TreatmentPreferences(BaseModel):
    accepts_cpr: bool | None = None
    accepts_intubation: bool | None = None
    accepts_dialysis: bool | None = None
    accepts_transfusion: bool | None = None
    accepts_artificial_nutrition: bool | None = None
    palliative_care_only: bool | None = None
    additional_notes: str | None = Field(None, max_length=5000)
    origin_state: str | None = Field(None, max_length=50)


class DirectiveDraftCreate(TreatmentPreferences):
    pass


class DirectiveUpdate(TreatmentPreferences):
    pass


class DirectiveUpload(BaseModel):
    document_url: str = Field(min_length=1)
    original_file_name: str | None = Field(None, max_length=255)
    document_base64: str | None = None
    origin_state: str | None = Field(None, max_length=50)


class ValidateRequest(BaseModel):
    method: ValidationMethod


class DirectiveResponse(BaseModel):
    id: UUID
    type: str
    status: str
    document_url: str | None = None
    document_hash: str | None = None
    original_file_name: str | None = None
    nom151_sealed: bool
    nom151_timestamp: datetime | None = None
    nom151_certificate: str | None = None
    nom151_provider: str | None = None
    accepts_cpr: bool | None = None
    accepts_intubation: bool | None = None
    accepts_dialysis: bool | None = None
    accepts_transfusion: bool | None = None
    accepts_artificial_nutrition: bool | None = None
    palliative_care_only: bool | None = None
    additional_notes: str | None = None
    origin_state: str | None = None
    validated_at: datetime | None = None
    validation_method: str | None = None
    created_at: datetime
    revoked_at: datetime | None = None

    model_config = {"from_attributes": True}
