"""Hospital Schemas — nearby and condition-aware search requests."""

from pydantic import BaseModel, Field

from vida.core.domain_types import AttentionLevel, InstitutionType


class SmartSearchRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    conditions: list[str] = Field(default_factory=list)
    radius_km: float = Field(15, gt=0, le=100)
    limit: int = Field(10, ge=1, le=50)
    prioritize_by_condition: bool = True


class InstitutionUpsert(BaseModel):
    """Reference-data import row (seed and bulk loads)."""
    name: str = Field(min_length=2, max_length=255)
    type: InstitutionType
    clues_code: str | None = Field(None, max_length=20)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    phone: str | None = None
    emergency_phone: str | None = None
    attention_level: AttentionLevel | None = None
    specialties: list[str] = Field(default_factory=list)
    has_emergency: bool = True
    has_24_hours: bool = False
    has_icu: bool = False
    has_trauma: bool = False
    is_verified: bool = False
