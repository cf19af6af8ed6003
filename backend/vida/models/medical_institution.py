"""MedicalInstitution ORM — static hospital reference data for nearby search.

Invariants:
    - clues_code unique when present (Mexican health-establishment id)
    - Rows without coordinates never appear in distance searches
    - specialties is a JSON list of Spanish specialty names

Design Decisions:
    - JSON list instead of a Postgres array: the same schema runs on SQLite in tests
    - Indexed latitude/longitude: the bounding-box prefilter is a range scan
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Float, Boolean, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vida.db.base import Base


class MedicalInstitution(Base):
    __tablename__ = "medical_institutions"
    __table_args__ = (
        Index("ix_medical_institutions_lat_lon", "latitude", "longitude"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    clues_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True, unique=True,
    )
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    emergency_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attention_level: Mapped[str | None] = mapped_column(String(10), nullable=True)
    specialties: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    has_emergency: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    has_24_hours: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_icu: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_trauma: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
