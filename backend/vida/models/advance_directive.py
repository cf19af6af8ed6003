"""AdvanceDirective ORM — documented end-of-life treatment preferences.

Invariants:
    - status: DRAFT -> PENDING_VALIDATION -> ACTIVE -> REVOKED (see directives_service)
    - document_hash is the SHA-256 of the uploaded document, hex
    - nom151_sealed implies nom151_certificate and nom151_timestamp are set

Design Decisions:
    - Treatment preferences as nullable booleans: None means "not stated",
      which first responders must read differently from an explicit refusal
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vida.db.base import Base


class AdvanceDirective(Base):
    __tablename__ = "advance_directives"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="DRAFT",
    )

    # Document
    document_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    document_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    original_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # NOM-151 seal
    nom151_sealed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    nom151_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    nom151_certificate: Mapped[str | None] = mapped_column(Text, nullable=True)
    nom151_provider: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Treatment preferences
    accepts_cpr: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    accepts_intubation: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    accepts_dialysis: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    accepts_transfusion: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    accepts_artificial_nutrition: Mapped[bool | None] = mapped_column(
        Boolean, nullable=True,
    )
    palliative_care_only: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    origin_state: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Validation
    validated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    validated_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    validation_method: Mapped[str | None] = mapped_column(String(10), nullable=True)

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
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
