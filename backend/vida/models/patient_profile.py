"""PatientProfile ORM — emergency medical data, one per user.

Invariants:
    - allergies, conditions, medications and donor preferences stored only as
      AES-256-GCM ciphertext (*_enc columns)
    - qr_token unique; regenerating it invalidates every printed QR
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from vida.db.base import Base


class PatientProfile(Base):
    __tablename__ = "patient_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    blood_type: Mapped[str | None] = mapped_column(String(5), nullable=True)
    allergies_enc: Mapped[str | None] = mapped_column(Text, nullable=True)
    conditions_enc: Mapped[str | None] = mapped_column(Text, nullable=True)
    medications_enc: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_provider: Mapped[str | None] = mapped_column(String(200), nullable=True)
    insurance_policy: Mapped[str | None] = mapped_column(String(100), nullable=True)
    insurance_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_donor: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    donor_preferences_enc: Mapped[str | None] = mapped_column(Text, nullable=True)
    qr_token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True,
    )
    qr_generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
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

    user: Mapped["User"] = relationship("User", back_populates="profile")
