"""EmergencyAccess ORM — append-only record of every QR scan by first responders.

Invariants:
    - Rows are inserted once and never updated or deleted by the service layer
    - access_token unique; valid only while expires_at > now
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Float, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vida.db.base import Base


class EmergencyAccess(Base):
    __tablename__ = "emergency_accesses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    accessor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    accessor_role: Mapped[str] = mapped_column(String(100), nullable=False)
    accessor_license: Mapped[str | None] = mapped_column(String(50), nullable=True)
    institution_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("medical_institutions.id"), nullable=True,
    )
    institution_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    qr_token_used: Mapped[str] = mapped_column(String(64), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    data_accessed: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    access_token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True,
    )
    accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
