"""SubscriptionPlan ORM — plan catalogue with features and limits as JSON.

Invariants:
    - slug unique; "free" is the default plan
    - features keys match core/plan_features.FEATURE_KEYS, limits match LIMIT_KEYS
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Text, Integer, Numeric, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vida.db.base import Base


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_monthly: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True,
    )
    price_annual: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True,
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    stripe_price_id_monthly: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    stripe_price_id_annual: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    stripe_product_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    features: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    limits: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    trial_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
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

    def price_id_for(self, billing_cycle: str) -> str | None:
        if billing_cycle == "ANNUAL":
            return self.stripe_price_id_annual
        return self.stripe_price_id_monthly
