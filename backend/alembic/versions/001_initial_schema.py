"""Initial schema — users, profiles, directives, hospitals, alerts, billing.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]
    if updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
    return cols


def _user_fk(nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        "user_id", UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable, index=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("curp", sa.String(18), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("sex", sa.String(1), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("refresh_token", sa.Text, nullable=False, unique=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        "patient_profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        sa.Column("blood_type", sa.String(5), nullable=True),
        sa.Column("allergies_enc", sa.Text, nullable=True),
        sa.Column("conditions_enc", sa.Text, nullable=True),
        sa.Column("medications_enc", sa.Text, nullable=True),
        sa.Column("insurance_provider", sa.String(200), nullable=True),
        sa.Column("insurance_policy", sa.String(100), nullable=True),
        sa.Column("insurance_phone", sa.String(30), nullable=True),
        sa.Column("photo_url", sa.Text, nullable=True),
        sa.Column("is_donor", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("donor_preferences_enc", sa.Text, nullable=True),
        sa.Column("qr_token", sa.String(64), nullable=False, unique=True, index=True),
        sa.Column("qr_generated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
    )

    op.create_table(
        "representatives",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("relation", sa.String(50), nullable=False),
        sa.Column("priority", sa.Integer, nullable=False, server_default="1"),
        sa.Column("is_donor_spokesperson", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("notify_on_emergency", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("notify_on_access", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
    )

    op.create_table(
        "advance_directives",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="DRAFT"),
        sa.Column("document_url", sa.Text, nullable=True),
        sa.Column("document_hash", sa.String(64), nullable=True),
        sa.Column("original_file_name", sa.String(255), nullable=True),
        sa.Column("nom151_sealed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("nom151_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("nom151_certificate", sa.Text, nullable=True),
        sa.Column("nom151_provider", sa.String(100), nullable=True),
        sa.Column("accepts_cpr", sa.Boolean, nullable=True),
        sa.Column("accepts_intubation", sa.Boolean, nullable=True),
        sa.Column("accepts_dialysis", sa.Boolean, nullable=True),
        sa.Column("accepts_transfusion", sa.Boolean, nullable=True),
        sa.Column("accepts_artificial_nutrition", sa.Boolean, nullable=True),
        sa.Column("palliative_care_only", sa.Boolean, nullable=True),
        sa.Column("additional_notes", sa.Text, nullable=True),
        sa.Column("origin_state", sa.String(50), nullable=True),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validated_by", sa.String(100), nullable=True),
        sa.Column("validation_method", sa.String(10), nullable=True),
        *_timestamps(),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "medical_institutions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("clues_code", sa.String(20), nullable=True, unique=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("zip_code", sa.String(10), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("emergency_phone", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("attention_level", sa.String(10), nullable=True),
        sa.Column("specialties", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("has_emergency", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("has_24_hours", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("has_icu", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("has_trauma", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
    )
    op.create_index(
        "ix_medical_institutions_lat_lon", "medical_institutions",
        ["latitude", "longitude"],
    )

    op.create_table(
        "panic_alerts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("accuracy", sa.Float, nullable=True),
        sa.Column("location_name", sa.String(255), nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE", index=True),
        sa.Column("nearby_hospitals", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("notifications_sent", sa.JSON, nullable=False, server_default="[]"),
        *_timestamps(),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "emergency_accesses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "patient_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
        ),
        sa.Column("accessor_name", sa.String(200), nullable=False),
        sa.Column("accessor_role", sa.String(100), nullable=False),
        sa.Column("accessor_license", sa.String(50), nullable=True),
        sa.Column(
            "institution_id", UUID(as_uuid=True),
            sa.ForeignKey("medical_institutions.id"), nullable=True,
        ),
        sa.Column("institution_name", sa.String(255), nullable=True),
        sa.Column("qr_token_used", sa.String(64), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("location_name", sa.String(255), nullable=True),
        sa.Column("data_accessed", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("access_token", sa.String(64), nullable=False, unique=True, index=True),
        sa.Column("accessed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "notifications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(nullable=True, ondelete="SET NULL"),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("channel", sa.String(10), nullable=False),
        sa.Column("subject", sa.String(255), nullable=True),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        *_timestamps(updated=False),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(nullable=True, ondelete="SET NULL"),
        sa.Column("actor_type", sa.String(20), nullable=False),
        sa.Column("actor_name", sa.String(200), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("resource", sa.String(50), nullable=False),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("details", sa.JSON, nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        *_timestamps(updated=False),
    )

    op.create_table(
        "subscription_plans",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price_monthly", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_annual", sa.Numeric(10, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="MXN"),
        sa.Column("stripe_price_id_monthly", sa.String(100), nullable=True),
        sa.Column("stripe_price_id_annual", sa.String(100), nullable=True),
        sa.Column("stripe_product_id", sa.String(100), nullable=True),
        sa.Column("features", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("limits", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("trial_days", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        sa.Column(
            "plan_id", UUID(as_uuid=True),
            sa.ForeignKey("subscription_plans.id"), nullable=False,
        ),
        sa.Column("stripe_subscription_id", sa.String(100), nullable=True, unique=True),
        sa.Column("stripe_customer_id", sa.String(100), nullable=True, index=True),
        sa.Column("billing_cycle", sa.String(10), nullable=False, server_default="MONTHLY"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_at_period_end", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("subscriptions")
    op.drop_table("subscription_plans")
    op.drop_table("audit_logs")
    op.drop_table("notifications")
    op.drop_table("emergency_accesses")
    op.drop_table("panic_alerts")
    op.drop_index("ix_medical_institutions_lat_lon", table_name="medical_institutions")
    op.drop_table("medical_institutions")
    op.drop_table("advance_directives")
    op.drop_table("representatives")
    op.drop_table("patient_profiles")
    op.drop_table("auth_sessions")
    op.drop_table("users")
