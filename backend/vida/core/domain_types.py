"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, AlertId, InstitutionId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - Enum values equal the strings persisted in the DB status/type columns

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
AlertId = NewType("AlertId", UUID)
InstitutionId = NewType("InstitutionId", UUID)
RepresentativeId = NewType("RepresentativeId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class PanicStatus(str, Enum):
    """Panic alert lifecycle — ACTIVE is the only non-terminal state."""
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    RESOLVED = "RESOLVED"
    EXPIRED = "EXPIRED"


class InstitutionType(str, Enum):
    HOSPITAL_PUBLIC = "HOSPITAL_PUBLIC"
    HOSPITAL_PRIVATE = "HOSPITAL_PRIVATE"
    CLINIC = "CLINIC"
    AMBULANCE_SERVICE = "AMBULANCE_SERVICE"
    IMSS = "IMSS"
    ISSSTE = "ISSSTE"
    OTHER = "OTHER"


class AttentionLevel(str, Enum):
    """Mexican health-system attention levels (THIRD = high specialty)."""
    FIRST = "FIRST"
    SECOND = "SECOND"
    THIRD = "THIRD"


class DirectiveType(str, Enum):
    NOTARIZED_DOCUMENT = "NOTARIZED_DOCUMENT"
    DIGITAL_DRAFT = "DIGITAL_DRAFT"
    DIGITAL_WITNESSED = "DIGITAL_WITNESSED"


class DirectiveStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_VALIDATION = "PENDING_VALIDATION"
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"


class ValidationMethod(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"


class NotificationType(str, Enum):
    EMERGENCY_ALERT = "EMERGENCY_ALERT"
    ACCESS_NOTIFICATION = "ACCESS_NOTIFICATION"
    SYSTEM_ALERT = "SYSTEM_ALERT"


class NotificationChannel(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    TRIALING = "TRIALING"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"
    UNPAID = "UNPAID"
    INCOMPLETE = "INCOMPLETE"
    PAUSED = "PAUSED"


class BillingCycle(str, Enum):
    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"


class PaymentStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
