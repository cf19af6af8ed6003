"""Plan Features — pure entitlement resolution for subscription plans.

Invariants:
    - A limit of 0 means unlimited
    - is_entitled (premium badge) holds only for ACTIVE and TRIALING
    - CANCELED, UNPAID or missing subscriptions resolve to the free defaults;
      any other status keeps the plan's features
    - Unknown Stripe statuses map to INCOMPLETE (never entitled)

Design Decisions:
    - Features and limits stored as JSON on SubscriptionPlan; parsed here with
      missing keys defaulting to False / 0 so new flags never break old rows
    - PAST_DUE keeps the plan's entitlements until Stripe marks it unpaid
"""

import math
from dataclasses import asdict, dataclass
from datetime import datetime

from vida.core.domain_types import SubscriptionStatus

FREE_PLAN_SLUG = "free"

FEATURE_KEYS = (
    "advance_directives", "donor_preferences", "nom151_seal",
    "sms_notifications", "export_data", "priority_support",
)
LIMIT_KEYS = ("representatives_limit", "qr_downloads_per_month")


@dataclass(frozen=True)
class PlanFeatures:
    advance_directives: bool = False
    donor_preferences: bool = False
    nom151_seal: bool = False
    sms_notifications: bool = False
    export_data: bool = False
    priority_support: bool = False

    @classmethod
    def from_mapping(cls, data: dict | None) -> "PlanFeatures":
        data = data or {}
        return cls(**{k: bool(data.get(k, False)) for k in FEATURE_KEYS})

    def has(self, feature: str) -> bool:
        return bool(getattr(self, feature, False))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PlanLimits:
    representatives_limit: int = 0
    qr_downloads_per_month: int = 0

    @classmethod
    def from_mapping(cls, data: dict | None) -> "PlanLimits":
        data = data or {}
        return cls(**{k: int(data.get(k, 0) or 0) for k in LIMIT_KEYS})

    def get(self, key: str) -> int:
        return int(getattr(self, key, 0))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Entitlements:
    plan_slug: str
    features: PlanFeatures
    limits: PlanLimits

    @property
    def is_premium(self) -> bool:
        return self.plan_slug != FREE_PLAN_SLUG


@dataclass(frozen=True)
class LimitCheck:
    allowed: bool
    limit: int
    current: int


FREE_PLAN_DEFAULTS = Entitlements(
    plan_slug=FREE_PLAN_SLUG,
    features=PlanFeatures(),
    limits=PlanLimits(representatives_limit=2, qr_downloads_per_month=3),
)

DEMO_PREMIUM = Entitlements(
    plan_slug="premium",
    features=PlanFeatures(**{k: True for k in FEATURE_KEYS}),
    limits=PlanLimits(representatives_limit=0, qr_downloads_per_month=0),
)

_REVERTS_TO_FREE = frozenset({SubscriptionStatus.CANCELED, SubscriptionStatus.UNPAID})


def is_entitled(status: SubscriptionStatus | None) -> bool:
    return status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


def resolve_entitlements(
    subscription_status: SubscriptionStatus | None,
    plan_slug: str | None,
    plan_features: dict | None,
    plan_limits: dict | None,
    free_defaults: Entitlements = FREE_PLAN_DEFAULTS,
) -> Entitlements:
    """Features and limits a user holds right now."""
    if subscription_status is None or plan_slug is None:
        return free_defaults
    if subscription_status in _REVERTS_TO_FREE:
        return free_defaults
    return Entitlements(
        plan_slug=plan_slug,
        features=PlanFeatures.from_mapping(plan_features),
        limits=PlanLimits.from_mapping(plan_limits),
    )


def check_limit(limit: int, current: int) -> LimitCheck:
    if limit == 0:
        return LimitCheck(allowed=True, limit=0, current=current)
    return LimitCheck(allowed=current < limit, limit=limit, current=current)


def trial_days_left(trial_ends_at: datetime | None, now: datetime) -> int:
    if trial_ends_at is None:
        return 0
    seconds = (trial_ends_at - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


_STRIPE_STATUS = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIALING,
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "unpaid": SubscriptionStatus.UNPAID,
    "incomplete": SubscriptionStatus.INCOMPLETE,
    "incomplete_expired": SubscriptionStatus.CANCELED,
    "paused": SubscriptionStatus.PAUSED,
}


def map_stripe_status(status: str | None) -> SubscriptionStatus:
    return _STRIPE_STATUS.get((status or "").lower(), SubscriptionStatus.INCOMPLETE)
