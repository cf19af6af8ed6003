"""Plan Features — verifies entitlement resolution, limits and Stripe status mapping.

Tests:
    - Missing or cancelled subscriptions fall back to the free defaults
    - PAST_DUE keeps the plan's features but is not "entitled"
    - A limit of 0 means unlimited
    - Unknown Stripe statuses map to INCOMPLETE
"""

from datetime import datetime, timedelta, timezone

import pytest

from vida.core.domain_types import SubscriptionStatus
from vida.core.plan_features import (
    FREE_PLAN_DEFAULTS,
    PlanFeatures,
    PlanLimits,
    check_limit,
    is_entitled,
    map_stripe_status,
    resolve_entitlements,
    trial_days_left,
)

PREMIUM_FEATURES = {"advance_directives": True, "sms_notifications": True}
PREMIUM_LIMITS = {"representatives_limit": 10, "qr_downloads_per_month": 0}


def test_no_subscription_is_free():
    ent = resolve_entitlements(None, None, None, None)
    assert ent == FREE_PLAN_DEFAULTS
    assert not ent.is_premium
    assert ent.limits.representatives_limit == 2


@pytest.mark.parametrize("status", [SubscriptionStatus.CANCELED, SubscriptionStatus.UNPAID])
def test_lapsed_subscription_reverts_to_free(status):
    ent = resolve_entitlements(status, "premium", PREMIUM_FEATURES, PREMIUM_LIMITS)
    assert ent == FREE_PLAN_DEFAULTS


@pytest.mark.parametrize("status", [
    SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING, SubscriptionStatus.PAST_DUE,
])
def test_live_subscription_keeps_plan(status):
    ent = resolve_entitlements(status, "premium", PREMIUM_FEATURES, PREMIUM_LIMITS)
    assert ent.is_premium
    assert ent.features.has("advance_directives")
    assert not ent.features.has("nom151_seal")
    assert ent.limits.get("representatives_limit") == 10


def test_entitled_only_when_active_or_trialing():
    assert is_entitled(SubscriptionStatus.ACTIVE)
    assert is_entitled(SubscriptionStatus.TRIALING)
    assert not is_entitled(SubscriptionStatus.PAST_DUE)
    assert not is_entitled(None)


def test_missing_keys_default_to_off():
    assert PlanFeatures.from_mapping({"unknown_flag": True}) == PlanFeatures()
    assert PlanLimits.from_mapping({"representatives_limit": None}).representatives_limit == 0
    assert not PlanFeatures().has("does_not_exist")


def test_check_limit():
    assert check_limit(2, 1).allowed
    assert not check_limit(2, 2).allowed
    unlimited = check_limit(0, 500)
    assert unlimited.allowed
    assert unlimited.limit == 0


def test_trial_days_left_rounds_up():
    now = datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert trial_days_left(None, now) == 0
    assert trial_days_left(now - timedelta(days=1), now) == 0
    assert trial_days_left(now + timedelta(days=6, hours=1), now) == 7


@pytest.mark.parametrize("raw, expected", [
    ("active", SubscriptionStatus.ACTIVE),
    ("TRIALING", SubscriptionStatus.TRIALING),
    ("past_due", SubscriptionStatus.PAST_DUE),
    ("incomplete_expired", SubscriptionStatus.CANCELED),
    ("something_new", SubscriptionStatus.INCOMPLETE),
    (None, SubscriptionStatus.INCOMPLETE),
])
def test_map_stripe_status(raw, expected):
    assert map_stripe_status(raw) == expected
