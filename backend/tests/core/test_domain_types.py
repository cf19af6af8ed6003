"""Domain Types — verifies identity wrappers and the persisted enum values.

Tests:
    - NewType wrappers exist and are callable
    - Enums have expected members and serialize to string
    - PanicStatus covers the four alert lifecycle states
"""

import json
from uuid import uuid4

from vida.core.domain_types import (
    AlertId, InstitutionId, RepresentativeId, UserId,
    BillingCycle, DirectiveStatus, InstitutionType, NotificationChannel,
    PanicStatus, SubscriptionStatus,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert UserId(uid) == uid
    assert AlertId(uid) == uid
    assert InstitutionId(uid) == uid
    assert RepresentativeId(uid) == uid


def test_panic_status_members():
    assert {s.value for s in PanicStatus} == {"ACTIVE", "CANCELLED", "RESOLVED", "EXPIRED"}


def test_directive_status_members():
    assert len(DirectiveStatus) == 5
    assert DirectiveStatus("PENDING_VALIDATION") is DirectiveStatus.PENDING_VALIDATION


def test_subscription_status_covers_stripe_states():
    assert len(SubscriptionStatus) == 7
    assert SubscriptionStatus.PAST_DUE.value == "PAST_DUE"


def test_enums_serialize_to_json_strings():
    payload = json.dumps({
        "type": InstitutionType.IMSS,
        "channel": NotificationChannel.SMS,
        "cycle": BillingCycle.ANNUAL,
    })
    assert payload == '{"type": "IMSS", "channel": "SMS", "cycle": "ANNUAL"}'


def test_str_enum_compares_with_db_value():
    assert PanicStatus.ACTIVE == "ACTIVE"
