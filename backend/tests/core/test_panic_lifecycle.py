"""Panic Lifecycle — verifies the PanicAlert state machine and expiry rule.

Tests:
    - ACTIVE moves to CANCELLED, RESOLVED or EXPIRED
    - Terminal states reject every transition with InvalidTransitionError (409)
    - Expiry is inclusive at exactly the TTL
"""

from datetime import datetime, timedelta, timezone

import pytest

from vida.core.domain_types import PanicStatus
from vida.core.errors import InvalidTransitionError
from vida.core.panic_lifecycle import (
    check_transition,
    is_expired,
    is_transition_allowed,
    transition_timestamp_field,
)

TERMINAL = [PanicStatus.CANCELLED, PanicStatus.RESOLVED, PanicStatus.EXPIRED]


@pytest.mark.parametrize("target", TERMINAL)
def test_active_can_close(target):
    assert is_transition_allowed(PanicStatus.ACTIVE, target)
    check_transition(PanicStatus.ACTIVE, target)


@pytest.mark.parametrize("current", TERMINAL)
@pytest.mark.parametrize("target", list(PanicStatus))
def test_terminal_states_are_final(current, target):
    assert not is_transition_allowed(current, target)
    with pytest.raises(InvalidTransitionError) as exc_info:
        check_transition(current, target)
    assert exc_info.value.http_status == 409
    assert exc_info.value.code == "INVALID_TRANSITION"


def test_active_to_active_rejected():
    with pytest.raises(InvalidTransitionError):
        check_transition(PanicStatus.ACTIVE, PanicStatus.ACTIVE)


def test_timestamp_fields():
    assert transition_timestamp_field(PanicStatus.CANCELLED) == "cancelled_at"
    assert transition_timestamp_field(PanicStatus.RESOLVED) == "resolved_at"
    assert transition_timestamp_field(PanicStatus.EXPIRED) == "expired_at"
    assert transition_timestamp_field(PanicStatus.ACTIVE) is None


def test_expiry_boundary():
    created = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert not is_expired(created, created + timedelta(minutes=239), 240)
    assert is_expired(created, created + timedelta(minutes=240), 240)
    assert is_expired(created, created + timedelta(days=1), 240)
