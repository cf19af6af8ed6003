"""Panic Lifecycle — pure state machine for PanicAlert status transitions.

Invariants:
    - ACTIVE is the only state with outgoing transitions
    - ACTIVE → CANCELLED | RESOLVED | EXPIRED; everything else raises
    - Expiry is decided from created_at + ttl, never from wall-clock reads inside core

Design Decisions:
    - Transition table as a dict of frozensets: adding a state is a one-line change
    - check_transition raises (shell wants an HTTP 409), is_transition_allowed
      returns a bool for filters that skip silently
"""

from datetime import datetime, timedelta

from vida.core.domain_types import PanicStatus
from vida.core.errors import InvalidTransitionError

ALLOWED_TRANSITIONS: dict[PanicStatus, frozenset[PanicStatus]] = {
    PanicStatus.ACTIVE: frozenset({
        PanicStatus.CANCELLED, PanicStatus.RESOLVED, PanicStatus.EXPIRED,
    }),
    PanicStatus.CANCELLED: frozenset(),
    PanicStatus.RESOLVED: frozenset(),
    PanicStatus.EXPIRED: frozenset(),
}

_TIMESTAMP_FIELDS = {
    PanicStatus.CANCELLED: "cancelled_at",
    PanicStatus.RESOLVED: "resolved_at",
    PanicStatus.EXPIRED: "expired_at",
}


def is_transition_allowed(current: PanicStatus, target: PanicStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(current: PanicStatus, target: PanicStatus) -> None:
    if not is_transition_allowed(current, target):
        raise InvalidTransitionError("PanicAlert", current.value, target.value)


def transition_timestamp_field(target: PanicStatus) -> str | None:
    """Name of the column stamped when entering `target`."""
    return _TIMESTAMP_FIELDS.get(target)


def is_expired(created_at: datetime, now: datetime, ttl_minutes: int) -> bool:
    return now - created_at >= timedelta(minutes=ttl_minutes)
