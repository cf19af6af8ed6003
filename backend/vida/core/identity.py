"""Identity — CURP and email normalization for registration and login.

Invariants:
    - CURP is compared and stored upper-case
    - Email is compared and stored lower-case, surrounding whitespace removed
"""

import re

CURP_PATTERN = re.compile(r"^[A-Z]{4}[0-9]{6}[HM][A-Z]{5}[0-9A-Z][0-9]$")


def normalize_curp(curp: str) -> str:
    return curp.strip().upper()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_curp(curp: str | None) -> bool:
    if not curp:
        return False
    return CURP_PATTERN.match(normalize_curp(curp)) is not None
