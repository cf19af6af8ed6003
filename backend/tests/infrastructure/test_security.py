"""Security — verifies password hashing and JWT token types.

Tests:
    - bcrypt hashes verify only the original password
    - Access and refresh tokens are not interchangeable
    - Two refresh tokens issued back to back differ (jti)
    - Expired and forged tokens raise AuthenticationError
"""

from datetime import timedelta

import pytest
from jose import jwt

from vida.config import get_settings
from vida.core.clock import utcnow
from vida.core.errors import AuthenticationError
from vida.infrastructure.security import (
    ACCESS,
    REFRESH,
    create_token_pair,
    decode_token,
    hash_password,
    verify_password,
)

USER_ID = "9b2f8f5e-1f0a-4c47-9d0b-3a3f4f4b1c11"


def test_password_hash_verifies():
    hashed = hash_password("Segura123!")
    assert hashed != "Segura123!"
    assert verify_password("Segura123!", hashed)
    assert not verify_password("otra", hashed)


def test_verify_against_garbage_hash_is_false():
    assert not verify_password("x", "not-a-bcrypt-hash")


def test_token_pair_types():
    pair = create_token_pair(USER_ID, "ana@example.mx")
    access = decode_token(pair.access_token, ACCESS)
    refresh = decode_token(pair.refresh_token, REFRESH)
    assert access["sub"] == USER_ID
    assert access["email"] == "ana@example.mx"
    assert refresh["sub"] == USER_ID
    assert "jti" in refresh
    assert pair.expires_in == get_settings().access_token_minutes * 60


def test_refresh_token_cannot_authenticate():
    pair = create_token_pair(USER_ID, "ana@example.mx")
    with pytest.raises(AuthenticationError) as exc_info:
        decode_token(pair.refresh_token, ACCESS)
    assert exc_info.value.code == "INVALID_TOKEN"


def test_refresh_tokens_are_unique():
    a = create_token_pair(USER_ID, "ana@example.mx")
    b = create_token_pair(USER_ID, "ana@example.mx")
    assert a.refresh_token != b.refresh_token


def test_expired_token_rejected():
    settings = get_settings()
    now = utcnow()
    token = jwt.encode(
        {"sub": USER_ID, "type": ACCESS, "iat": now - timedelta(hours=2),
         "exp": now - timedelta(hours=1)},
        settings.jwt_secret, algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(AuthenticationError) as exc_info:
        decode_token(token)
    assert exc_info.value.code == "TOKEN_EXPIRED"


def test_forged_token_rejected():
    token = jwt.encode(
        {"sub": USER_ID, "type": ACCESS}, "not-the-secret", algorithm="HS256",
    )
    with pytest.raises(AuthenticationError) as exc_info:
        decode_token(token)
    assert exc_info.value.code == "INVALID_TOKEN"
    assert exc_info.value.http_status == 401
