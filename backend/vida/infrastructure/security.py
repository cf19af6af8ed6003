"""Security — bcrypt password hashing and JWT access/refresh tokens.

Invariants:
    - Passwords hashed with bcrypt, cost factor 12
    - Access tokens carry type "access", refresh tokens type "refresh" plus a unique jti
    - decode_token never returns a payload whose type differs from the expected one
    - Every rejection surfaces as AuthenticationError (401)

Design Decisions:
    - passlib CryptContext: hash scheme upgrades happen through needs_update
    - jti on refresh tokens: two refreshes within the same second still differ,
      so the stored-session unique constraint holds
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from vida.config import get_settings
from vida.core.clock import utcnow
from vida.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12,
)

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False


def _encode(claims: dict, ttl: timedelta) -> str:
    settings = get_settings()
    now = utcnow()
    payload = {**claims, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_token_pair(user_id: str, email: str) -> TokenPair:
    settings = get_settings()
    access_ttl = timedelta(minutes=settings.access_token_minutes)
    access = _encode(
        {"sub": str(user_id), "email": email, "type": ACCESS}, access_ttl,
    )
    refresh = _encode(
        {"sub": str(user_id), "type": REFRESH, "jti": uuid.uuid4().hex},
        timedelta(days=settings.refresh_token_days),
    )
    return TokenPair(
        access_token=access,
        refresh_token=refresh,
        expires_in=int(access_ttl.total_seconds()),
    )


def decode_token(token: str, expected_type: str = ACCESS) -> dict:
    """Verify signature, expiry and token type; return the claims."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError:
        raise AuthenticationError("TOKEN_EXPIRED", "Token has expired")
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise AuthenticationError("INVALID_TOKEN", "Invalid token")

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise AuthenticationError("INVALID_TOKEN", "Invalid token")
    return payload
