"""Auth Service — registration, login, refresh-token rotation and logout.

Invariants:
    - Emails compared lower-case, CURPs upper-case
    - Unknown email and wrong password return the same INVALID_CREDENTIALS error
    - Every issued refresh token is backed by an AuthSession row; refresh rotates it
    - Registration always creates an empty PatientProfile with a fresh qr_token

Design Decisions:
    - Access tokens are stateless (15 min); only refresh tokens hit the database
"""

import logging
import uuid
from datetime import timedelta
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import get_settings
from vida.core.clock import as_utc, utcnow
from vida.core.errors import (
    AuthenticationError, ConflictError, ErrorContext, ValidationFailedError,
)
from vida.core.identity import is_valid_curp, normalize_curp, normalize_email
from vida.infrastructure.security import (
    REFRESH, TokenPair, create_token_pair, decode_token,
    hash_password, verify_password,
)
from vida.models.auth_session import AuthSession
from vida.models.patient_profile import PatientProfile
from vida.models.user import User
from vida.schemas.auth import RegisterRequest

logger = logging.getLogger(__name__)


def authenticate(access_token: str) -> UUID:
    """Resolve a Bearer access token to the user id it was issued for."""
    payload = decode_token(access_token)
    try:
        return UUID(payload["sub"])
    except ValueError:
        raise AuthenticationError("INVALID_TOKEN", "Invalid token")


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email)),
        )
        return result.scalar_one_or_none()

    async def _start_session(
        self, user: User, ip: str | None, user_agent: str | None,
    ) -> TokenPair:
        tokens = create_token_pair(str(user.id), user.email)
        self.db.add(AuthSession(
            user_id=user.id,
            refresh_token=tokens.refresh_token,
            ip_address=ip,
            user_agent=(user_agent or "")[:500] or None,
            expires_at=utcnow() + timedelta(days=get_settings().refresh_token_days),
        ))
        return tokens

    async def register(
        self, data: RegisterRequest,
        ip: str | None = None, user_agent: str | None = None,
    ) -> tuple[User, TokenPair]:
        email = normalize_email(data.email)
        curp = normalize_curp(data.curp)

        if await self._user_by_email(email):
            raise ConflictError("EMAIL_EXISTS", "Email is already registered")
        existing_curp = await self.db.execute(select(User.id).where(User.curp == curp))
        if existing_curp.scalar_one_or_none():
            raise ConflictError("CURP_EXISTS", "CURP is already registered")
        if not is_valid_curp(curp):
            raise ValidationFailedError("Invalid CURP format", code="INVALID_CURP")

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            curp=curp,
            name=data.name,
            date_of_birth=data.date_of_birth,
            sex=data.sex,
            phone=data.phone,
            last_login_at=utcnow(),
        )
        user.profile = PatientProfile(qr_token=str(uuid.uuid4()))
        self.db.add(user)
        await self.db.flush()

        tokens = await self._start_session(user, ip, user_agent)
        await self.db.commit()
        logger.info("User registered", extra={"user_id": str(user.id)})
        return user, tokens

    async def login(
        self, email: str, password: str,
        ip: str | None = None, user_agent: str | None = None,
    ) -> tuple[User, TokenPair]:
        user = await self._user_by_email(email)
        if not user:
            raise AuthenticationError("INVALID_CREDENTIALS", "Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("ACCOUNT_DISABLED", "This account has been disabled")
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("INVALID_CREDENTIALS", "Invalid credentials")

        tokens = await self._start_session(user, ip, user_agent)
        user.last_login_at = utcnow()
        await self.db.commit()
        return user, tokens

    async def refresh(self, refresh_token: str) -> TokenPair:
        payload = decode_token(refresh_token, expected_type=REFRESH)
        result = await self.db.execute(
            select(AuthSession).where(AuthSession.refresh_token == refresh_token),
        )
        session = result.scalar_one_or_none()
        if not session or as_utc(session.expires_at) <= utcnow():
            raise AuthenticationError("SESSION_EXPIRED", "Session has expired")

        user = await self.db.get(User, session.user_id)
        if not user or not user.is_active or str(user.id) != payload["sub"]:
            raise AuthenticationError(
                "INVALID_TOKEN", "Invalid token",
                ErrorContext(user_id=payload.get("sub")),
            )

        tokens = create_token_pair(str(user.id), user.email)
        session.refresh_token = tokens.refresh_token
        session.expires_at = utcnow() + timedelta(days=get_settings().refresh_token_days)
        await self.db.commit()
        return tokens

    async def logout(self, refresh_token: str) -> None:
        await self.db.execute(
            delete(AuthSession).where(AuthSession.refresh_token == refresh_token),
        )
        await self.db.commit()

    async def logout_all(self, user_id: UUID) -> int:
        result = await self.db.execute(
            delete(AuthSession).where(AuthSession.user_id == user_id),
        )
        await self.db.commit()
        return result.rowcount or 0

    async def get_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if not user or not user.is_active:
            raise AuthenticationError("INVALID_TOKEN", "Invalid token")
        return user
