"""Auth Routes — register, login, token refresh and logout.

Invariants:
    - Only /me and /logout-all require a Bearer access token
    - Client IP and User-Agent are recorded on every new AuthSession
"""

import logging
from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from vida.api.dependencies import current_user_id, get_auth_service
from vida.schemas.auth import (
    AuthResponse, LoginRequest, RefreshRequest, RegisterRequest,
    TokenResponse, UserResponse,
)
from vida.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def client_meta(request: Request) -> tuple[str | None, str | None]:
    """(ip, user agent) of the caller."""
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


@router.post(
    "/register", response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    ip, user_agent = client_meta(request)
    user, tokens = await auth.register(body, ip, user_agent)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**asdict(tokens)),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    ip, user_agent = client_meta(request)
    user, tokens = await auth.login(body.email, body.password, ip, user_agent)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**asdict(tokens)),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest, auth: AuthService = Depends(get_auth_service),
):
    tokens = await auth.refresh(body.refresh_token)
    return TokenResponse(**asdict(tokens))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    body: RefreshRequest, auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(body.refresh_token)


@router.post("/logout-all")
async def logout_all(
    user_id: UUID = Depends(current_user_id),
    auth: AuthService = Depends(get_auth_service),
):
    closed = await auth.logout_all(user_id)
    return {"sessions_closed": closed}


@router.get("/me", response_model=UserResponse)
async def me(
    user_id: UUID = Depends(current_user_id),
    auth: AuthService = Depends(get_auth_service),
):
    return await auth.get_user(user_id)
