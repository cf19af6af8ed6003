"""Profile Routes — the patient's own medical profile and emergency QR."""

from uuid import UUID

from fastapi import APIRouter, Depends

from vida.api.dependencies import current_user_id, get_profile_service
from vida.schemas.profile import ProfileResponse, ProfileUpdate, QRResponse
from vida.services.profile_service import ProfileService

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    user_id: UUID = Depends(current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.get_profile(user_id)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    user_id: UUID = Depends(current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.update_profile(user_id, body)


@router.get("/qr", response_model=QRResponse)
async def get_qr(
    user_id: UUID = Depends(current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    return await profiles.get_qr(user_id)


@router.post("/qr/regenerate", response_model=QRResponse)
async def regenerate_qr(
    user_id: UUID = Depends(current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    """New token; every previously printed QR stops working."""
    return await profiles.regenerate_qr(user_id)
