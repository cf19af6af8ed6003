"""Representative Routes — emergency contacts CRUD, ordering and spokesperson."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from vida.api.dependencies import current_user_id, get_representatives_service
from vida.schemas.representative import (
    ReorderRequest, RepresentativeCreate, RepresentativeResponse,
    RepresentativeUpdate,
)
from vida.services.representatives_service import RepresentativesService

router = APIRouter(prefix="/api/v1/representatives", tags=["representatives"])


@router.get("", response_model=list[RepresentativeResponse])
async def list_representatives(
    user_id: UUID = Depends(current_user_id),
    reps: RepresentativesService = Depends(get_representatives_service),
):
    return await reps.list_all(user_id)


@router.post(
    "", response_model=RepresentativeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_representative(
    body: RepresentativeCreate,
    user_id: UUID = Depends(current_user_id),
    reps: RepresentativesService = Depends(get_representatives_service),
):
    return await reps.create(user_id, body)


@router.put("/reorder", response_model=list[RepresentativeResponse])
async def reorder_representatives(
    body: ReorderRequest,
    user_id: UUID = Depends(current_user_id),
    reps: RepresentativesService = Depends(get_representatives_service),
):
    return await reps.reorder(user_id, body.ordered_ids)


@router.get("/{representative_id}", response_model=RepresentativeResponse)
async def get_representative(
    representative_id: UUID,
    user_id: UUID = Depends(current_user_id),
    reps: RepresentativesService = Depends(get_representatives_service),
):
    return await reps.get(user_id, representative_id)


@router.put("/{representative_id}", response_model=RepresentativeResponse)
async def update_representative(
    representative_id: UUID,
    body: RepresentativeUpdate,
    user_id: UUID = Depends(current_user_id),
    reps: RepresentativesService = Depends(get_representatives_service),
):
    return await reps.update(user_id, representative_id, body)


@router.delete("/{representative_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_representative(
    representative_id: UUID,
    user_id: UUID = Depends(current_user_id),
    reps: RepresentativesService = Depends(get_representatives_service),
):
    await reps.delete(user_id, representative_id)


@router.post(
    "/{representative_id}/donor-spokesperson",
    response_model=RepresentativeResponse,
)
async def set_donor_spokesperson(
    representative_id: UUID,
    user_id: UUID = Depends(current_user_id),
    reps: RepresentativesService = Depends(get_representatives_service),
):
    return await reps.set_donor_spokesperson(user_id, representative_id)
