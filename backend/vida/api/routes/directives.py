"""Directive Routes — advance directive lifecycle for the signed-in patient."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from vida.api.dependencies import current_user_id, get_directives_service
from vida.schemas.directive import (
    DirectiveDraftCreate, DirectiveResponse, DirectiveUpdate,
    DirectiveUpload, ValidateRequest,
)
from vida.services.directives_service import DirectivesService

router = APIRouter(prefix="/api/v1/directives", tags=["directives"])


@router.get("", response_model=list[DirectiveResponse])
async def list_directives(
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.list_all(user_id)


@router.get("/active", response_model=DirectiveResponse | None)
async def active_directive(
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.active(user_id)


@router.post(
    "/draft", response_model=DirectiveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_draft(
    body: DirectiveDraftCreate,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.create_draft(user_id, body)


@router.post(
    "/upload", response_model=DirectiveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    body: DirectiveUpload,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.upload_document(user_id, body)


@router.get("/{directive_id}", response_model=DirectiveResponse)
async def get_directive(
    directive_id: UUID,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.get(user_id, directive_id)


@router.put("/{directive_id}", response_model=DirectiveResponse)
async def update_draft(
    directive_id: UUID,
    body: DirectiveUpdate,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.update_draft(user_id, directive_id, body)


@router.post("/{directive_id}/validate", response_model=DirectiveResponse)
async def validate_directive(
    directive_id: UUID,
    body: ValidateRequest,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.validate(user_id, directive_id, body.method)


@router.post("/{directive_id}/seal", response_model=DirectiveResponse)
async def seal_directive(
    directive_id: UUID,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.seal_nom151(user_id, directive_id)


@router.post("/{directive_id}/revoke", response_model=DirectiveResponse)
async def revoke_directive(
    directive_id: UUID,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    return await directives.revoke(user_id, directive_id)


@router.delete("/{directive_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_directive(
    directive_id: UUID,
    user_id: UUID = Depends(current_user_id),
    directives: DirectivesService = Depends(get_directives_service),
):
    await directives.delete(user_id, directive_id)
