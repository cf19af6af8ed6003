"""Hospital Routes — public lookup of nearby medical institutions.

Invariants:
    - Read-only; institutions are reference data loaded by the seed script
    - Fixed paths (/nearby, /conditions) are declared before /{institution_id}
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from vida.api.dependencies import get_hospital_service
from vida.core.domain_types import AttentionLevel, InstitutionType
from vida.core.hospital_matching import known_conditions
from vida.schemas.hospital import SmartSearchRequest
from vida.services.hospital_service import (
    HospitalService, NearbyFilters, institution_to_dict,
)

router = APIRouter(prefix="/api/v1/hospitals", tags=["hospitals"])


@router.get("/nearby")
async def nearby_hospitals(
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    radius_km: float = Query(10, gt=0, le=100),
    limit: int = Query(5, ge=1, le=50),
    type: InstitutionType | None = None,
    attention_level: AttentionLevel | None = None,
    require_emergency: bool = False,
    require_24_hours: bool = False,
    require_icu: bool = False,
    require_trauma: bool = False,
    hospitals: HospitalService = Depends(get_hospital_service),
):
    found = await hospitals.find_nearby(
        latitude, longitude, radius_km=radius_km, limit=limit,
        filters=NearbyFilters(
            type=type,
            attention_level=attention_level,
            require_emergency=require_emergency,
            require_24_hours=require_24_hours,
            require_icu=require_icu,
            require_trauma=require_trauma,
        ),
    )
    return {"hospitals": [r.to_dict() for r in found], "count": len(found)}


@router.post("/nearby/smart")
async def smart_search(
    body: SmartSearchRequest,
    hospitals: HospitalService = Depends(get_hospital_service),
):
    """Condition-aware ranking: specialty coverage, capability and distance."""
    found = await hospitals.find_for_conditions(
        body.latitude, body.longitude, body.conditions,
        radius_km=body.radius_km, limit=body.limit,
        prioritize_by_condition=body.prioritize_by_condition,
    )
    return {"hospitals": [r.to_dict() for r in found], "count": len(found)}


@router.get("/conditions")
async def supported_conditions():
    return {"conditions": known_conditions()}


@router.get("")
async def list_hospitals(
    state: str | None = None,
    city: str | None = None,
    type: InstitutionType | None = None,
    hospitals: HospitalService = Depends(get_hospital_service),
):
    rows = await hospitals.list_all(state=state, city=city, type=type)
    return {"hospitals": [institution_to_dict(r) for r in rows], "count": len(rows)}


@router.get("/{institution_id}")
async def get_hospital(
    institution_id: UUID,
    hospitals: HospitalService = Depends(get_hospital_service),
):
    return institution_to_dict(await hospitals.get(institution_id))
