"""Hospital Service — nearby and condition-aware search over the institution table.

Invariants:
    - Only active institutions with coordinates are ever candidates
    - SQL narrows by bounding box; core/hospital_matching decides distance and order
    - Results are deterministic for a fixed table (ties broken by id)

Design Decisions:
    - Bounding-box prefilter in SQL instead of PostGIS: the table is small,
      static reference data and the same query runs on SQLite in tests
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.core.domain_types import AttentionLevel, InstitutionType
from vida.core.errors import ResourceNotFoundError
from vida.core.geolocation import bounding_box
from vida.core.hospital_matching import (
    HospitalCandidate, RankedHospital, filter_nearby, rank_for_conditions,
)
from vida.models.medical_institution import MedicalInstitution
from vida.schemas.hospital import InstitutionUpsert

logger = logging.getLogger(__name__)

NEAREST_SEARCH_RADIUS_KM = 50


@dataclass(frozen=True)
class NearbyFilters:
    type: InstitutionType | None = None
    attention_level: AttentionLevel | None = None
    require_emergency: bool = False
    require_24_hours: bool = False
    require_icu: bool = False
    require_trauma: bool = False


def to_candidate(row: MedicalInstitution) -> HospitalCandidate:
    return HospitalCandidate(
        id=str(row.id),
        name=row.name,
        latitude=row.latitude,
        longitude=row.longitude,
        attention_level=AttentionLevel(row.attention_level) if row.attention_level else None,
        specialties=tuple(row.specialties or ()),
        has_emergency=row.has_emergency,
        has_24_hours=row.has_24_hours,
        has_icu=row.has_icu,
        has_trauma=row.has_trauma,
        phone=row.phone,
        emergency_phone=row.emergency_phone,
        address=row.address,
        city=row.city,
        state=row.state,
    )


class HospitalService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _candidates(
        self, lat: float, lon: float, radius_km: float,
        filters: NearbyFilters | None = None,
    ) -> list[HospitalCandidate]:
        box = bounding_box(lat, lon, radius_km)
        query = select(MedicalInstitution).where(
            MedicalInstitution.is_active.is_(True),
            MedicalInstitution.latitude.is_not(None),
            MedicalInstitution.longitude.is_not(None),
            MedicalInstitution.latitude.between(box.min_lat, box.max_lat),
        )
        if box.crosses_antimeridian:
            query = query.where(or_(
                MedicalInstitution.longitude >= box.min_lon,
                MedicalInstitution.longitude <= box.max_lon,
            ))
        else:
            query = query.where(
                MedicalInstitution.longitude.between(box.min_lon, box.max_lon),
            )
        f = filters or NearbyFilters()
        if f.type:
            query = query.where(MedicalInstitution.type == f.type.value)
        if f.attention_level:
            query = query.where(
                MedicalInstitution.attention_level == f.attention_level.value,
            )
        if f.require_emergency:
            query = query.where(MedicalInstitution.has_emergency.is_(True))
        if f.require_24_hours:
            query = query.where(MedicalInstitution.has_24_hours.is_(True))
        if f.require_icu:
            query = query.where(MedicalInstitution.has_icu.is_(True))
        if f.require_trauma:
            query = query.where(MedicalInstitution.has_trauma.is_(True))

        result = await self.db.execute(query)
        return [to_candidate(row) for row in result.scalars().all()]

    async def find_nearby(
        self,
        lat: float,
        lon: float,
        radius_km: float = 10,
        limit: int = 5,
        filters: NearbyFilters | None = None,
    ) -> list[RankedHospital]:
        candidates = await self._candidates(lat, lon, radius_km, filters)
        return filter_nearby(candidates, lat, lon, radius_km, limit)

    async def find_for_conditions(
        self,
        lat: float,
        lon: float,
        conditions: list[str],
        radius_km: float = 15,
        limit: int = 10,
        prioritize_by_condition: bool = True,
    ) -> list[RankedHospital]:
        candidates = await self._candidates(lat, lon, radius_km)
        return rank_for_conditions(
            candidates, lat, lon, conditions, radius_km, limit,
            prioritize_by_condition,
        )

    async def find_nearest(self, lat: float, lon: float) -> RankedHospital | None:
        found = await self.find_nearby(
            lat, lon, radius_km=NEAREST_SEARCH_RADIUS_KM, limit=1,
            filters=NearbyFilters(require_emergency=True),
        )
        return found[0] if found else None

    async def get(self, institution_id: UUID) -> MedicalInstitution:
        institution = await self.db.get(MedicalInstitution, institution_id)
        if not institution:
            raise ResourceNotFoundError(
                "MedicalInstitution", str(institution_id), code="HOSPITAL_NOT_FOUND",
            )
        return institution

    async def list_all(
        self,
        state: str | None = None,
        city: str | None = None,
        type: InstitutionType | None = None,
    ) -> list[MedicalInstitution]:
        query = select(MedicalInstitution).where(MedicalInstitution.is_active.is_(True))
        if state:
            query = query.where(MedicalInstitution.state == state)
        if city:
            query = query.where(MedicalInstitution.city == city)
        if type:
            query = query.where(MedicalInstitution.type == type.value)
        result = await self.db.execute(query.order_by(MedicalInstitution.name.asc()))
        return list(result.scalars().all())

    async def upsert_by_clues(self, data: InstitutionUpsert) -> MedicalInstitution:
        values = data.model_dump(mode="json")
        existing = None
        if data.clues_code:
            result = await self.db.execute(
                select(MedicalInstitution)
                .where(MedicalInstitution.clues_code == data.clues_code),
            )
            existing = result.scalar_one_or_none()

        if existing:
            for field, value in values.items():
                setattr(existing, field, value)
            institution = existing
        else:
            institution = MedicalInstitution(**values, is_active=True)
            self.db.add(institution)
        await self.db.commit()
        await self.db.refresh(institution)
        return institution


def institution_to_dict(row: MedicalInstitution) -> dict:
    return {
        "id": str(row.id),
        "name": row.name,
        "type": row.type,
        "clues_code": row.clues_code,
        "address": row.address,
        "city": row.city,
        "state": row.state,
        "zip_code": row.zip_code,
        "latitude": row.latitude,
        "longitude": row.longitude,
        "phone": row.phone,
        "emergency_phone": row.emergency_phone,
        "attention_level": row.attention_level,
        "specialties": list(row.specialties or []),
        "has_emergency": row.has_emergency,
        "has_24_hours": row.has_24_hours,
        "has_icu": row.has_icu,
        "has_trauma": row.has_trauma,
        "is_verified": row.is_verified,
    }
