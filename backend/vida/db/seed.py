"""Seed Data — subscription plans and reference hospitals.

Invariants:
    - Idempotent: running twice leaves the same rows (plans by slug,
      hospitals by CLUES code or, without one, by name)
    - Existing plan rows are never overwritten; Stripe price ids set in
      production survive a re-seed

Usage:
    python -m vida.db.seed
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import get_settings
from vida.core.domain_types import AttentionLevel, InstitutionType
from vida.db.session import create_session_factory
from vida.infrastructure.observability import setup_logging
from vida.models.medical_institution import MedicalInstitution
from vida.models.subscription_plan import SubscriptionPlan
from vida.schemas.hospital import InstitutionUpsert
from vida.services.hospital_service import HospitalService

logger = logging.getLogger(__name__)

PLANS = [
    {
        "name": "Plan Gratuito",
        "slug": "free",
        "description": (
            "Acceso básico a Sistema VIDA. Incluye perfil médico, código QR "
            "de emergencia y hasta 2 representantes."
        ),
        "price_monthly": None,
        "price_annual": None,
        "features": {
            "advance_directives": False,
            "donor_preferences": False,
            "nom151_seal": False,
            "sms_notifications": False,
            "export_data": False,
            "priority_support": False,
        },
        "limits": {"representatives_limit": 2, "qr_downloads_per_month": 3},
        "trial_days": 0,
        "is_default": True,
        "display_order": 0,
    },
    {
        "name": "Plan Premium",
        "slug": "premium",
        "description": (
            "Acceso completo: directivas de voluntad anticipada, preferencias "
            "de donación, sello NOM-151, notificaciones SMS y soporte prioritario."
        ),
        "price_monthly": 149,
        "price_annual": 1490,
        "features": {
            "advance_directives": True,
            "donor_preferences": True,
            "nom151_seal": True,
            "sms_notifications": True,
            "export_data": True,
            "priority_support": True,
        },
        "limits": {"representatives_limit": 10, "qr_downloads_per_month": 0},
        "trial_days": 7,
        "is_default": False,
        "display_order": 1,
    },
]

HOSPITALS = [
    InstitutionUpsert(
        name="Hospital General de Mexico",
        type=InstitutionType.HOSPITAL_PUBLIC,
        clues_code="DFSSA000011",
        address="Dr. Balmis 148, Doctores, Cuauhtemoc",
        city="Ciudad de Mexico",
        state="CDMX",
        zip_code="06726",
        latitude=19.4128,
        longitude=-99.1527,
        phone="55 2789 2000",
        emergency_phone="55 2789 2000 ext. 1234",
        attention_level=AttentionLevel.THIRD,
        specialties=[
            "Urgencias", "Medicina Interna", "Cardiologia", "Neurologia",
            "Traumatologia", "Cirugia General", "Terapia Intensiva", "Oncologia",
        ],
        has_24_hours=True,
        has_icu=True,
        has_trauma=True,
        is_verified=True,
    ),
    InstitutionUpsert(
        name="Centro Medico Nacional Siglo XXI",
        type=InstitutionType.IMSS,
        address="Av. Cuauhtemoc 330, Doctores, Cuauhtemoc",
        city="Ciudad de Mexico",
        state="CDMX",
        zip_code="06720",
        latitude=19.4066,
        longitude=-99.1548,
        phone="55 5627 6900",
        attention_level=AttentionLevel.THIRD,
        specialties=[
            "Urgencias", "Cardiologia", "Cirugia Cardiovascular", "Nefrologia",
            "Dialisis", "Oncologia", "Pediatria", "Terapia Intensiva",
        ],
        has_24_hours=True,
        has_icu=True,
        is_verified=True,
    ),
    InstitutionUpsert(
        name="Instituto Nacional de Cardiologia Ignacio Chavez",
        type=InstitutionType.HOSPITAL_PUBLIC,
        address="Juan Badiano 1, Belisario Dominguez Seccion XVI, Tlalpan",
        city="Ciudad de Mexico",
        state="CDMX",
        zip_code="14080",
        latitude=19.2919,
        longitude=-99.1556,
        phone="55 5573 2911",
        attention_level=AttentionLevel.THIRD,
        specialties=[
            "Urgencias", "Cardiologia", "Cirugia Cardiovascular",
            "Terapia Intensiva", "Nefrologia",
        ],
        has_24_hours=True,
        has_icu=True,
        is_verified=True,
    ),
    InstitutionUpsert(
        name="Cruz Roja Mexicana Polanco",
        type=InstitutionType.AMBULANCE_SERVICE,
        address="Ejercito Nacional 1032, Polanco, Miguel Hidalgo",
        city="Ciudad de Mexico",
        state="CDMX",
        zip_code="11510",
        latitude=19.4398,
        longitude=-99.2035,
        phone="55 5395 1111",
        emergency_phone="065",
        attention_level=AttentionLevel.SECOND,
        specialties=["Urgencias", "Traumatologia", "Ortopedia"],
        has_24_hours=True,
        has_trauma=True,
        is_verified=True,
    ),
]


async def seed_plans(db: AsyncSession) -> int:
    created = 0
    for data in PLANS:
        result = await db.execute(
            select(SubscriptionPlan).where(SubscriptionPlan.slug == data["slug"]),
        )
        if result.scalar_one_or_none():
            continue
        db.add(SubscriptionPlan(currency="MXN", is_active=True, **data))
        created += 1
    await db.commit()
    return created


async def seed_hospitals(db: AsyncSession) -> int:
    service = HospitalService(db)
    created = 0
    for data in HOSPITALS:
        if not data.clues_code:
            result = await db.execute(
                select(MedicalInstitution.id).where(MedicalInstitution.name == data.name),
            )
            if result.scalar_one_or_none():
                continue
        await service.upsert_by_clues(data)
        created += 1
    return created


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, "text")
    session_factory = create_session_factory(settings.database_url)
    async with session_factory() as db:
        plans = await seed_plans(db)
        hospitals = await seed_hospitals(db)
    logger.info(f"Seed complete: {plans} plans, {hospitals} hospitals written")


if __name__ == "__main__":
    asyncio.run(main())
