"""Service test fixtures — async DB, FastAPI test client and recording gateways.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session
    - db_manager patched for background tasks that bypass get_db
    - SMS, email, Stripe and the realtime hub are replaced with recording fakes
    - Premium entitlement cache is cleared around every test

Design Decisions:
    - SQLite in-memory with StaticPool: one shared connection, so the request
      session and the test session see the same tables
    - Fakes injected through app.dependency_overrides, never by patching modules
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

import vida.infrastructure.database as db_module
import vida.models  # noqa: F401
from vida.api.dependencies import (
    get_email_gateway, get_realtime_hub, get_sms_gateway, get_stripe_gateway,
)
from vida.core.domain_types import SubscriptionStatus
from vida.db.base import Base
from vida.infrastructure.database import DatabaseSessionManager, get_db
from vida.main import app
from vida.models.subscription import Subscription
from vida.models.subscription_plan import SubscriptionPlan
from vida.services import premium_service
from vida.services.hospital_service import HospitalService

from tests.services.factories import (
    FakeEmail, FakeHub, FakeSms, FakeStripe, institution, register,
)


@dataclass
class Gateways:
    sms: FakeSms
    email: FakeEmail
    hub: FakeHub
    stripe: FakeStripe


@pytest.fixture(autouse=True)
def clear_premium_cache():
    premium_service.clear_cache()
    yield
    premium_service.clear_cache()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def gateways():
    return Gateways(sms=FakeSms(), email=FakeEmail(), hub=FakeHub(), stripe=FakeStripe())


@pytest.fixture
async def client(test_engine, test_session_factory, gateways):
    """FastAPI test client with DB and gateway dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sms_gateway] = lambda: gateways.sms
    app.dependency_overrides[get_email_gateway] = lambda: gateways.email
    app.dependency_overrides[get_realtime_hub] = lambda: gateways.hub
    app.dependency_overrides[get_stripe_gateway] = lambda: gateways.stripe

    # Background tasks open their own session through db_manager
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def auth_user(client):
    """Registered user: {"user": ..., "tokens": ..., "headers": {...}}."""
    return await register(client)


@pytest.fixture
async def plans(test_db):
    free = SubscriptionPlan(
        name="Plan Gratuito", slug="free", currency="MXN",
        features={}, limits={"representatives_limit": 2, "qr_downloads_per_month": 3},
        is_default=True, display_order=0,
    )
    premium = SubscriptionPlan(
        name="Plan Premium", slug="premium", currency="MXN",
        price_monthly=Decimal("149.00"), price_annual=Decimal("1490.00"),
        stripe_price_id_monthly="price_monthly_test",
        features={
            "advance_directives": True, "donor_preferences": True,
            "nom151_seal": True, "sms_notifications": True,
            "export_data": True, "priority_support": True,
        },
        limits={"representatives_limit": 10, "qr_downloads_per_month": 0},
        trial_days=7, display_order=1,
    )
    test_db.add_all([free, premium])
    await test_db.commit()
    return {"free": free, "premium": premium}


@pytest.fixture
async def premium_user(auth_user, plans, test_db):
    """auth_user holding an ACTIVE premium subscription."""
    test_db.add(Subscription(
        user_id=UUID(auth_user["user"]["id"]),
        plan_id=plans["premium"].id,
        status=SubscriptionStatus.ACTIVE.value,
        stripe_subscription_id="sub_test_1",
        stripe_customer_id="cus_test_1",
    ))
    await test_db.commit()
    return auth_user


@pytest.fixture
async def hospitals(test_db):
    """Three institutions north of ORIGIN at 1, 4 and 30 km."""
    service = HospitalService(test_db)
    near = await service.upsert_by_clues(institution(
        "Clinica Roma", 1.0, type="CLINIC", attention_level="FIRST",
        clues_code="DFTEST000001",
    ))
    cardio = await service.upsert_by_clues(institution(
        "Instituto Cardiologico", 4.0, attention_level="THIRD",
        specialties=["Urgencias", "Cardiologia", "Cirugia Cardiovascular", "Terapia Intensiva"],
        has_icu=True, has_24_hours=True, emergency_phone="55 9111 9111",
        clues_code="DFTEST000002",
    ))
    far = await service.upsert_by_clues(institution(
        "Hospital Toluca", 30.0, clues_code="DFTEST000003",
    ))
    return {"near": near, "cardio": cardio, "far": far}
