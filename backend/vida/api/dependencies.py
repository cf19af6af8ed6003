"""API Dependencies — authentication, gateway providers and service factories.

Invariants:
    - current_user_id raises AuthenticationError (401) for missing or bad tokens
    - Every external gateway is built by a provider function, so tests swap it
      through app.dependency_overrides without touching the network
    - Services are constructed per request around the request's DB session

Design Decisions:
    - Plain factory functions instead of a DI container: FastAPI's Depends
      already caches per request
"""

from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import Settings, get_settings
from vida.core.errors import AuthenticationError
from vida.infrastructure.database import get_db
from vida.infrastructure.email_gateway import EmailGateway
from vida.infrastructure.encryption import FieldCipher, get_cipher
from vida.infrastructure.nom151_client import Nom151Client
from vida.infrastructure.realtime import RealtimeHub, realtime_hub
from vida.infrastructure.sms_gateway import SmsGateway
from vida.infrastructure.stripe_gateway import StripeGateway
from vida.services.auth_service import AuthService, authenticate
from vida.services.billing_service import BillingService
from vida.services.directives_service import DirectivesService
from vida.services.emergency_service import EmergencyService
from vida.services.hospital_service import HospitalService
from vida.services.notification_service import NotificationService
from vida.services.panic_service import PanicService
from vida.services.premium_service import PremiumService
from vida.services.profile_service import ProfileService
from vida.services.representatives_service import RepresentativesService

_bearer = HTTPBearer(auto_error=False)


async def current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> UUID:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("NO_TOKEN", "Authentication required")
    return authenticate(credentials.credentials)


# ─── Gateway providers ──────────────────────────────────────────

def get_sms_gateway(settings: Settings = Depends(get_settings)) -> SmsGateway:
    return SmsGateway(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
        api_base=settings.twilio_api_base,
    )


def get_email_gateway(settings: Settings = Depends(get_settings)) -> EmailGateway:
    return EmailGateway(
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_user,
        settings.smtp_password,
        settings.email_from,
    )


def get_nom151_client(settings: Settings = Depends(get_settings)) -> Nom151Client:
    return Nom151Client(
        settings.psc_endpoint, settings.psc_api_key,
        timeout=settings.psc_timeout_seconds,
    )


def get_stripe_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)


def get_realtime_hub() -> RealtimeHub:
    return realtime_hub


def get_field_cipher() -> FieldCipher:
    return get_cipher()


# ─── Service factories ──────────────────────────────────────────

def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_premium_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> PremiumService:
    return PremiumService(db, settings)


def get_profile_service(
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    premium: PremiumService = Depends(get_premium_service),
    settings: Settings = Depends(get_settings),
) -> ProfileService:
    return ProfileService(db, cipher, premium, settings)


def get_representatives_service(
    db: AsyncSession = Depends(get_db),
    premium: PremiumService = Depends(get_premium_service),
) -> RepresentativesService:
    return RepresentativesService(db, premium)


def get_directives_service(
    db: AsyncSession = Depends(get_db),
    premium: PremiumService = Depends(get_premium_service),
    nom151: Nom151Client = Depends(get_nom151_client),
) -> DirectivesService:
    return DirectivesService(db, premium, nom151)


def get_hospital_service(db: AsyncSession = Depends(get_db)) -> HospitalService:
    return HospitalService(db)


def get_notification_service(
    db: AsyncSession = Depends(get_db),
    sms: SmsGateway = Depends(get_sms_gateway),
    email: EmailGateway = Depends(get_email_gateway),
) -> NotificationService:
    return NotificationService(db, sms, email)


def get_panic_service(
    db: AsyncSession = Depends(get_db),
    hospitals: HospitalService = Depends(get_hospital_service),
    notifier: NotificationService = Depends(get_notification_service),
    profiles: ProfileService = Depends(get_profile_service),
    hub: RealtimeHub = Depends(get_realtime_hub),
    settings: Settings = Depends(get_settings),
) -> PanicService:
    return PanicService(db, hospitals, notifier, profiles, hub, settings)


def get_emergency_service(
    db: AsyncSession = Depends(get_db),
    profiles: ProfileService = Depends(get_profile_service),
    directives: DirectivesService = Depends(get_directives_service),
    representatives: RepresentativesService = Depends(get_representatives_service),
    settings: Settings = Depends(get_settings),
) -> EmergencyService:
    return EmergencyService(db, profiles, directives, representatives, settings)


def get_billing_service(
    db: AsyncSession = Depends(get_db),
    stripe_gateway: StripeGateway = Depends(get_stripe_gateway),
    settings: Settings = Depends(get_settings),
) -> BillingService:
    return BillingService(db, stripe_gateway, settings)
