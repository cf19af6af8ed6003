"""Test factories — registration payloads and recording fakes for external gateways.

Fakes record every call so tests assert on what would have reached Twilio,
SMTP, Stripe or a WebSocket without any network access.
"""

from httpx import AsyncClient

from vida.core.domain_types import InstitutionType
from vida.infrastructure.sms_gateway import DeliveryResult
from vida.infrastructure.stripe_gateway import CheckoutSession, StripeGateway
from vida.schemas.hospital import InstitutionUpsert

VALID_CURP = "GARC850101HDFRRL09"
OTHER_CURP = "LOPM900215MDFLPRA8"
PASSWORD = "Segura123!"


class FakeSms:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail_for: set[str] = set()

    async def send(self, to: str, body: str) -> DeliveryResult:
        if to in self.fail_for:
            return DeliveryResult(success=False, error="undeliverable")
        self.sent.append({"to": to, "body": body})
        return DeliveryResult(success=True, message_id=f"SM{len(self.sent)}")


class FakeEmail:
    def __init__(self):
        self.sent: list[dict] = []

    async def send(self, to: str, subject: str, html: str) -> DeliveryResult:
        self.sent.append({"to": to, "subject": subject, "html": html})
        return DeliveryResult(success=True, message_id=f"<{len(self.sent)}@test>")


class FakeHub:
    def __init__(self):
        self.events: list[tuple[str, str, dict]] = []
        self.broken = False

    async def emit(self, room: str, event: str, data: dict) -> int:
        if self.broken:
            raise RuntimeError("socket layer down")
        self.events.append((room, event, data))
        return 1

    def named(self, event: str) -> list[tuple[str, dict]]:
        return [(room, data) for room, name, data in self.events if name == event]


class FakeStripe(StripeGateway):
    """Real webhook verification, recorded API calls."""

    def __init__(self, webhook_secret: str = "whsec_test_secret"):
        super().__init__("sk_test_fake", webhook_secret)
        self.calls: list[tuple] = []

    async def get_or_create_customer(self, existing_customer_id, email, name, user_id):
        self.calls.append(("customer", existing_customer_id, email))
        return existing_customer_id or "cus_test_1"

    async def create_checkout_session(
        self, customer_id, price_id, success_url, cancel_url, metadata, trial_days=0,
    ):
        self.calls.append(("checkout", customer_id, price_id, metadata, trial_days))
        return CheckoutSession(id="cs_test_1", url="https://checkout.stripe.test/cs_test_1")

    async def cancel_at_period_end(self, subscription_id):
        self.calls.append(("cancel", subscription_id))
        return {"id": subscription_id, "cancel_at_period_end": True}

    async def reactivate(self, subscription_id):
        self.calls.append(("reactivate", subscription_id))
        return {"id": subscription_id, "cancel_at_period_end": False}

    async def create_billing_portal_session(self, customer_id, return_url):
        self.calls.append(("portal", customer_id, return_url))
        return f"https://billing.stripe.test/{customer_id}"


def registration(
    email: str = "ana@example.mx", curp: str = VALID_CURP, name: str = "Ana Garcia",
) -> dict:
    return {
        "email": email,
        "password": PASSWORD,
        "curp": curp,
        "name": name,
        "date_of_birth": "1985-01-01",
        "sex": "M",
        "phone": "5512345678",
    }


async def register(client: AsyncClient, **kwargs) -> dict:
    res = await client.post("/api/v1/auth/register", json=registration(**kwargs))
    assert res.status_code == 201, res.text
    data = res.json()
    data["headers"] = {"Authorization": f"Bearer {data['tokens']['access_token']}"}
    return data


ORIGIN = (19.4326, -99.1332)
KM_PER_DEGREE = 111.195


def institution(name: str, km_north: float, **extra):
    """InstitutionUpsert placed km_north kilometres due north of ORIGIN."""
    values = {
        "name": name,
        "type": InstitutionType.HOSPITAL_PUBLIC,
        "city": "Ciudad de Mexico",
        "state": "CDMX",
        "latitude": ORIGIN[0] + km_north / KM_PER_DEGREE,
        "longitude": ORIGIN[1],
        "phone": "55 0000 0000",
        "specialties": ["Urgencias"],
    }
    values.update(extra)
    return InstitutionUpsert(**values)
