"""Gateways — verifies simulation modes and provider error mapping.

Tests:
    - SMS and email report simulated success without credentials
    - Twilio HTTP errors become failed DeliveryResults, never exceptions
    - NOM-151 demo key returns a simulated certificate
    - Stripe webhooks are rejected without a valid signature
"""

import httpx
import pytest

from vida.core.errors import ExternalServiceError, ValidationFailedError
from vida.infrastructure.email_gateway import EmailGateway
from vida.infrastructure.nom151_client import DEMO_PROVIDER, Nom151Client
from vida.infrastructure.sms_gateway import SmsGateway, format_phone_e164
from vida.infrastructure.stripe_gateway import StripeGateway


@pytest.mark.parametrize("raw, expected", [
    ("55 1234 5678", "+525512345678"),
    ("(55) 1234-5678", "+525512345678"),
    ("525512345678", "+525512345678"),
    ("+1 415 555 0100", "+14155550100"),
])
def test_format_phone_e164(raw, expected):
    assert format_phone_e164(raw) == expected


async def test_sms_simulation_mode():
    gateway = SmsGateway("", "", "")
    assert gateway.simulation_mode
    result = await gateway.send("5512345678", "hola")
    assert result.success
    assert result.simulated
    assert result.message_id.startswith("SIM-")


async def test_sms_provider_error_is_reported(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "bad auth"})

    real_client = httpx.AsyncClient

    def fake_client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(
        "vida.infrastructure.sms_gateway.httpx.AsyncClient", fake_client,
    )
    gateway = SmsGateway("AC123", "token", "+15005550006")
    result = await gateway.send("5512345678", "hola")
    assert not result.success
    assert result.error == "Twilio HTTP 401"


async def test_sms_provider_success(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        return httpx.Response(201, json={"sid": "SM42"})

    real_client = httpx.AsyncClient

    def fake_client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(
        "vida.infrastructure.sms_gateway.httpx.AsyncClient", fake_client,
    )
    result = await SmsGateway("AC123", "token", "+15005550006").send("5512345678", "hola")
    assert result.success
    assert result.message_id == "SM42"
    assert seen["url"].endswith("/Accounts/AC123/Messages.json")
    assert "To=%2B525512345678" in seen["body"]


async def test_email_simulation_mode():
    gateway = EmailGateway("smtp.example.com", 587, "apikey", "", "noreply@vida.mx")
    assert gateway.simulation_mode
    result = await gateway.send("rep@example.mx", "Alerta", "<p>hola</p>")
    assert result.success
    assert result.simulated
    assert result.message_id.endswith("@vida.mx>")


async def test_nom151_demo_seal():
    client = Nom151Client("https://psc.example", "demo-key")
    result = await client.seal("ab" * 32)
    assert result.simulated
    assert result.provider == DEMO_PROVIDER
    assert result.certificate.startswith("NOM151-CERT-")


async def test_nom151_provider_failure_raises(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    real_client = httpx.AsyncClient

    def fake_client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(
        "vida.infrastructure.nom151_client.httpx.AsyncClient", fake_client,
    )
    with pytest.raises(ExternalServiceError) as exc_info:
        await Nom151Client("https://psc.example", "live-key").seal("ab" * 32)
    assert exc_info.value.http_status == 502


def test_stripe_webhook_requires_signature():
    gateway = StripeGateway("sk_test_x", "whsec_test")
    with pytest.raises(ValidationFailedError) as exc_info:
        gateway.construct_event(b"{}", None)
    assert exc_info.value.code == "INVALID_SIGNATURE"


def test_stripe_webhook_rejects_bad_signature():
    gateway = StripeGateway("sk_test_x", "whsec_test")
    with pytest.raises(ValidationFailedError):
        gateway.construct_event(b"{}", "t=1,v1=deadbeef")


async def test_stripe_calls_need_a_key():
    gateway = StripeGateway("", "whsec_test")
    assert not gateway.configured
    with pytest.raises(ExternalServiceError):
        await gateway.cancel_at_period_end("sub_123")
