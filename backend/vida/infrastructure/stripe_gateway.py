"""Stripe Gateway — customers, checkout sessions, cancellations, billing portal
and webhook verification.

Invariants:
    - Every SDK call runs in a worker thread; the event loop never blocks on Stripe
    - Stripe SDK errors surface as ExternalServiceError (502)
    - Webhook payloads are trusted only after signature verification

Design Decisions:
    - api_key passed per call instead of mutating stripe.api_key at import time
    - construct_event returns the verified payload as a plain dict so the billing
      service never touches SDK objects
"""

import asyncio
import json
import logging
from dataclasses import dataclass

import stripe

from vida.core.errors import ExternalServiceError, ValidationFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


class StripeGateway:
    def __init__(self, secret_key: str, webhook_secret: str):
        self._key = secret_key
        self._webhook_secret = webhook_secret

    @property
    def configured(self) -> bool:
        return bool(self._key)

    def _require_key(self) -> None:
        if not self._key:
            raise ExternalServiceError("Stripe", "payments are not configured")

    async def _call(self, fn, **kwargs):
        self._require_key()
        try:
            return await asyncio.to_thread(fn, api_key=self._key, **kwargs)
        except stripe.StripeError as e:
            logger.error(
                f"Stripe call failed: {e}",
                extra={"error_code": "STRIPE_ERROR"},
            )
            raise ExternalServiceError("Stripe", e.user_message or "request failed")

    async def get_or_create_customer(
        self, existing_customer_id: str | None, email: str, name: str, user_id: str,
    ) -> str:
        if existing_customer_id:
            return existing_customer_id
        customer = await self._call(
            stripe.Customer.create,
            email=email,
            name=name,
            metadata={"vida_user_id": user_id},
        )
        return customer["id"]

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: dict,
        trial_days: int = 0,
    ) -> CheckoutSession:
        subscription_data: dict = {"metadata": metadata}
        if trial_days > 0:
            subscription_data["trial_period_days"] = trial_days
        session = await self._call(
            stripe.checkout.Session.create,
            mode="subscription",
            customer=customer_id,
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url + "?session_id={CHECKOUT_SESSION_ID}",
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data=subscription_data,
            allow_promotion_codes=True,
        )
        url = session.get("url")
        if not url:
            raise ExternalServiceError("Stripe", "checkout session has no URL")
        return CheckoutSession(id=session["id"], url=url)

    async def cancel_at_period_end(self, subscription_id: str) -> dict:
        return await self._call(
            stripe.Subscription.modify,
            id=subscription_id,
            cancel_at_period_end=True,
        )

    async def reactivate(self, subscription_id: str) -> dict:
        return await self._call(
            stripe.Subscription.modify,
            id=subscription_id,
            cancel_at_period_end=False,
        )

    async def create_billing_portal_session(self, customer_id: str, return_url: str) -> str:
        session = await self._call(
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )
        return session["url"]

    def construct_event(self, payload: bytes, signature: str | None) -> dict:
        if not self._webhook_secret:
            raise ExternalServiceError("Stripe", "webhook secret is not configured")
        if not signature:
            raise ValidationFailedError(
                "Missing Stripe signature", code="INVALID_SIGNATURE",
            )
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.warning(f"Rejected Stripe webhook: {e}")
            raise ValidationFailedError(
                "Invalid Stripe signature", code="INVALID_SIGNATURE",
            )
        return json.loads(payload)
