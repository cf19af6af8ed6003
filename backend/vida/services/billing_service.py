"""Billing Service — plan catalogue, Stripe checkout, webhook-driven subscription sync
and invoice history.

Invariants:
    - One Subscription row per user (upserted, never duplicated)
    - Webhooks are processed only after signature verification
    - Unknown webhook event types are acknowledged and ignored
    - Every subscription change invalidates the user's premium cache
    - One Payment row per Stripe invoice; redelivered invoice events update it

Design Decisions:
    - Subscription state comes from the webhook payload itself; no extra
      Stripe round trip per event
    - customer.subscription.* events may arrive before checkout.session.completed;
      both paths can create the row from the metadata attached at checkout
    - invoice.payment_failed only records the failed attempt; the status change
      arrives separately as customer.subscription.updated
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import Settings
from vida.core.clock import as_utc, utcnow
from vida.core.domain_types import BillingCycle, PaymentStatus, SubscriptionStatus
from vida.core.errors import ResourceNotFoundError, ValidationFailedError
from vida.core.plan_features import FREE_PLAN_SLUG, map_stripe_status
from vida.infrastructure.stripe_gateway import StripeGateway
from vida.models.payment import Payment
from vida.models.subscription import Subscription
from vida.models.subscription_plan import SubscriptionPlan
from vida.models.user import User
from vida.services import premium_service

logger = logging.getLogger(__name__)


def _from_epoch(value) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _period(obj: dict, key: str) -> datetime | None:
    """Billing period bound; newer API versions moved it onto the items."""
    if obj.get(key):
        return _from_epoch(obj[key])
    items = (obj.get("items") or {}).get("data") or []
    return _from_epoch(items[0].get(key)) if items else None


def plan_to_dict(plan: SubscriptionPlan) -> dict:
    return {
        "id": str(plan.id),
        "name": plan.name,
        "slug": plan.slug,
        "description": plan.description,
        "price_monthly": float(plan.price_monthly) if plan.price_monthly is not None else None,
        "price_annual": float(plan.price_annual) if plan.price_annual is not None else None,
        "currency": plan.currency,
        "features": plan.features or {},
        "limits": plan.limits or {},
        "trial_days": plan.trial_days,
        "is_default": plan.is_default,
    }


def payment_to_dict(payment: Payment) -> dict:
    return {
        "id": str(payment.id),
        "stripe_invoice_id": payment.stripe_invoice_id,
        "amount": float(payment.amount),
        "currency": payment.currency,
        "status": payment.status,
        "description": payment.description,
        "failure_message": payment.failure_message,
        "paid_at": as_utc(payment.paid_at),
        "created_at": as_utc(payment.created_at),
    }


class BillingService:
    def __init__(self, db: AsyncSession, stripe_gateway: StripeGateway, settings: Settings):
        self.db = db
        self.stripe = stripe_gateway
        self.settings = settings

    async def list_plans(self) -> list[SubscriptionPlan]:
        result = await self.db.execute(
            select(SubscriptionPlan)
            .where(SubscriptionPlan.is_active.is_(True))
            .order_by(SubscriptionPlan.display_order.asc()),
        )
        return list(result.scalars().all())

    async def _plan_by_slug(self, slug: str) -> SubscriptionPlan:
        result = await self.db.execute(
            select(SubscriptionPlan).where(
                SubscriptionPlan.slug == slug, SubscriptionPlan.is_active.is_(True),
            ),
        )
        plan = result.scalar_one_or_none()
        if not plan:
            raise ResourceNotFoundError("SubscriptionPlan", slug, code="PLAN_NOT_FOUND")
        return plan

    async def _subscription_for_user(self, user_id: UUID) -> Subscription | None:
        result = await self.db.execute(
            select(Subscription).where(Subscription.user_id == user_id),
        )
        return result.scalar_one_or_none()

    async def create_checkout(
        self, user_id: UUID, plan_slug: str, billing_cycle: BillingCycle,
    ) -> dict:
        plan = await self._plan_by_slug(plan_slug)
        price_id = plan.price_id_for(billing_cycle.value)
        if not price_id:
            raise ValidationFailedError(
                f"Plan {plan_slug} has no {billing_cycle.value.lower()} price",
                code="PRICE_NOT_AVAILABLE",
            )

        user = await self.db.get(User, user_id)
        if not user:
            raise ResourceNotFoundError("User", str(user_id), code="USER_NOT_FOUND")
        existing = await self._subscription_for_user(user_id)

        customer_id = await self.stripe.get_or_create_customer(
            existing.stripe_customer_id if existing else None,
            user.email, user.name, str(user_id),
        )
        session = await self.stripe.create_checkout_session(
            customer_id=customer_id,
            price_id=price_id,
            success_url=self.settings.stripe_success_url,
            cancel_url=self.settings.stripe_cancel_url,
            metadata={
                "user_id": str(user_id),
                "plan_id": str(plan.id),
                "billing_cycle": billing_cycle.value,
            },
            trial_days=plan.trial_days,
        )
        logger.info(
            f"Checkout session created for plan {plan_slug}",
            extra={"user_id": str(user_id), "event": "checkout_created"},
        )
        return {"session_id": session.id, "url": session.url}

    async def cancel_subscription(self, user_id: UUID) -> Subscription:
        sub = await self._subscription_for_user(user_id)
        if not sub:
            raise ResourceNotFoundError(
                "Subscription", str(user_id), code="SUBSCRIPTION_NOT_FOUND",
            )
        if sub.plan.slug == FREE_PLAN_SLUG:
            raise ValidationFailedError(
                "The free plan cannot be cancelled", code="CANNOT_CANCEL_FREE_PLAN",
            )
        if sub.stripe_subscription_id:
            await self.stripe.cancel_at_period_end(sub.stripe_subscription_id)
        sub.cancel_at_period_end = True
        await self.db.commit()
        premium_service.invalidate(user_id)
        logger.info(
            "Subscription set to cancel at period end",
            extra={"user_id": str(user_id), "event": "subscription_cancel_requested"},
        )
        return sub

    async def reactivate_subscription(self, user_id: UUID) -> Subscription:
        sub = await self._subscription_for_user(user_id)
        if not sub:
            raise ResourceNotFoundError(
                "Subscription", str(user_id), code="SUBSCRIPTION_NOT_FOUND",
            )
        if not sub.cancel_at_period_end:
            raise ValidationFailedError(
                "The subscription is not scheduled for cancellation",
                code="SUBSCRIPTION_NOT_CANCELLING",
            )
        if sub.stripe_subscription_id:
            await self.stripe.reactivate(sub.stripe_subscription_id)
        sub.cancel_at_period_end = False
        sub.cancelled_at = None
        await self.db.commit()
        premium_service.invalidate(user_id)
        logger.info(
            "Subscription reactivated",
            extra={"user_id": str(user_id), "event": "subscription_reactivated"},
        )
        return sub

    async def create_billing_portal(self, user_id: UUID) -> dict:
        sub = await self._subscription_for_user(user_id)
        if not sub or not sub.stripe_customer_id:
            raise ValidationFailedError(
                "No payment method on file", code="NO_BILLING_ACCOUNT",
            )
        url = await self.stripe.create_billing_portal_session(
            sub.stripe_customer_id, self.settings.stripe_portal_return_url,
        )
        return {"url": url}

    async def payment_history(
        self, user_id: UUID, limit: int = 20, offset: int = 0,
    ) -> tuple[list[Payment], int]:
        """Newest first; total counts every payment of the user."""
        total = await self.db.scalar(
            select(func.count()).select_from(Payment).where(Payment.user_id == user_id),
        )
        result = await self.db.execute(
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc())
            .limit(limit)
            .offset(offset),
        )
        return list(result.scalars().all()), int(total or 0)

    # ─── Webhooks ────────────────────────────────────────────────

    async def handle_webhook(self, payload: bytes, signature: str | None) -> dict:
        event = self.stripe.construct_event(payload, signature)
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == "checkout.session.completed":
            await self._checkout_completed(obj)
        elif event_type in (
            "customer.subscription.created", "customer.subscription.updated",
        ):
            await self._sync_subscription(obj)
        elif event_type == "customer.subscription.deleted":
            await self._subscription_deleted(obj)
        elif event_type == "invoice.paid":
            await self._record_invoice(obj, PaymentStatus.SUCCEEDED)
        elif event_type == "invoice.payment_failed":
            await self._record_invoice(obj, PaymentStatus.FAILED)
        else:
            logger.info(f"Ignoring Stripe event {event_type}", extra={"event": event_type})
            return {"received": True, "handled": False}
        return {"received": True, "handled": True}

    async def _upsert(self, user_id: UUID, plan_id: UUID, **fields) -> Subscription:
        sub = await self._subscription_for_user(user_id)
        if sub is None:
            sub = Subscription(user_id=user_id, plan_id=plan_id)
            self.db.add(sub)
        else:
            sub.plan_id = plan_id
        for key, value in fields.items():
            setattr(sub, key, value)
        await self.db.commit()
        premium_service.invalidate(user_id)
        return sub

    @staticmethod
    def _metadata_ids(metadata: dict) -> tuple[UUID, UUID] | None:
        try:
            return UUID(metadata["user_id"]), UUID(metadata["plan_id"])
        except (KeyError, TypeError, ValueError):
            return None

    async def _checkout_completed(self, session: dict) -> None:
        if session.get("mode") != "subscription" or not session.get("subscription"):
            return
        metadata = session.get("metadata") or {}
        ids = self._metadata_ids(metadata)
        if ids is None:
            logger.warning("Checkout session without VIDA metadata", extra={"event": "checkout_completed"})
            return
        user_id, plan_id = ids
        await self._upsert(
            user_id, plan_id,
            stripe_subscription_id=session["subscription"],
            stripe_customer_id=session.get("customer"),
            billing_cycle=metadata.get("billing_cycle") or BillingCycle.MONTHLY.value,
            status=SubscriptionStatus.ACTIVE.value,
            cancel_at_period_end=False,
            cancelled_at=None,
        )
        logger.info(
            "Subscription activated from checkout",
            extra={"user_id": str(user_id), "event": "checkout_completed"},
        )

    def _subscription_fields(self, obj: dict) -> dict:
        return {
            "status": map_stripe_status(obj.get("status")).value,
            "trial_ends_at": _from_epoch(obj.get("trial_end")),
            "current_period_start": _period(obj, "current_period_start"),
            "current_period_end": _period(obj, "current_period_end"),
            "cancel_at_period_end": bool(obj.get("cancel_at_period_end")),
            "cancelled_at": _from_epoch(obj.get("canceled_at")),
        }

    async def _sync_subscription(self, obj: dict) -> None:
        stripe_id = obj.get("id")
        if not stripe_id:
            return
        result = await self.db.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == stripe_id),
        )
        sub = result.scalar_one_or_none()
        fields = self._subscription_fields(obj)

        if sub is not None:
            for key, value in fields.items():
                setattr(sub, key, value)
            await self.db.commit()
            premium_service.invalidate(sub.user_id)
            logger.info(
                f"Subscription synced: {fields['status']}",
                extra={"user_id": str(sub.user_id), "event": "subscription_synced"},
            )
            return

        metadata = obj.get("metadata") or {}
        ids = self._metadata_ids(metadata)
        if ids is None:
            logger.warning(
                f"Stripe subscription {stripe_id} has no local owner",
                extra={"event": "subscription_synced"},
            )
            return
        user_id, plan_id = ids
        await self._upsert(
            user_id, plan_id,
            stripe_subscription_id=stripe_id,
            stripe_customer_id=obj.get("customer"),
            billing_cycle=metadata.get("billing_cycle") or BillingCycle.MONTHLY.value,
            **fields,
        )

    async def _subscription_deleted(self, obj: dict) -> None:
        result = await self.db.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == obj.get("id")),
        )
        sub = result.scalar_one_or_none()
        if sub is None:
            return
        sub.status = SubscriptionStatus.CANCELED.value
        sub.cancelled_at = _from_epoch(obj.get("canceled_at")) or utcnow()
        sub.cancel_at_period_end = False
        await self.db.commit()
        premium_service.invalidate(sub.user_id)
        logger.info(
            "Subscription cancelled by Stripe",
            extra={"user_id": str(sub.user_id), "event": "subscription_deleted"},
        )

    async def _subscription_for_invoice(self, invoice: dict) -> Subscription | None:
        stripe_id = invoice.get("subscription") or (
            ((invoice.get("parent") or {}).get("subscription_details") or {})
            .get("subscription")
        )
        if stripe_id:
            query = select(Subscription).where(
                Subscription.stripe_subscription_id == stripe_id,
            )
        elif invoice.get("customer"):
            query = select(Subscription).where(
                Subscription.stripe_customer_id == invoice["customer"],
            )
        else:
            return None
        return (await self.db.execute(query)).scalars().first()

    async def _record_invoice(self, invoice: dict, status: PaymentStatus) -> None:
        invoice_id = invoice.get("id")
        sub = await self._subscription_for_invoice(invoice) if invoice_id else None
        if sub is None:
            logger.warning(
                f"Invoice {invoice_id} has no local subscription",
                extra={"event": "invoice_recorded"},
            )
            return

        result = await self.db.execute(
            select(Payment).where(Payment.stripe_invoice_id == invoice_id),
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            payment = Payment(user_id=sub.user_id, stripe_invoice_id=invoice_id)
            self.db.add(payment)

        succeeded = status == PaymentStatus.SUCCEEDED
        cents = invoice.get("amount_paid" if succeeded else "amount_due") or 0
        lines = (invoice.get("lines") or {}).get("data") or []
        payment.subscription_id = sub.id
        payment.stripe_payment_intent_id = invoice.get("payment_intent")
        payment.amount = Decimal(int(cents)) / 100
        payment.currency = (invoice.get("currency") or "mxn").upper()
        payment.status = status.value
        payment.description = invoice.get("description") or (
            lines[0].get("description") if lines else None
        )
        if succeeded:
            paid_at = (invoice.get("status_transitions") or {}).get("paid_at")
            payment.paid_at = _from_epoch(paid_at) or utcnow()
            payment.failure_message = None
        else:
            payment.failure_message = (
                f"Payment attempt {invoice.get('attempt_count') or 1} failed"
            )
        await self.db.commit()

        if succeeded:
            logger.info(
                f"Invoice {invoice_id} paid",
                extra={"user_id": str(sub.user_id), "event": "invoice_paid"},
            )
        else:
            logger.warning(
                f"Invoice {invoice_id} payment failed",
                extra={"user_id": str(sub.user_id), "event": "invoice_payment_failed"},
            )
