"""Payment Routes — plan catalogue, checkout, subscription lifecycle, invoice history,
entitlement checks and the Stripe webhook.

Invariants:
    - The webhook endpoint is public; its trust comes from the Stripe signature
    - The webhook reads the raw body: re-serialised JSON would break the signature
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request

from vida.api.dependencies import (
    current_user_id, get_billing_service, get_premium_service,
)
from vida.core.clock import as_utc
from vida.core.errors import ValidationFailedError
from vida.core.plan_features import FEATURE_KEYS, LIMIT_KEYS
from vida.schemas.payments import CheckoutRequest
from vida.services.billing_service import BillingService, payment_to_dict, plan_to_dict
from vida.services.premium_service import PremiumService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["payments"])
webhook_router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.get("/plans")
async def list_plans(billing: BillingService = Depends(get_billing_service)):
    plans = await billing.list_plans()
    return {"plans": [plan_to_dict(p) for p in plans]}


@router.get("/subscription")
async def subscription_status(
    user_id: UUID = Depends(current_user_id),
    premium: PremiumService = Depends(get_premium_service),
):
    return await premium.premium_status(user_id)


@router.post("/checkout")
async def create_checkout(
    body: CheckoutRequest,
    user_id: UUID = Depends(current_user_id),
    billing: BillingService = Depends(get_billing_service),
):
    return await billing.create_checkout(user_id, body.plan_slug, body.billing_cycle)


@router.post("/subscription/cancel")
async def cancel_subscription(
    user_id: UUID = Depends(current_user_id),
    billing: BillingService = Depends(get_billing_service),
):
    sub = await billing.cancel_subscription(user_id)
    return {
        "status": sub.status,
        "cancel_at_period_end": sub.cancel_at_period_end,
        "current_period_end": as_utc(sub.current_period_end),
    }


@router.post("/subscription/reactivate")
async def reactivate_subscription(
    user_id: UUID = Depends(current_user_id),
    billing: BillingService = Depends(get_billing_service),
):
    sub = await billing.reactivate_subscription(user_id)
    return {
        "status": sub.status,
        "cancel_at_period_end": sub.cancel_at_period_end,
        "current_period_end": as_utc(sub.current_period_end),
    }


@router.post("/billing-portal")
async def billing_portal(
    user_id: UUID = Depends(current_user_id),
    billing: BillingService = Depends(get_billing_service),
):
    return await billing.create_billing_portal(user_id)


@router.get("/history")
async def payment_history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: UUID = Depends(current_user_id),
    billing: BillingService = Depends(get_billing_service),
):
    payments, total = await billing.payment_history(user_id, limit, offset)
    return {
        "payments": [payment_to_dict(p) for p in payments],
        "pagination": {"total": total, "limit": limit, "offset": offset},
    }


@router.get("/check-feature/{feature}")
async def check_feature(
    feature: str,
    user_id: UUID = Depends(current_user_id),
    premium: PremiumService = Depends(get_premium_service),
):
    if feature not in FEATURE_KEYS:
        raise ValidationFailedError(f"Unknown feature: {feature}", code="UNKNOWN_FEATURE")
    return {"feature": feature, "has_access": await premium.has_feature(user_id, feature)}


@router.get("/check-limit/{limit_key}")
async def check_limit(
    limit_key: str,
    user_id: UUID = Depends(current_user_id),
    premium: PremiumService = Depends(get_premium_service),
):
    if limit_key not in LIMIT_KEYS:
        raise ValidationFailedError(f"Unknown limit: {limit_key}", code="UNKNOWN_LIMIT")
    value = (await premium.get_entitlements(user_id)).limits.get(limit_key)
    return {"limit": limit_key, "value": value, "is_unlimited": value == 0}


@webhook_router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="stripe-signature"),
    billing: BillingService = Depends(get_billing_service),
):
    payload = await request.body()
    return await billing.handle_webhook(payload, stripe_signature)
