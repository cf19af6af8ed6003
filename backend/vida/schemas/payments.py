"""Payments Schemas — plan catalogue and checkout requests."""

from pydantic import BaseModel, Field

from vida.core.domain_types import BillingCycle


class CheckoutRequest(BaseModel):
    plan_slug: str = Field(min_length=1, max_length=50)
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
