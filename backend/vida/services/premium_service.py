"""Premium Service — per-user feature and limit resolution with a short TTL cache.

Invariants:
    - demo_premium_mode short-circuits every check to full premium
    - Cached entitlements live at most premium_cache_ttl_seconds
    - Any subscription change must call invalidate(user_id)

Design Decisions:
    - Process-local dict cache keyed by user id: single uvicorn process, and a
      stale entry only delays an upgrade by the TTL
    - Free defaults read from the "free" plan row when seeded, constants otherwise
"""

import logging
import time
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.config import Settings
from vida.core.clock import as_utc, utcnow
from vida.core.domain_types import SubscriptionStatus
from vida.core.errors import LimitExceededError, PremiumRequiredError
from vida.core.plan_features import (
    DEMO_PREMIUM, FREE_PLAN_DEFAULTS, FREE_PLAN_SLUG,
    Entitlements, LimitCheck, PlanFeatures, PlanLimits,
    check_limit, is_entitled, resolve_entitlements, trial_days_left,
)
from vida.models.subscription import Subscription
from vida.models.subscription_plan import SubscriptionPlan

logger = logging.getLogger(__name__)

_cache: dict[str, tuple[Entitlements, float]] = {}


def invalidate(user_id: UUID | str) -> None:
    _cache.pop(str(user_id), None)


def clear_cache() -> None:
    _cache.clear()


class PremiumService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def _subscription(self, user_id: UUID) -> Subscription | None:
        result = await self.db.execute(
            select(Subscription).where(Subscription.user_id == user_id),
        )
        return result.scalar_one_or_none()

    async def _free_defaults(self) -> Entitlements:
        result = await self.db.execute(
            select(SubscriptionPlan).where(SubscriptionPlan.slug == FREE_PLAN_SLUG),
        )
        plan = result.scalar_one_or_none()
        if plan is None:
            return FREE_PLAN_DEFAULTS
        return Entitlements(
            plan_slug=FREE_PLAN_SLUG,
            features=PlanFeatures.from_mapping(plan.features),
            limits=PlanLimits.from_mapping(plan.limits),
        )

    async def get_entitlements(self, user_id: UUID) -> Entitlements:
        if self.settings.demo_premium_mode:
            return DEMO_PREMIUM

        key = str(user_id)
        cached = _cache.get(key)
        if cached and cached[1] > time.monotonic():
            return cached[0]

        sub = await self._subscription(user_id)
        status = SubscriptionStatus(sub.status) if sub else None
        entitlements = resolve_entitlements(
            status,
            sub.plan.slug if sub else None,
            sub.plan.features if sub else None,
            sub.plan.limits if sub else None,
            free_defaults=await self._free_defaults(),
        )
        _cache[key] = (
            entitlements,
            time.monotonic() + self.settings.premium_cache_ttl_seconds,
        )
        return entitlements

    async def has_feature(self, user_id: UUID, feature: str) -> bool:
        return (await self.get_entitlements(user_id)).features.has(feature)

    async def require_feature(self, user_id: UUID, feature: str) -> None:
        if not await self.has_feature(user_id, feature):
            logger.info(
                f"Premium feature denied: {feature}",
                extra={"user_id": str(user_id), "error_code": "PREMIUM_REQUIRED"},
            )
            raise PremiumRequiredError(feature)

    async def check_limit(
        self, user_id: UUID, limit_key: str, current: int,
    ) -> LimitCheck:
        limits = (await self.get_entitlements(user_id)).limits
        return check_limit(limits.get(limit_key), current)

    async def require_limit(
        self, user_id: UUID, limit_key: str, current: int,
    ) -> None:
        result = await self.check_limit(user_id, limit_key, current)
        if not result.allowed:
            raise LimitExceededError(limit_key, result.limit, result.current)

    async def premium_status(self, user_id: UUID) -> dict:
        entitlements = await self.get_entitlements(user_id)
        sub = await self._subscription(user_id)
        status = SubscriptionStatus(sub.status) if sub else None
        is_premium = self.settings.demo_premium_mode or (
            is_entitled(status) and entitlements.is_premium
        )
        return {
            "is_premium": is_premium,
            "plan": {
                "name": sub.plan.name if sub else "Plan Gratuito",
                "slug": entitlements.plan_slug,
            },
            "status": status.value if status else None,
            "trial_days_left": trial_days_left(
                as_utc(sub.trial_ends_at) if sub else None, utcnow(),
            ),
            "current_period_end": as_utc(sub.current_period_end) if sub else None,
            "cancel_at_period_end": sub.cancel_at_period_end if sub else False,
            "features": entitlements.features.to_dict(),
            "limits": entitlements.limits.to_dict(),
        }
