"""Representatives Service — emergency contacts, their order and notification flags.

Invariants:
    - Listing is always priority ascending
    - New representatives go last (max priority + 1) unless a priority is given
    - representatives_limit from the user's plan is enforced on create
    - At most one donor spokesperson per user
    - reorder assigns priorities 1..n in the given order; ids the user does not
      own are ignored
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vida.core.errors import ResourceNotFoundError
from vida.core.notification_messages import AlertKind
from vida.models.representative import Representative
from vida.schemas.representative import RepresentativeCreate, RepresentativeUpdate
from vida.services.premium_service import PremiumService

logger = logging.getLogger(__name__)


class RepresentativesService:
    def __init__(self, db: AsyncSession, premium: PremiumService | None = None):
        self.db = db
        self.premium = premium

    async def list_all(self, user_id: UUID) -> list[Representative]:
        result = await self.db.execute(
            select(Representative)
            .where(Representative.user_id == user_id)
            .order_by(Representative.priority.asc(), Representative.created_at.asc()),
        )
        return list(result.scalars().all())

    async def get(self, user_id: UUID, representative_id: UUID) -> Representative:
        result = await self.db.execute(
            select(Representative).where(
                Representative.id == representative_id,
                Representative.user_id == user_id,
            ),
        )
        rep = result.scalar_one_or_none()
        if not rep:
            raise ResourceNotFoundError(
                "Representative", str(representative_id),
                code="REPRESENTATIVE_NOT_FOUND",
            )
        return rep

    async def _count(self, user_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Representative)
            .where(Representative.user_id == user_id),
        )
        return result.scalar_one()

    async def _clear_spokesperson(self, user_id: UUID) -> None:
        await self.db.execute(
            update(Representative)
            .where(Representative.user_id == user_id)
            .values(is_donor_spokesperson=False),
        )

    async def create(
        self, user_id: UUID, data: RepresentativeCreate,
    ) -> Representative:
        if self.premium:
            await self.premium.require_limit(
                user_id, "representatives_limit", await self._count(user_id),
            )

        priority = data.priority
        if priority is None:
            result = await self.db.execute(
                select(func.max(Representative.priority))
                .where(Representative.user_id == user_id),
            )
            priority = (result.scalar_one_or_none() or 0) + 1

        if data.is_donor_spokesperson:
            await self._clear_spokesperson(user_id)

        rep = Representative(
            user_id=user_id,
            name=data.name,
            phone=data.phone,
            email=data.email,
            relation=data.relation,
            priority=priority,
            is_donor_spokesperson=data.is_donor_spokesperson,
            notify_on_emergency=data.notify_on_emergency,
            notify_on_access=data.notify_on_access,
        )
        self.db.add(rep)
        await self.db.commit()
        await self.db.refresh(rep)
        logger.info("Representative created", extra={"user_id": str(user_id)})
        return rep

    async def update(
        self, user_id: UUID, representative_id: UUID, data: RepresentativeUpdate,
    ) -> Representative:
        rep = await self.get(user_id, representative_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("is_donor_spokesperson"):
            await self._clear_spokesperson(user_id)
        for field, value in changes.items():
            if value is None and field not in ("email",):
                continue
            setattr(rep, field, value)
        await self.db.commit()
        await self.db.refresh(rep)
        return rep

    async def delete(self, user_id: UUID, representative_id: UUID) -> None:
        rep = await self.get(user_id, representative_id)
        await self.db.delete(rep)
        await self.db.commit()

    async def reorder(
        self, user_id: UUID, ordered_ids: list[UUID],
    ) -> list[Representative]:
        owned = {rep.id: rep for rep in await self.list_all(user_id)}
        priority = 1
        for rep_id in ordered_ids:
            rep = owned.get(rep_id)
            if rep is None:
                continue
            rep.priority = priority
            priority += 1
        await self.db.commit()
        return await self.list_all(user_id)

    async def set_donor_spokesperson(
        self, user_id: UUID, representative_id: UUID,
    ) -> Representative:
        rep = await self.get(user_id, representative_id)
        await self._clear_spokesperson(user_id)
        rep.is_donor_spokesperson = True
        await self.db.commit()
        await self.db.refresh(rep)
        return rep

    async def recipients_for(
        self, user_id: UUID, kind: AlertKind,
    ) -> list[Representative]:
        """Representatives who opted in to this alert kind, priority order."""
        flag = (
            Representative.notify_on_emergency if kind == AlertKind.PANIC
            else Representative.notify_on_access
        )
        result = await self.db.execute(
            select(Representative)
            .where(Representative.user_id == user_id, flag.is_(True))
            .order_by(Representative.priority.asc(), Representative.created_at.asc()),
        )
        return list(result.scalars().all())
