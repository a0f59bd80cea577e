"""
lexdesk.db.repositories.subscriptions

Repository for `Subscription` records.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.auth.models import SubscriptionStatus
from lexdesk.db.models import Plan, Subscription


class SubscriptionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: uuid.UUID,
        plan_id: uuid.UUID,
        status: SubscriptionStatus,
        end_date: datetime | None,
    ) -> Subscription:
        sub = Subscription(user_id=user_id, plan_id=plan_id, status=status, end_date=end_date)
        self._session.add(sub)
        await self._session.flush()
        return sub

    async def get(self, subscription_id: uuid.UUID) -> Subscription | None:
        return await self._session.get(Subscription, subscription_id)

    async def list_for_user(self, user_id: uuid.UUID) -> list[Subscription]:
        # Plan is eager-loaded (lazy="joined") so callers can read `plan.name`.
        stmt = (
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(desc(Subscription.created_at))
        )
        return list((await self._session.execute(stmt)).unique().scalars().all())

    async def set_status(self, subscription_id: uuid.UUID, status: SubscriptionStatus) -> None:
        sub = await self._session.get(Subscription, subscription_id, with_for_update=True)
        if sub is None:
            return
        sub.status = status

    async def count_active(self) -> int:
        stmt = (
            select(func.count())
            .select_from(Subscription)
            .where(Subscription.status == SubscriptionStatus.active)
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def plan_distribution(self) -> list[tuple[str, int]]:
        stmt = (
            select(Plan.name, func.count(Subscription.id))
            .join(Plan, Plan.id == Subscription.plan_id)
            .group_by(Plan.name)
            .order_by(Plan.name)
        )
        return [(name, count) for name, count in (await self._session.execute(stmt)).all()]
