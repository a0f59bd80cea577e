from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.db.models import Plan


class PlanRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, plan_id: uuid.UUID) -> Plan | None:
        return await self._session.get(Plan, plan_id)

    async def get_by_name(self, name: str) -> Plan | None:
        stmt = select(Plan).where(Plan.name == name)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_plans(self, *, only_active: bool = True) -> list[Plan]:
        stmt = select(Plan).order_by(Plan.price)
        if only_active:
            stmt = stmt.where(Plan.is_active.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def upsert(
        self,
        *,
        name: str,
        description: str,
        price: float,
        features: list[str],
        is_active: bool = True,
    ) -> Plan:
        existing = await self.get_by_name(name)
        if existing is not None:
            existing.description = description
            existing.price = price
            existing.features = list(features)
            existing.is_active = is_active
            await self._session.flush()
            return existing

        plan = Plan(
            name=name,
            description=description,
            price=price,
            features=list(features),
            is_active=is_active,
        )
        self._session.add(plan)
        await self._session.flush()
        return plan
