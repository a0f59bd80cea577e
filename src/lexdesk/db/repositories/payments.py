"""
lexdesk.db.repositories.payments

Repository for `Payment` history rows.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.db.models import Payment


class PaymentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self, *, user_id: uuid.UUID, amount: float, status: str, **fields: Any
    ) -> Payment:
        payment = Payment(user_id=user_id, amount=amount, status=status, **fields)
        self._session.add(payment)
        await self._session.flush()
        return payment

    async def list_for_user(self, user_id: uuid.UUID) -> list[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(desc(Payment.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())
