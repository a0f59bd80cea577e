"""
lexdesk.db.repositories.users

Repository for `User` accounts.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.auth.models import Role
from lexdesk.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        cpf: str,
        oab_number: str,
        oab_state: str,
        role: Role = Role.standard,
        is_verified: bool = False,
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            cpf=cpf,
            oab_number=oab_number,
            oab_state=oab_state,
            role=role,
            is_active=True,
            is_verified=is_verified,
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_cpf(self, cpf: str) -> User | None:
        stmt = select(User).where(User.cpf == cpf)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_oab_number(self, oab_number: str) -> User | None:
        stmt = select(User).where(User.oab_number == oab_number)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def search(
        self, *, search: str | None, offset: int, limit: int
    ) -> tuple[list[User], int]:
        where = []
        if search:
            pattern = f"%{search.lower()}%"
            where.append(
                or_(
                    func.lower(User.name).like(pattern),
                    func.lower(User.email).like(pattern),
                    func.lower(User.oab_number).like(pattern),
                )
            )
        total = (
            await self._session.execute(select(func.count()).select_from(User).where(*where))
        ).scalar_one()
        stmt = (
            select(User)
            .where(*where)
            .order_by(desc(User.created_at))
            .offset(offset)
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all()), total

    async def count(self) -> int:
        return (await self._session.execute(select(func.count()).select_from(User))).scalar_one()
