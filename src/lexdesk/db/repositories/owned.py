"""
lexdesk.db.repositories.owned

Generic repository for records owned by a single account
(`Client`, `Process`, `Document`, `Appointment`), plus the client and
process specializations (dependent deletes, deadlines).

Responsibilities:
- Owner-scoped listing and counting.
- Id lookups for handlers that already passed the ownership gate.
"""

from __future__ import annotations

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.db.base import parse_id
from lexdesk.db.models import Appointment, Client, Deadline, Document, Process

T = TypeVar("T", Client, Process, Document, Appointment)


class OwnedRepo(Generic[T]):
    def __init__(self, session: AsyncSession, model: type[T]) -> None:
        self._session = session
        self._model = model

    async def get(self, resource_id: str | uuid.UUID) -> T | None:
        rid = parse_id(resource_id)
        if rid is None:
            return None
        return await self._session.get(self._model, rid)

    async def get_owned(self, resource_id: str | uuid.UUID, owner_id: uuid.UUID) -> T | None:
        row = await self.get(resource_id)
        if row is None or row.user_id != owner_id:
            return None
        return row

    async def list_for_owner(
        self, owner_id: uuid.UUID, *, order_by: Any = None, **filters: Any
    ) -> list[T]:
        # `filters` are column equality checks; None values are ignored.
        stmt = select(self._model).where(self._model.user_id == owner_id)
        for column, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(self._model, column) == value)
        stmt = stmt.order_by(order_by if order_by is not None else self._model.created_at)
        return list((await self._session.execute(stmt)).scalars().all())

    async def count_for_owner(self, owner_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(self._model)
            .where(self._model.user_id == owner_id)
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def count_all(self) -> int:
        stmt = select(func.count()).select_from(self._model)
        return (await self._session.execute(stmt)).scalar_one()

    async def owner_of(self, resource_id: str | uuid.UUID) -> uuid.UUID | None:
        rid = parse_id(resource_id)
        if rid is None:
            return None
        stmt = select(self._model.user_id).where(self._model.id == rid)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add(self, **fields: Any) -> T:
        row = self._model(**fields)
        self._session.add(row)
        await self._session.flush()
        return row

    async def update(self, row: T, **fields: Any) -> T:
        # Callers pass only the fields the client sent; None clears a nullable column.
        for key, value in fields.items():
            setattr(row, key, value)
        await self._session.flush()
        return row

    async def delete(self, row: T) -> None:
        await self._session.delete(row)
        await self._session.flush()


class ClientRepo(OwnedRepo[Client]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Client)

    async def get_by_cpf(self, owner_id: uuid.UUID, cpf: str) -> Client | None:
        stmt = select(Client).where(Client.user_id == owner_id, Client.cpf == cpf)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def count_processes(self, client_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Process).where(Process.client_id == client_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def delete_with_dependents(self, client: Client) -> None:
        # Documents and appointments go with the client; processes block deletion upstream.
        await self._session.execute(delete(Document).where(Document.client_id == client.id))
        await self._session.execute(
            delete(Appointment).where(Appointment.client_id == client.id)
        )
        await self.delete(client)


class ProcessRepo(OwnedRepo[Process]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Process)

    async def add_deadline(self, process: Process, **fields: Any) -> Deadline:
        deadline = Deadline(**fields)
        process.deadlines.append(deadline)
        await self._session.flush()
        return deadline

    async def get_deadline(
        self, process_id: uuid.UUID, deadline_id: str | uuid.UUID
    ) -> Deadline | None:
        did = parse_id(deadline_id)
        if did is None:
            return None
        stmt = select(Deadline).where(Deadline.id == did, Deadline.process_id == process_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()
