"""
lexdesk.db.auth_store

SQLAlchemy implementation of the `AuthStore` the authorization pipeline reads.

Responsibilities:
- Map ORM rows into the auth layer's records (string ids, tz-aware datetimes).
- Register one ownership lookup per owned table in a `ResourceRegistry`.
- Translate driver/ORM failures into `StorageUnavailable`.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.auth.errors import StorageUnavailable
from lexdesk.auth.models import PrincipalRecord, SubscriptionRecord
from lexdesk.auth.registry import ResourceClass, ResourceRegistry
from lexdesk.db.base import parse_id
from lexdesk.db.models import Appointment, Client, Document, Process
from lexdesk.db.repositories.owned import OwnedRepo
from lexdesk.db.repositories.subscriptions import SubscriptionRepo
from lexdesk.db.repositories.users import UserRepo
from lexdesk.observability.logging import get_logger

log = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

OWNED_TABLES = {
    ResourceClass.client: Client,
    ResourceClass.process: Process,
    ResourceClass.document: Document,
    ResourceClass.appointment: Appointment,
}


def _guarded(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await fn(*args, **kwargs)
        except SQLAlchemyError as e:
            log.error("auth_store_failure", operation=fn.__qualname__, error=type(e).__name__)
            raise StorageUnavailable(str(e)) from e

    return wrapper


def _aware(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class OwnedLookup:
    """
    `ResourceLookup` over one owned table.
    """

    def __init__(self, repo: OwnedRepo) -> None:
        self._repo = repo

    @_guarded
    async def owner_of(self, resource_id: str) -> str | None:
        owner = await self._repo.owner_of(resource_id)
        return str(owner) if owner is not None else None

    @_guarded
    async def count_owned_by(self, principal_id: str) -> int:
        owner = parse_id(principal_id)
        if owner is None:
            return 0
        return await self._repo.count_for_owner(owner)


def build_registry(session: AsyncSession) -> ResourceRegistry:
    registry = ResourceRegistry()
    for resource_class, model in OWNED_TABLES.items():
        registry.register(resource_class, OwnedLookup(OwnedRepo(session, model)))
    return registry


class SqlAuthStore:
    def __init__(self, session: AsyncSession) -> None:
        self._users = UserRepo(session)
        self._subscriptions = SubscriptionRepo(session)
        self.resources = build_registry(session)

    @_guarded
    async def get_principal(self, principal_id: str) -> PrincipalRecord | None:
        uid = parse_id(principal_id)
        if uid is None:
            return None
        user = await self._users.get(uid)
        if user is None:
            return None
        return PrincipalRecord(
            id=str(user.id), email=user.email, role=user.role, active=user.is_active
        )

    @_guarded
    async def list_subscriptions(self, principal_id: str) -> list[SubscriptionRecord]:
        uid = parse_id(principal_id)
        if uid is None:
            return []
        return [
            SubscriptionRecord(
                id=str(sub.id),
                principal_id=str(sub.user_id),
                plan_id=str(sub.plan_id),
                plan_name=sub.plan.name,
                status=sub.status,
                end_date=_aware(sub.end_date),
                created_at=_aware(sub.created_at),
            )
            for sub in await self._subscriptions.list_for_user(uid)
        ]


# --- Module Notes -----------------------------------------------------------
# Adding an owned resource class means adding its table to OWNED_TABLES and a
# member to `auth.registry.ResourceClass`; no gate changes.
