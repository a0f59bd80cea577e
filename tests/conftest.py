"""
tests.conftest

Shared fixtures.

Responsibilities:
- An in-memory `AuthStore` fake that records every read, for gate/pipeline tests.
- A booted app + httpx client on a throwaway SQLite file for API tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from lexdesk.api.app import create_app
from lexdesk.auth.jwt import JwtConfig, issue_token
from lexdesk.auth.models import (
    PrincipalRecord,
    Role,
    SubscriptionRecord,
    SubscriptionStatus,
    TokenKind,
)
from lexdesk.auth.registry import ResourceClass, ResourceRegistry
from lexdesk.settings import Settings

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeLookup:
    owners: dict[str, str] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def owner_of(self, resource_id: str) -> str | None:
        self.calls.append(("owner_of", resource_id))
        return self.owners.get(resource_id)

    async def count_owned_by(self, principal_id: str) -> int:
        self.calls.append(("count_owned_by", principal_id))
        return sum(1 for owner in self.owners.values() if owner == principal_id)


class FakeAuthStore:
    def __init__(self) -> None:
        self.principals: dict[str, PrincipalRecord] = {}
        self.subscriptions: list[SubscriptionRecord] = []
        self.lookups = {rc: FakeLookup() for rc in ResourceClass}
        self.resources = ResourceRegistry(self.lookups)
        self.calls: list[str] = []

    def add_principal(
        self, principal_id: str, *, role: Role = Role.standard, active: bool = True
    ) -> PrincipalRecord:
        record = PrincipalRecord(
            id=principal_id, email=f"{principal_id}@example.com", role=role, active=active
        )
        self.principals[principal_id] = record
        return record

    def add_subscription(
        self,
        principal_id: str,
        *,
        plan_name: str = "Básico",
        status: SubscriptionStatus = SubscriptionStatus.active,
        end_date: datetime | None = None,
        created_at: datetime = NOW - timedelta(days=30),
        sub_id: str | None = None,
    ) -> SubscriptionRecord:
        record = SubscriptionRecord(
            id=sub_id or f"sub-{len(self.subscriptions) + 1}",
            principal_id=principal_id,
            plan_id=f"plan-{plan_name}",
            plan_name=plan_name,
            status=status,
            end_date=end_date,
            created_at=created_at,
        )
        self.subscriptions.append(record)
        return record

    def own(self, resource_class: ResourceClass, resource_id: str, owner_id: str) -> None:
        self.lookups[resource_class].owners[resource_id] = owner_id

    async def get_principal(self, principal_id: str) -> PrincipalRecord | None:
        self.calls.append("get_principal")
        return self.principals.get(principal_id)

    async def list_subscriptions(self, principal_id: str) -> list[SubscriptionRecord]:
        self.calls.append("list_subscriptions")
        return [s for s in self.subscriptions if s.principal_id == principal_id]


@pytest.fixture
def store() -> FakeAuthStore:
    return FakeAuthStore()


@pytest.fixture
def jwt_cfg() -> JwtConfig:
    return JwtConfig(alg="HS256", issuer="lexdesk", audience="lexdesk-api", secret="test-secret")


@pytest.fixture
def bearer(jwt_cfg: JwtConfig):
    def _make(subject: str, *, issued: datetime = NOW - timedelta(minutes=5)) -> str:
        token = issue_token(
            cfg=jwt_cfg,
            subject=subject,
            kind=TokenKind.access,
            ttl=timedelta(hours=1),
            role=Role.standard,
            now=issued,
        )
        return f"Bearer {token}"

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'lexdesk.db'}",
        jwt_secret="api-test-secret",
        bcrypt_rounds=4,
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not drive the lifespan; run it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
