"""
tests.test_pipeline

Gate chain composition: ordering, short-circuiting and the context it produces.
"""

from __future__ import annotations

import dataclasses
from datetime import timedelta
from typing import ClassVar

import pytest

from lexdesk.auth.context import RequestContext
from lexdesk.auth.errors import (
    Expired,
    Forbidden,
    MalformedHeader,
    PrincipalNotFound,
    QuotaExceeded,
    SubscriptionRequired,
)
from lexdesk.auth.jwt import JwtConfig
from lexdesk.auth.models import Principal, Role, SubscriptionStatus
from lexdesk.auth.pipeline import (
    RouteInput,
    entitlement,
    ownership,
    quota,
    role,
    run_pipeline,
)
from lexdesk.auth.registry import ResourceClass

from .conftest import NOW, FakeAuthStore


@dataclasses.dataclass(frozen=True)
class RecordingStep:
    name: ClassVar[str] = "recording"
    seen: list[RequestContext]

    async def __call__(self, ctx, route, store):
        self.seen.append(ctx)
        return ctx


def _route(header: str | None, *, method: str = "GET", **params: str) -> RouteInput:
    return RouteInput(authorization=header, method=method, path_params=params, received_at=NOW)


@pytest.mark.asyncio
async def test_happy_path_marks_each_gate(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_principal("u1")
    store.add_subscription("u1")
    store.own(ResourceClass.client, "c1", "u1")

    ctx = await run_pipeline(
        _route(bearer("u1"), id="c1"),
        cfg=jwt_cfg,
        store=store,
        steps=(entitlement(), ownership(ResourceClass.client)),
    )
    assert ctx.principal_id == "u1"
    assert ctx.passed == ("entitlement", "ownership")
    assert ctx.subscription is not None
    assert ctx.subscription.plan_name == "Básico"


@pytest.mark.asyncio
async def test_rejection_short_circuits_later_steps(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_principal("u1")
    seen: list[RequestContext] = []

    with pytest.raises(SubscriptionRequired):
        await run_pipeline(
            _route(bearer("u1")),
            cfg=jwt_cfg,
            store=store,
            steps=(entitlement(), RecordingStep(seen)),
        )
    assert seen == []


@pytest.mark.asyncio
async def test_bad_header_never_touches_the_store(
    store: FakeAuthStore, jwt_cfg: JwtConfig
) -> None:
    with pytest.raises(MalformedHeader):
        await run_pipeline(_route(None), cfg=jwt_cfg, store=store, steps=(entitlement(),))
    assert store.calls == []


@pytest.mark.asyncio
async def test_unknown_principal_short_circuits_all_steps(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_subscription("ghost")
    store.own(ResourceClass.client, "c1", "ghost")
    with pytest.raises(PrincipalNotFound):
        await run_pipeline(
            _route(bearer("ghost"), method="POST", id="c1"),
            cfg=jwt_cfg,
            store=store,
            steps=(
                entitlement(),
                ownership(ResourceClass.client),
                quota(ResourceClass.client),
            ),
        )
    assert store.calls == ["get_principal"]
    assert all(lookup.calls == [] for lookup in store.lookups.values())

@pytest.mark.asyncio
async def test_expired_token_rejected_before_principal_lookup(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_principal("u1")
    header = bearer("u1", issued=NOW - timedelta(hours=2))
    with pytest.raises(Expired):
        await run_pipeline(_route(header), cfg=jwt_cfg, store=store)
    assert store.calls == []


@pytest.mark.asyncio
async def test_role_gate_precedes_entitlement(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_principal("u1")
    store.add_subscription("u1")
    with pytest.raises(Forbidden):
        await run_pipeline(
            _route(bearer("u1")),
            cfg=jwt_cfg,
            store=store,
            steps=(role(Role.admin), entitlement()),
        )
    assert store.calls == ["get_principal"]


@pytest.mark.asyncio
async def test_quota_only_applies_to_creation(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_principal("u1")
    store.add_subscription("u1", plan_name="Básico")
    for i in range(10):
        store.own(ResourceClass.client, f"c{i}", "u1")
    steps = (entitlement(), quota(ResourceClass.client))

    ctx = await run_pipeline(_route(bearer("u1")), cfg=jwt_cfg, store=store, steps=steps)
    assert ctx.passed == ("entitlement", "quota")
    with pytest.raises(QuotaExceeded) as exc:
        await run_pipeline(
            _route(bearer("u1"), method="POST"), cfg=jwt_cfg, store=store, steps=steps
        )
    assert exc.value.to_body()["requiresUpgrade"] is True


@pytest.mark.asyncio
async def test_admin_passes_every_gate_without_subscription(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_principal("a1", role=Role.admin)
    store.own(ResourceClass.client, "c1", "u1")
    ctx = await run_pipeline(
        _route(bearer("a1"), method="POST", id="c1"),
        cfg=jwt_cfg,
        store=store,
        steps=(role(Role.admin), entitlement(), ownership("client"), quota("client")),
    )
    assert ctx.subscription is None
    assert ctx.passed == ("role", "entitlement", "ownership", "quota")


@pytest.mark.asyncio
async def test_expired_subscription_status_is_not_entitled(
    store: FakeAuthStore, jwt_cfg: JwtConfig, bearer
) -> None:
    store.add_principal("u1")
    store.add_subscription("u1", status=SubscriptionStatus.expired)
    with pytest.raises(SubscriptionRequired):
        await run_pipeline(
            _route(bearer("u1")), cfg=jwt_cfg, store=store, steps=(entitlement(),)
        )


def test_context_is_immutable(store: FakeAuthStore) -> None:
    record = store.add_principal("u1")
    ctx = RequestContext(principal=Principal(id=record.id, email=record.email, role=record.role))
    marked = ctx.mark("entitlement")
    assert ctx.passed == ()
    assert marked.passed == ("entitlement",)
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.subscription = None  # type: ignore[misc]
