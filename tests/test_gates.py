"""
tests.test_gates

Individual gates against the in-memory store.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from lexdesk.auth import gates
from lexdesk.auth.errors import (
    Forbidden,
    PrincipalInactive,
    PrincipalNotFound,
    QuotaExceeded,
    SubscriptionRequired,
    UnknownResourceClass,
)
from lexdesk.auth.models import Claims, Principal, Role, SubscriptionStatus, TokenKind
from lexdesk.auth.quotas import _build, quota_for
from lexdesk.auth.registry import ResourceClass, ResourceRegistry

from .conftest import NOW, FakeAuthStore


def _principal(pid: str, role: Role = Role.standard) -> Principal:
    return Principal(id=pid, email=f"{pid}@example.com", role=role)


def _claims(pid: str) -> Claims:
    return Claims(
        principal_id=pid,
        kind=TokenKind.access,
        issued_at=NOW,
        expires_at=NOW + timedelta(hours=1),
        role=Role.admin,
    )


@pytest.mark.asyncio
async def test_resolve_principal_uses_stored_role(store: FakeAuthStore) -> None:
    store.add_principal("u1", role=Role.standard)
    principal = await gates.resolve_principal(_claims("u1"), store)
    assert principal.role is Role.standard


@pytest.mark.asyncio
async def test_resolve_principal_rejects_missing_and_inactive(store: FakeAuthStore) -> None:
    store.add_principal("gone", active=False)
    with pytest.raises(PrincipalNotFound):
        await gates.resolve_principal(_claims("nobody"), store)
    with pytest.raises(PrincipalInactive) as exc:
        await gates.resolve_principal(_claims("gone"), store)
    assert exc.value.message == "User not found or inactive"


def test_role_gate() -> None:
    gates.require_role(_principal("a1", Role.admin), Role.admin)
    with pytest.raises(Forbidden) as exc:
        gates.require_role(_principal("u1"), Role.admin)
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_ownership_owner_passes_foreign_and_missing_rejected(store: FakeAuthStore) -> None:
    store.own(ResourceClass.client, "c1", "u1")
    registry = store.resources

    await gates.require_ownership("client", "c1", _principal("u1"), registry=registry)
    with pytest.raises(Forbidden) as foreign:
        await gates.require_ownership("client", "c1", _principal("u2"), registry=registry)
    with pytest.raises(Forbidden) as missing:
        await gates.require_ownership("client", "c404", _principal("u2"), registry=registry)
    # Absent and foreign resources are indistinguishable to the caller.
    assert foreign.value.to_body() == missing.value.to_body()


@pytest.mark.asyncio
async def test_ownership_admin_override(store: FakeAuthStore) -> None:
    store.own(ResourceClass.client, "c1", "u1")
    admin = _principal("a1", Role.admin)
    await gates.require_ownership("client", "c1", admin, registry=store.resources)
    await gates.require_ownership("client", "c404", admin, registry=store.resources)
    await gates.require_ownership("client", None, admin, registry=store.resources)


@pytest.mark.asyncio
async def test_ownership_missing_id_rejects_standard_user(store: FakeAuthStore) -> None:
    with pytest.raises(Forbidden):
        await gates.require_ownership("client", None, _principal("u1"), registry=store.resources)
    assert store.lookups[ResourceClass.client].calls == []


@pytest.mark.asyncio
async def test_unknown_resource_class_is_a_defect_even_for_admins() -> None:
    registry = ResourceRegistry()
    for principal in (_principal("u1"), _principal("a1", Role.admin)):
        with pytest.raises(UnknownResourceClass):
            await gates.require_ownership("invoice", "x", principal, registry=registry)


def test_registry_rejects_duplicates(store: FakeAuthStore) -> None:
    with pytest.raises(ValueError):
        store.resources.register("client", store.lookups[ResourceClass.client])
    assert "client" in store.resources
    assert "invoice" not in store.resources


@pytest.mark.asyncio
async def test_entitlement_requires_current_active_subscription(store: FakeAuthStore) -> None:
    u1 = _principal("u1")
    store.add_subscription("u1", status=SubscriptionStatus.expired)
    store.add_subscription("u1", status=SubscriptionStatus.canceled)
    store.add_subscription("u1", end_date=NOW)  # ends exactly now: not current
    store.add_subscription(
        "u1", status=SubscriptionStatus.canceled, end_date=NOW + timedelta(days=5)
    )
    with pytest.raises(SubscriptionRequired) as exc:
        await gates.require_active_subscription(u1, store, now=NOW)
    assert exc.value.to_body()["requiresSubscription"] is True
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_entitlement_selects_most_recent_current(store: FakeAuthStore) -> None:
    store.add_subscription("u1", plan_name="Básico", created_at=NOW - timedelta(days=60))
    store.add_subscription(
        "u1",
        plan_name="Premium",
        created_at=NOW - timedelta(days=2),
        end_date=NOW + timedelta(days=28),
    )
    store.add_subscription(
        "u1", plan_name="Profissional", status=SubscriptionStatus.pending, created_at=NOW
    )
    snapshot = await gates.require_active_subscription(_principal("u1"), store, now=NOW)
    assert snapshot is not None
    assert snapshot.plan_name == "Premium"


@pytest.mark.asyncio
async def test_entitlement_tie_breaks_on_id(store: FakeAuthStore) -> None:
    created = NOW - timedelta(days=1)
    store.add_subscription("u1", plan_name="Premium", created_at=created, sub_id="b")
    store.add_subscription("u1", plan_name="Básico", created_at=created, sub_id="a")
    snapshot = await gates.require_active_subscription(_principal("u1"), store, now=NOW)
    assert snapshot is not None
    assert snapshot.id == "b"


@pytest.mark.asyncio
async def test_entitlement_admin_without_subscription(store: FakeAuthStore) -> None:
    snapshot = await gates.require_active_subscription(
        _principal("a1", Role.admin), store, now=NOW
    )
    assert snapshot is None


@pytest.mark.asyncio
async def test_quota_rejects_at_limit(store: FakeAuthStore) -> None:
    store.add_subscription("u1")
    snapshot = await gates.require_active_subscription(_principal("u1"), store, now=NOW)
    for i in range(10):
        store.own(ResourceClass.client, f"c{i}", "u1")

    with pytest.raises(QuotaExceeded) as exc:
        await gates.require_within_quota(
            "client", _principal("u1"), snapshot, registry=store.resources, creating=True
        )
    body = exc.value.to_body()
    assert body["currentCount"] == 10
    assert body["limit"] == 10
    assert body["requiresUpgrade"] is True
    assert body["error"] is True


@pytest.mark.asyncio
async def test_quota_passes_below_limit_and_for_non_creation(store: FakeAuthStore) -> None:
    store.add_subscription("u1")
    snapshot = await gates.require_active_subscription(_principal("u1"), store, now=NOW)
    for i in range(9):
        store.own(ResourceClass.client, f"c{i}", "u1")
    await gates.require_within_quota(
        "client", _principal("u1"), snapshot, registry=store.resources, creating=True
    )

    store.own(ResourceClass.client, "c9", "u1")
    await gates.require_within_quota(
        "client", _principal("u1"), snapshot, registry=store.resources, creating=False
    )


@pytest.mark.asyncio
async def test_quota_fails_closed_for_unlisted_plan(store: FakeAuthStore) -> None:
    store.add_subscription("u1", plan_name="Teste Gratuito")
    snapshot = await gates.require_active_subscription(_principal("u1"), store, now=NOW)
    with pytest.raises(QuotaExceeded) as exc:
        await gates.require_within_quota(
            "client", _principal("u1"), snapshot, registry=store.resources, creating=True
        )
    assert exc.value.limit == 0
    assert exc.value.current_count == 0


@pytest.mark.asyncio
async def test_quota_without_subscription_requires_one() -> None:
    store = FakeAuthStore()
    with pytest.raises(SubscriptionRequired):
        await gates.require_within_quota(
            "client", _principal("u1"), None, registry=store.resources, creating=True
        )


@pytest.mark.asyncio
async def test_quota_admin_bypass(store: FakeAuthStore) -> None:
    await gates.require_within_quota(
        "client", _principal("a1", Role.admin), None, registry=store.resources, creating=True
    )
    assert store.lookups[ResourceClass.client].calls == []


@pytest.mark.asyncio
async def test_gates_give_the_same_answer_when_repeated(store: FakeAuthStore) -> None:
    store.add_subscription("u1", plan_name="Básico")
    store.own(ResourceClass.client, "c1", "u1")
    for i in range(10):
        store.own(ResourceClass.process, f"p{i}", "u1")
    u1, u2 = _principal("u1"), _principal("u2")

    first = await gates.require_active_subscription(u1, store, now=NOW)
    second = await gates.require_active_subscription(u1, store, now=NOW)
    assert first == second

    for _ in range(2):
        gates.require_role(u1, Role.standard)
        with pytest.raises(Forbidden):
            gates.require_role(u1, Role.admin)
        await gates.require_ownership("client", "c1", u1, registry=store.resources)
        with pytest.raises(Forbidden):
            await gates.require_ownership("client", "c1", u2, registry=store.resources)
        await gates.require_within_quota(
            "process", u1, first, registry=store.resources, creating=True
        )
        with pytest.raises(SubscriptionRequired):
            await gates.require_active_subscription(u2, store, now=NOW)

def test_quota_table() -> None:
    assert quota_for("Básico", ResourceClass.client) == 10
    assert quota_for("Premium", ResourceClass.document) == 1000
    assert quota_for("Básico", ResourceClass.appointment) == 0
    assert quota_for("Enterprise", ResourceClass.client) == 0
    with pytest.raises(ValueError):
        _build({("Básico", "client"): -1})
