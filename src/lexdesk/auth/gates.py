"""
lexdesk.auth.gates

The individual authorization gates.

Responsibilities:
- Resolve the live principal behind decoded claims.
- Role, resource-ownership, entitlement and plan-limit checks.

Every gate is a read: it either returns (possibly with a value to attach to the
request context) or raises an `AuthError`. Admins bypass every gate except the
role gate, which is what grants admin-only routes in the first place.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from lexdesk.auth.errors import (
    Forbidden,
    PrincipalInactive,
    PrincipalNotFound,
    QuotaExceeded,
    SubscriptionRequired,
)
from lexdesk.auth.models import (
    Claims,
    Principal,
    Role,
    SubscriptionRecord,
    SubscriptionSnapshot,
)
from lexdesk.auth.quotas import quota_for
from lexdesk.auth.registry import ResourceRegistry
from lexdesk.auth.store import AuthStore
from lexdesk.observability.logging import get_logger

log = get_logger(__name__)

# Absent and foreign resources share one message so callers cannot probe for ids.
RESOURCE_ACCESS_DENIED = "Access denied to this resource"


async def resolve_principal(claims: Claims, store: AuthStore) -> Principal:
    # The role in the token is ignored; a downgrade applies on the very next request.
    record = await store.get_principal(claims.principal_id)
    if record is None:
        raise PrincipalNotFound()
    if not record.active:
        raise PrincipalInactive()
    return Principal(id=record.id, email=record.email, role=record.role)


def require_role(principal: Principal, required: Role) -> None:
    if principal.role is not required:
        if required is Role.admin:
            raise Forbidden("Access denied. Administrator permission required")
        raise Forbidden()


async def require_ownership(
    resource_class: str,
    resource_id: str | None,
    principal: Principal,
    *,
    registry: ResourceRegistry,
) -> None:
    lookup = registry.lookup(resource_class)
    if not resource_id:
        if principal.is_admin:
            return
        raise Forbidden(RESOURCE_ACCESS_DENIED)

    owner_id = await lookup.owner_of(resource_id)
    if principal.is_admin:
        if owner_id is not None and owner_id != principal.id:
            log.warning(
                "privileged_override",
                gate="ownership",
                resource_class=str(resource_class),
                resource_id=resource_id,
                owner_id=owner_id,
            )
        return
    if owner_id is None or owner_id != principal.id:
        raise Forbidden(RESOURCE_ACCESS_DENIED)


def select_current_subscription(
    records: Iterable[SubscriptionRecord], now: datetime
) -> SubscriptionRecord | None:
    """
    Most recently created current subscription; ties break on the larger id so the
    choice never depends on storage row order.
    """

    current = [r for r in records if r.is_current(now)]
    if not current:
        return None
    return max(current, key=lambda r: (r.created_at, r.id))


async def require_active_subscription(
    principal: Principal,
    store: AuthStore,
    *,
    now: datetime,
) -> SubscriptionSnapshot | None:
    records = await store.list_subscriptions(principal.id)
    selected = select_current_subscription(records, now)
    if selected is not None:
        return SubscriptionSnapshot.of(selected)
    if principal.is_admin:
        log.info("privileged_override", gate="entitlement")
        return None
    raise SubscriptionRequired()


async def require_within_quota(
    resource_class: str,
    principal: Principal,
    subscription: SubscriptionSnapshot | None,
    *,
    registry: ResourceRegistry,
    creating: bool,
) -> None:
    if not creating or principal.is_admin:
        return
    lookup = registry.lookup(resource_class)
    if subscription is None:
        raise SubscriptionRequired("An active subscription is required to create this resource")

    limit = quota_for(subscription.plan_name, resource_class)
    current_count = await lookup.count_owned_by(principal.id)
    if current_count >= limit:
        raise QuotaExceeded(
            resource_class=str(resource_class), current_count=current_count, limit=limit
        )


# --- Module Notes -----------------------------------------------------------
# `require_within_quota` is count-then-compare and therefore racy under
# concurrent creates; it is a soft limit, not a billing guarantee.
