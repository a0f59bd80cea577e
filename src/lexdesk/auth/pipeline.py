"""
lexdesk.auth.pipeline

Composition of the authorization gates into a per-request chain.

Responsibilities:
- Define the gate steps a route can declare (role, ownership, entitlement, quota).
- Run token decoding, principal resolution and the declared steps in order,
  threading an immutable `RequestContext` through them.
- Log each rejection once, at the gate that produced it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Protocol

import structlog

from lexdesk.auth import gates
from lexdesk.auth.context import RequestContext
from lexdesk.auth.errors import AuthError, UnknownResourceClass
from lexdesk.auth.jwt import JwtConfig, decode_authorization, utcnow
from lexdesk.auth.models import Role
from lexdesk.auth.store import AuthStore
from lexdesk.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RouteInput:
    """
    What the pipeline needs from the HTTP request, and nothing else.
    """

    authorization: str | None
    method: str = "GET"
    path_params: Mapping[str, str] = field(default_factory=dict)
    received_at: datetime = field(default_factory=utcnow)

    @property
    def is_creation(self) -> bool:
        return self.method.upper() == "POST"


class GateStep(Protocol):
    name: ClassVar[str]

    async def __call__(
        self, ctx: RequestContext, route: RouteInput, store: AuthStore
    ) -> RequestContext: ...


@dataclass(frozen=True, slots=True)
class RoleStep:
    name: ClassVar[str] = "role"
    required: Role

    async def __call__(
        self, ctx: RequestContext, route: RouteInput, store: AuthStore
    ) -> RequestContext:
        gates.require_role(ctx.principal, self.required)
        return ctx


@dataclass(frozen=True, slots=True)
class OwnershipStep:
    name: ClassVar[str] = "ownership"
    resource_class: str
    param: str = "id"

    async def __call__(
        self, ctx: RequestContext, route: RouteInput, store: AuthStore
    ) -> RequestContext:
        await gates.require_ownership(
            self.resource_class,
            route.path_params.get(self.param),
            ctx.principal,
            registry=store.resources,
        )
        return ctx


@dataclass(frozen=True, slots=True)
class EntitlementStep:
    name: ClassVar[str] = "entitlement"

    async def __call__(
        self, ctx: RequestContext, route: RouteInput, store: AuthStore
    ) -> RequestContext:
        snapshot = await gates.require_active_subscription(
            ctx.principal, store, now=route.received_at
        )
        return ctx.with_subscription(snapshot)


@dataclass(frozen=True, slots=True)
class QuotaStep:
    name: ClassVar[str] = "quota"
    resource_class: str

    async def __call__(
        self, ctx: RequestContext, route: RouteInput, store: AuthStore
    ) -> RequestContext:
        await gates.require_within_quota(
            self.resource_class,
            ctx.principal,
            ctx.subscription,
            registry=store.resources,
            creating=route.is_creation,
        )
        return ctx


def role(required: Role = Role.admin) -> RoleStep:
    return RoleStep(required=required)


def ownership(resource_class: str, *, param: str = "id") -> OwnershipStep:
    return OwnershipStep(resource_class=resource_class, param=param)


def entitlement() -> EntitlementStep:
    return EntitlementStep()


def quota(resource_class: str) -> QuotaStep:
    return QuotaStep(resource_class=resource_class)


async def run_pipeline(
    route: RouteInput,
    *,
    cfg: JwtConfig,
    store: AuthStore,
    steps: Sequence[GateStep] = (),
    scheme: str = "Bearer",
) -> RequestContext:
    stage = "token"
    try:
        claims = decode_authorization(
            cfg=cfg, header=route.authorization, scheme=scheme, now=route.received_at
        )
        stage = "principal"
        principal = await gates.resolve_principal(claims, store)
        structlog.contextvars.bind_contextvars(principal_id=principal.id)

        ctx = RequestContext(principal=principal)
        for step in steps:
            stage = step.name
            ctx = (await step(ctx, route, store)).mark(step.name)
    except UnknownResourceClass as e:
        log.error("unknown_resource_class", gate=stage, resource_class=e.resource_class)
        raise
    except AuthError as e:
        log.info("gate_rejected", gate=stage, kind=e.kind, status_code=e.status_code)
        raise
    return ctx


# --- Module Notes -----------------------------------------------------------
# Steps run strictly in declaration order; routes declare entitlement before quota
# because the quota step reads the subscription snapshot entitlement attaches.
