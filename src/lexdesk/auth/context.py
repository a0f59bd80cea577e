"""
lexdesk.auth.context

Per-request authorization context.

Responsibilities:
- Carry the resolved principal and, once the entitlement gate ran, the subscription
  snapshot to the route handler.
- Stay immutable: every gate returns a new value instead of mutating the one it got.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from lexdesk.auth.models import Principal, SubscriptionSnapshot


@dataclass(frozen=True, slots=True)
class RequestContext:
    principal: Principal
    subscription: SubscriptionSnapshot | None = None
    # Names of the gates that passed, in order.
    passed: tuple[str, ...] = ()

    def with_subscription(self, subscription: SubscriptionSnapshot | None) -> RequestContext:
        return replace(self, subscription=subscription)

    def mark(self, gate: str) -> RequestContext:
        return replace(self, passed=(*self.passed, gate))

    @property
    def principal_id(self) -> str:
        return self.principal.id
