"""
lexdesk.auth.store

Storage interface consumed by the authorization pipeline.

Responsibilities:
- Describe the reads the gates need, independent of SQLAlchemy.
"""

from __future__ import annotations

from typing import Protocol

from lexdesk.auth.models import PrincipalRecord, SubscriptionRecord
from lexdesk.auth.registry import ResourceRegistry


class AuthStore(Protocol):
    resources: ResourceRegistry

    async def get_principal(self, principal_id: str) -> PrincipalRecord | None: ...

    async def list_subscriptions(self, principal_id: str) -> list[SubscriptionRecord]: ...


# --- Module Notes -----------------------------------------------------------
# Implementations raise `StorageUnavailable` when the backing store fails; the
# SQLAlchemy implementation lives in `lexdesk.db.auth_store`.
