"""
lexdesk.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) and the decoded `Claims`.
- Define the storage-facing records the gates read (`PrincipalRecord`, `SubscriptionRecord`).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class Role(enum.StrEnum):
    standard = "STANDARD"
    admin = "ADMIN"


class TokenKind(enum.StrEnum):
    access = "access"
    refresh = "refresh"


class SubscriptionStatus(enum.StrEnum):
    # Stored in DB; treat as stable API contract.
    active = "ACTIVE"
    pending = "PENDING"
    canceled = "CANCELED"
    expired = "EXPIRED"


@dataclass(frozen=True, slots=True)
class Claims:
    principal_id: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    # Advisory only; the resolver re-reads the role from storage.
    role: Role | None = None


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, as loaded from storage for this request.
    """

    id: str
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin


@dataclass(frozen=True, slots=True)
class PrincipalRecord:
    id: str
    email: str
    role: Role
    active: bool


@dataclass(frozen=True, slots=True)
class SubscriptionRecord:
    id: str
    principal_id: str
    plan_id: str
    plan_name: str
    status: SubscriptionStatus
    end_date: datetime | None
    created_at: datetime

    def is_current(self, now: datetime) -> bool:
        if self.status is not SubscriptionStatus.active:
            return False
        return self.end_date is None or self.end_date > now


@dataclass(frozen=True, slots=True)
class SubscriptionSnapshot:
    id: str
    plan_id: str
    plan_name: str
    status: SubscriptionStatus
    end_date: datetime | None

    @classmethod
    def of(cls, record: SubscriptionRecord) -> SubscriptionSnapshot:
        return cls(
            id=record.id,
            plan_id=record.plan_id,
            plan_name=record.plan_name,
            status=record.status,
            end_date=record.end_date,
        )


# --- Module Notes -----------------------------------------------------------
# All datetimes crossing this module are timezone-aware UTC; the SQL store
# normalizes naive DB values before building records.
