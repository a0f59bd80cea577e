"""
lexdesk.db.models

Persistence schema for the practice-management service.

Responsibilities:
- Accounts and billing: User, Plan, Subscription.
- Owned practice records: Client, Process, Document, Appointment (each carries `user_id`).
- Deadline (belongs to a Process) and Payment (billing history, read-only here).
- ActivityLog: append-only trail of account and admin actions.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lexdesk.auth.models import Role, SubscriptionStatus
from lexdesk.db.base import Base, utcnow_naive


def _pk() -> Mapped[uuid.UUID]:
    return mapped_column(SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


def _owner_fk() -> Mapped[uuid.UUID]:
    return mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = _pk()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    cpf: Mapped[str] = mapped_column(String(14), nullable=False, unique=True)
    oab_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    oab_state: Mapped[str] = mapped_column(String(2), nullable=False)

    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False, default=Role.standard)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, default=utcnow_naive, onupdate=utcnow_naive
    )


class Plan(Base):
    __tablename__ = "plans"

    id: Mapped[uuid.UUID] = _pk()
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, default=utcnow_naive, onupdate=utcnow_naive
    )


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _owner_fk()
    plan_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("plans.id"), nullable=False, index=True
    )
    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus), nullable=False, index=True
    )
    start_date: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)
    end_date: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, default=utcnow_naive, onupdate=utcnow_naive
    )

    plan: Mapped[Plan] = relationship(lazy="joined", innerjoin=True)

    __table_args__ = (Index("ix_subscriptions_user_status", "user_id", "status"),)


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _owner_fk()
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    cpf: Mapped[str] = mapped_column(String(14), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, default=utcnow_naive, onupdate=utcnow_naive
    )

    __table_args__ = (UniqueConstraint("user_id", "cpf", name="uq_clients_user_cpf"),)


class Process(Base):
    __tablename__ = "processes"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _owner_fk()
    client_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )
    number: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    court: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="ACTIVE")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, default=utcnow_naive, onupdate=utcnow_naive
    )

    deadlines: Mapped[list[Deadline]] = relationship(
        lazy="selectin",
        order_by="Deadline.due_date",
        cascade="all, delete-orphan",
    )


class Deadline(Base):
    __tablename__ = "deadlines"

    id: Mapped[uuid.UUID] = _pk()
    process_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("processes.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime] = mapped_column(nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="MEDIUM")
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _owner_fk()
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("clients.id"), nullable=True, index=True
    )
    process_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("processes.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    doc_type: Mapped[str] = mapped_column(String(64), nullable=False, default="OTHER")
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(nullable=False, default=0)
    content_type: Mapped[str] = mapped_column(
        String(128), nullable=False, default="application/pdf"
    )
    # File name under `Settings.upload_dir`; None for metadata-only records.
    storage_key: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _owner_fk()
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("clients.id"), nullable=True, index=True
    )
    process_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("processes.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    starts_at: Mapped[datetime] = mapped_column(nullable=False)
    ends_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, default=utcnow_naive, onupdate=utcnow_naive
    )

    __table_args__ = (Index("ix_appointments_user_starts", "user_id", "starts_at"),)


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _owner_fk()
    subscription_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("subscriptions.id"), nullable=True, index=True
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="BRL")
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    # Identifier assigned by the payment provider; written by the billing integration.
    provider_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive)


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), nullable=True, index=True
    )
    actor: Mapped[str] = mapped_column(String(256), nullable=False)
    action: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow_naive, index=True)


# --- Module Notes -----------------------------------------------------------
# `ActivityLog.user_id` is the account the action was about, `actor` the account
# (or "system") that performed it.
