"""
lexdesk.api.routers.payments

Plan catalogue and the caller's subscription.

Responsibilities:
- List plans and read one plan (any authenticated caller).
- Report the caller's current subscription.
- Cancel the current subscription (entitlement gate).
- List the caller's payment history, newest first.

Checkout and payment-provider webhooks are handled outside this service.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from lexdesk.api.deps import db_session
from lexdesk.auth.context import RequestContext
from lexdesk.auth.deps import auth_store, authorize, get_context
from lexdesk.auth.gates import select_current_subscription
from lexdesk.auth.jwt import utcnow
from lexdesk.auth.models import SubscriptionStatus
from lexdesk.auth.pipeline import entitlement
from lexdesk.auth.store import AuthStore
from lexdesk.db.base import parse_id
from lexdesk.db.repositories.activity import ActivityRepo
from lexdesk.db.repositories.payments import PaymentRepo
from lexdesk.db.repositories.plans import PlanRepo
from lexdesk.db.repositories.subscriptions import SubscriptionRepo

router = APIRouter(prefix="/v1/payments", tags=["payments"])


class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    price: float
    features: list[str]
    is_active: bool


class SubscriptionResponse(BaseModel):
    id: str
    plan_id: str
    plan_name: str
    status: SubscriptionStatus
    end_date: datetime | None


class CurrentSubscriptionResponse(BaseModel):
    subscription: SubscriptionResponse | None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    subscription_id: uuid.UUID | None
    amount: float
    currency: str
    status: str
    provider_reference: str | None
    created_at: datetime


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans(
    _: RequestContext = Depends(get_context),
    session: AsyncSession = Depends(db_session),
) -> list[PlanResponse]:
    plans = await PlanRepo(session).list_plans(only_active=True)
    return [PlanResponse.model_validate(p) for p in plans]


@router.get("/plans/{plan_id}", response_model=PlanResponse)
async def get_plan(
    plan_id: str,
    _: RequestContext = Depends(get_context),
    session: AsyncSession = Depends(db_session),
) -> PlanResponse:
    pid = parse_id(plan_id)
    plan = await PlanRepo(session).get(pid) if pid is not None else None
    if plan is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Plan not found")
    return PlanResponse.model_validate(plan)


@router.get("/subscription", response_model=CurrentSubscriptionResponse)
async def current_subscription(
    ctx: RequestContext = Depends(get_context),
    store: AuthStore = Depends(auth_store),
) -> CurrentSubscriptionResponse:
    # Same selection rule as the entitlement gate, without rejecting when there is none.
    records = await store.list_subscriptions(ctx.principal_id)
    selected = select_current_subscription(records, utcnow())
    if selected is None:
        return CurrentSubscriptionResponse(subscription=None)
    return CurrentSubscriptionResponse(
        subscription=SubscriptionResponse(
            id=selected.id,
            plan_id=selected.plan_id,
            plan_name=selected.plan_name,
            status=selected.status,
            end_date=selected.end_date,
        )
    )


@router.post("/cancel")
async def cancel_subscription(
    ctx: RequestContext = Depends(authorize(entitlement())),
    session: AsyncSession = Depends(db_session),
) -> dict[str, str]:
    if ctx.subscription is None:
        # Only reachable by admins, who pass the entitlement gate without one.
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="No active subscription")
    await SubscriptionRepo(session).set_status(
        uuid.UUID(ctx.subscription.id), SubscriptionStatus.canceled
    )
    await ActivityRepo(session).add(
        user_id=uuid.UUID(ctx.principal_id),
        actor=ctx.principal_id,
        action="SUBSCRIPTION_CANCELED",
        details={"subscription_id": ctx.subscription.id, "plan": ctx.subscription.plan_name},
    )
    await session.commit()
    return {"status": "canceled", "subscription_id": ctx.subscription.id}


@router.get("/history", response_model=list[PaymentResponse])
async def payment_history(
    ctx: RequestContext = Depends(get_context),
    session: AsyncSession = Depends(db_session),
) -> list[PaymentResponse]:
    payments = await PaymentRepo(session).list_for_user(uuid.UUID(ctx.principal_id))
    return [PaymentResponse.model_validate(p) for p in payments]
