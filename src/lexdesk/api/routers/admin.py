"""
lexdesk.api.routers.admin

Administration panel endpoints (role ADMIN).

Responsibilities:
- Service-wide stats, user listing/detail and activation toggling.
- Plan catalogue maintenance and the activity log.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

from lexdesk.api.deps import db_session
from lexdesk.api.routers.auth import UserResponse
from lexdesk.api.routers.payments import PlanResponse
from lexdesk.auth.context import RequestContext
from lexdesk.auth.deps import require_admin
from lexdesk.db.base import parse_id
from lexdesk.db.models import Client, Process, User
from lexdesk.db.repositories.activity import ActivityRepo
from lexdesk.db.repositories.owned import OwnedRepo
from lexdesk.db.repositories.plans import PlanRepo
from lexdesk.db.repositories.subscriptions import SubscriptionRepo
from lexdesk.db.repositories.users import UserRepo
from lexdesk.observability.logging import get_logger

log = get_logger(__name__)

# Router-level and handler-level `require_admin` are the same dependency object,
# so FastAPI runs the pipeline once per request.
router = APIRouter(
    prefix="/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


class UserStatusRequest(BaseModel):
    is_active: bool


class PlanUpsertRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    price: float = Field(ge=0)
    features: list[str] = Field(default_factory=list)
    is_active: bool = True


class SubscriptionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    plan_id: uuid.UUID
    status: str
    end_date: datetime | None
    created_at: datetime


class UserDetailResponse(BaseModel):
    user: UserResponse
    subscriptions: list[SubscriptionSummary]
    client_count: int
    process_count: int


class UserPageResponse(BaseModel):
    users: list[UserResponse]
    total: int
    page: int
    limit: int
    pages: int


async def _load_user(session: AsyncSession, user_id: str) -> User:
    uid = parse_id(user_id)
    user = await UserRepo(session).get(uid) if uid is not None else None
    if user is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/stats")
async def get_stats(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    subscriptions = SubscriptionRepo(session)
    return {
        "user_count": await UserRepo(session).count(),
        "active_subscription_count": await subscriptions.count_active(),
        "client_count": await OwnedRepo(session, Client).count_all(),
        "process_count": await OwnedRepo(session, Process).count_all(),
        "plan_stats": [
            {"plan_name": name, "count": count}
            for name, count in await subscriptions.plan_distribution()
        ],
    }


@router.get("/users", response_model=UserPageResponse)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200),
    session: AsyncSession = Depends(db_session),
) -> UserPageResponse:
    users, total = await UserRepo(session).search(
        search=search, offset=(page - 1) * limit, limit=limit
    )
    return UserPageResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit),
    )


@router.get("/users/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: str,
    session: AsyncSession = Depends(db_session),
) -> UserDetailResponse:
    user = await _load_user(session, user_id)
    subscriptions = await SubscriptionRepo(session).list_for_user(user.id)
    return UserDetailResponse(
        user=UserResponse.model_validate(user),
        subscriptions=[SubscriptionSummary.model_validate(s) for s in subscriptions],
        client_count=await OwnedRepo(session, Client).count_for_owner(user.id),
        process_count=await OwnedRepo(session, Process).count_for_owner(user.id),
    )


@router.put("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: str,
    body: UserStatusRequest,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> UserResponse:
    user = await _load_user(session, user_id)
    if str(user.id) == ctx.principal_id and not body.is_active:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own user"
        )
    user.is_active = body.is_active
    await ActivityRepo(session).add(
        user_id=user.id,
        actor=ctx.principal_id,
        action="USER_ACTIVATED" if body.is_active else "USER_DEACTIVATED",
    )
    await session.commit()
    log.info("user_status_changed", target_user_id=str(user.id), is_active=body.is_active)
    return UserResponse.model_validate(user)


@router.get("/plans", response_model=list[PlanResponse])
async def list_all_plans(session: AsyncSession = Depends(db_session)) -> list[PlanResponse]:
    plans = await PlanRepo(session).list_plans(only_active=False)
    return [PlanResponse.model_validate(p) for p in plans]


@router.post("/plans", response_model=PlanResponse)
async def upsert_plan(
    body: PlanUpsertRequest,
    ctx: RequestContext = Depends(require_admin),
    session: AsyncSession = Depends(db_session),
) -> PlanResponse:
    plan = await PlanRepo(session).upsert(**body.model_dump())
    await ActivityRepo(session).add(
        user_id=None,
        actor=ctx.principal_id,
        action="PLAN_UPSERTED",
        details={"plan": plan.name, "is_active": plan.is_active},
    )
    await session.commit()
    return PlanResponse.model_validate(plan)


@router.get("/logs")
async def list_activity(
    limit: int = Query(default=100, ge=1, le=500),
    user_id: str | None = Query(default=None),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    uid = None
    if user_id is not None:
        uid = parse_id(user_id)
        if uid is None:
            raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Invalid user_id")
    entries = await ActivityRepo(session).list_recent(user_id=uid, limit=limit)
    return [
        {
            "id": str(e.id),
            "user_id": str(e.user_id) if e.user_id else None,
            "actor": e.actor,
            "action": e.action,
            "details": e.details,
            "created_at": e.created_at.isoformat(),
        }
        for e in entries
    ]
