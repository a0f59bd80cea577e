"""
lexdesk.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Liveness probe (`/healthz`).
- Readiness probe (`/readyz`): DB reachable and plan catalogue present.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.api.deps import db_session
from lexdesk.db.models import Plan

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    # Without plans every entitlement-gated route would reject; report it, don't fail.
    plans = (await session.execute(select(func.count()).select_from(Plan))).scalar_one()
    return {"status": "ready", "plans": plans}
