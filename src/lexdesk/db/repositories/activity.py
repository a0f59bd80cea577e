"""
lexdesk.db.repositories.activity

Repository for `ActivityLog` entries.

Responsibilities:
- Append activity entries (account changes, admin actions).
- Query the trail newest-first for the admin panel.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.db.models import ActivityLog


class ActivityRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        user_id: uuid.UUID | None,
        actor: str,
        action: str,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        # Append-only in normal operation.
        entry = ActivityLog(user_id=user_id, actor=actor, action=action, details=details or {})
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def list_recent(
        self, *, user_id: uuid.UUID | None = None, limit: int = 200
    ) -> list[ActivityLog]:
        stmt = select(ActivityLog).order_by(desc(ActivityLog.created_at)).limit(limit)
        if user_id is not None:
            stmt = stmt.where(ActivityLog.user_id == user_id)
        return list((await self._session.execute(stmt)).scalars().all())
