"""
lexdesk.db.init_db

DB initialization helpers (dev/test convenience).

Responsibilities:
- Create tables for local development and tests.
- Seed the default plan catalogue so entitlement and quota gates have data.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lexdesk.db import models  # noqa: F401  # registers tables on Base.metadata
from lexdesk.db.base import Base
from lexdesk.db.repositories.plans import PlanRepo

# (name, description, price, features)
DEFAULT_PLANS: tuple[tuple[str, str, float, list[str]], ...] = (
    ("Teste Gratuito", "7-day trial", 0.0, ["clients", "processes", "documents"]),
    ("Básico", "Solo practice", 99.9, ["clients", "processes", "documents"]),
    (
        "Profissional",
        "Small firm",
        199.9,
        ["clients", "processes", "documents", "appointments", "ai_assistant"],
    ),
    (
        "Premium",
        "Growing firm",
        399.9,
        ["clients", "processes", "documents", "appointments", "ai_assistant", "priority_support"],
    ),
)


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_plans(session_factory: async_sessionmaker[AsyncSession]) -> None:
    # Idempotent: existing plans are left untouched.
    async with session_factory() as session:
        plans = PlanRepo(session)
        for name, description, price, features in DEFAULT_PLANS:
            if await plans.get_by_name(name) is None:
                await plans.upsert(
                    name=name, description=description, price=price, features=features
                )
        await session.commit()


# --- Module Notes -----------------------------------------------------------
# Production databases are expected to be migrated and seeded out of band.
