"""
lexdesk.api.app

FastAPI app factory for the lexdesk service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lexdesk import __version__
from lexdesk.api.errors import register_error_handlers
from lexdesk.api.routers.admin import router as admin_router
from lexdesk.api.routers.appointments import router as appointments_router
from lexdesk.api.routers.auth import router as auth_router
from lexdesk.api.routers.clients import router as clients_router
from lexdesk.api.routers.documents import router as documents_router
from lexdesk.api.routers.health import router as health_router
from lexdesk.api.routers.payments import router as payments_router
from lexdesk.api.routers.processes import router as processes_router
from lexdesk.db.init_db import init_db, seed_plans
from lexdesk.db.session import create_engine, create_sessionmaker
from lexdesk.observability.logging import configure_logging, get_logger
from lexdesk.observability.middleware import RequestContextMiddleware
from lexdesk.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.env != "dev",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod databases are migrated and seeded out of band.
            await init_db(engine)
            await seed_plans(app.state.sessionmaker)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="lexdesk",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(clients_router)
    app.include_router(processes_router)
    app.include_router(documents_router)
    app.include_router(appointments_router)
    app.include_router(payments_router)
    app.include_router(admin_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Business rules stay in routers and the auth pipeline; this module only wires.
