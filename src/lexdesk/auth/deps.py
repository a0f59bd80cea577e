"""
lexdesk.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Build the JWT config and the SQL-backed `AuthStore` for a request.
- Turn a list of gate steps into a dependency that yields the `RequestContext`.
"""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from lexdesk.api.deps import db_session, settings_dep
from lexdesk.auth.context import RequestContext
from lexdesk.auth.jwt import JwtConfig
from lexdesk.auth.models import Role
from lexdesk.auth.pipeline import GateStep, RouteInput, role, run_pipeline
from lexdesk.auth.store import AuthStore
from lexdesk.db.auth_store import SqlAuthStore
from lexdesk.settings import Settings

# Raw header on purpose: scheme parsing belongs to the token codec.
_authorization = APIKeyHeader(
    name="Authorization",
    scheme_name="BearerToken",
    description="`Bearer <access token>`",
    auto_error=False,
)


def jwt_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        secret=settings.jwt_secret,
    )


def auth_store(session: AsyncSession = Depends(db_session)) -> AuthStore:
    return SqlAuthStore(session)


def authorize(*steps: GateStep):
    """
    Dependency factory. Token decoding and principal resolution always run;
    `steps` run after them in the given order.

        ctx: RequestContext = Depends(authorize(entitlement(), ownership("client")))
    """

    async def _dep(
        request: Request,
        authorization: str | None = Depends(_authorization),
        settings: Settings = Depends(settings_dep),
        store: AuthStore = Depends(auth_store),
    ) -> RequestContext:
        route = RouteInput(
            authorization=authorization,
            method=request.method,
            path_params=dict(request.path_params),
        )
        return await run_pipeline(
            route,
            cfg=jwt_config(settings),
            store=store,
            steps=steps,
            scheme=settings.auth_scheme,
        )

    return _dep


get_context = authorize()
require_admin = authorize(role(Role.admin))


# --- Module Notes -----------------------------------------------------------
# Declare one `authorize(...)` per route with the full step list: two different
# authorize dependencies on the same route would run the pipeline twice.
