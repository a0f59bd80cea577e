"""
lexdesk.api.errors

Exception handlers: render every rejection as `{"error": true, "message": ...}`.

Responsibilities:
- Map pipeline rejections (`AuthError`) to their status and body extras.
- Render request validation failures with the same envelope plus the field errors.
- Keep defects (`UnknownResourceClass`) and storage failures opaque to the caller
  while logging them in full.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from lexdesk.auth.errors import AuthError, StorageUnavailable, UnknownResourceClass
from lexdesk.observability.logging import get_logger

log = get_logger(__name__)

INTERNAL_ERROR_BODY = {"error": True, "message": "Internal server error"}


async def _auth_error(_: Request, exc: AuthError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def _unknown_resource_class(_: Request, exc: UnknownResourceClass) -> JSONResponse:
    log.error("defect_unknown_resource_class", resource_class=exc.resource_class)
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR_BODY)


async def _storage_unavailable(_: Request, exc: StorageUnavailable) -> JSONResponse:
    log.error("storage_unavailable", error=str(exc))
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR_BODY)


async def _sqlalchemy_error(_: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error("storage_failure", error=type(exc).__name__, exc_info=exc)
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR_BODY)


async def _http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": True, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": True,
            "message": "Invalid request",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, _auth_error)  # type: ignore[arg-type]
    app.add_exception_handler(UnknownResourceClass, _unknown_resource_class)  # type: ignore[arg-type]
    app.add_exception_handler(StorageUnavailable, _storage_unavailable)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error)  # type: ignore[arg-type]
