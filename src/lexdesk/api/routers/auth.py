"""
lexdesk.api.routers.auth

Account endpoints.

Responsibilities:
- Register lawyers (with a trial subscription when the trial plan exists).
- Log in (access + refresh token) and exchange refresh tokens for access tokens.
- Read/update the caller's profile and change the password.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
)

from lexdesk.api.deps import db_session, settings_dep
from lexdesk.auth.context import RequestContext
from lexdesk.auth.deps import auth_store, get_context, jwt_config
from lexdesk.auth.gates import resolve_principal
from lexdesk.auth.jwt import decode_and_validate, issue_token
from lexdesk.auth.models import Role, SubscriptionStatus, TokenKind
from lexdesk.auth.passwords import hash_password, verify_password
from lexdesk.auth.store import AuthStore
from lexdesk.db.base import utcnow_naive
from lexdesk.db.repositories.activity import ActivityRepo
from lexdesk.db.repositories.plans import PlanRepo
from lexdesk.db.repositories.subscriptions import SubscriptionRepo
from lexdesk.db.repositories.users import UserRepo
from lexdesk.observability.logging import get_logger
from lexdesk.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8, max_length=256)
    cpf: str = Field(min_length=11, max_length=14)
    oab_number: str = Field(min_length=1, max_length=32)
    oab_state: str = Field(min_length=2, max_length=2)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: str | None = Field(
        default=None, min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$"
    )


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=256)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    cpf: str
    oab_number: str
    oab_state: str
    role: Role
    is_active: bool
    is_verified: bool
    created_at: datetime


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


def _access_token(settings: Settings, *, subject: str, role: Role) -> str:
    return issue_token(
        cfg=jwt_config(settings),
        subject=subject,
        kind=TokenKind.access,
        role=role,
        ttl=timedelta(minutes=settings.access_token_ttl_minutes),
    )


@router.post("/register", response_model=UserResponse, status_code=HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserResponse:
    users = UserRepo(session)
    if await users.get_by_email(body.email) is not None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Email already in use")
    if await users.get_by_cpf(body.cpf) is not None:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="CPF already registered")
    if await users.get_by_oab_number(body.oab_number) is not None:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST, detail="OAB number already registered"
        )

    user = await users.create(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password, rounds=settings.bcrypt_rounds),
        cpf=body.cpf,
        oab_number=body.oab_number,
        oab_state=body.oab_state.upper(),
    )

    trial = await PlanRepo(session).get_by_name(settings.trial_plan_name)
    if trial is not None:
        await SubscriptionRepo(session).create(
            user_id=user.id,
            plan_id=trial.id,
            status=SubscriptionStatus.active,
            end_date=utcnow_naive() + timedelta(days=settings.trial_days),
        )
    await ActivityRepo(session).add(
        user_id=user.id,
        actor=str(user.id),
        action="USER_REGISTERED",
        details={"trial": trial is not None},
    )
    await session.commit()
    log.info("user_registered", user_id=str(user.id), trial=trial is not None)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> LoginResponse:
    user = await UserRepo(session).get_by_email(body.email)
    # Password first, so an inactive account is only disclosed to its owner.
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED,
            detail="Inactive user. Please contact support.",
        )

    subject = str(user.id)
    refresh = issue_token(
        cfg=jwt_config(settings),
        subject=subject,
        kind=TokenKind.refresh,
        ttl=timedelta(minutes=settings.refresh_token_ttl_minutes),
    )
    return LoginResponse(
        access_token=_access_token(settings, subject=subject, role=user.role),
        refresh_token=refresh,
        user=UserResponse.model_validate(user),
    )


@router.post("/refresh-token", response_model=AccessTokenResponse)
async def refresh_token(
    body: RefreshRequest,
    store: AuthStore = Depends(auth_store),
    settings: Settings = Depends(settings_dep),
) -> AccessTokenResponse:
    # Access tokens are rejected here (Invalid); refresh tokens are rejected everywhere else.
    claims = decode_and_validate(
        cfg=jwt_config(settings), token=body.refresh_token, kind=TokenKind.refresh
    )
    principal = await resolve_principal(claims, store)
    return AccessTokenResponse(
        access_token=_access_token(settings, subject=principal.id, role=principal.role)
    )


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    ctx: RequestContext = Depends(get_context),
    session: AsyncSession = Depends(db_session),
) -> UserResponse:
    user = await UserRepo(session).get(uuid.UUID(ctx.principal_id))
    if user is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    ctx: RequestContext = Depends(get_context),
    session: AsyncSession = Depends(db_session),
) -> UserResponse:
    users = UserRepo(session)
    user = await users.get(uuid.UUID(ctx.principal_id))
    if user is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")
    if body.email and body.email != user.email:
        existing = await users.get_by_email(body.email)
        if existing is not None and existing.id != user.id:
            raise HTTPException(
                status_code=HTTP_400_BAD_REQUEST, detail="Email already in use by another user"
            )
        user.email = body.email
    if body.name:
        user.name = body.name
    await session.commit()
    return UserResponse.model_validate(user)


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    ctx: RequestContext = Depends(get_context),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, str]:
    user = await UserRepo(session).get(uuid.UUID(ctx.principal_id))
    if user is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")
    if not verify_password(body.current_password, user.password_hash):
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED, detail="Current password is incorrect"
        )
    user.password_hash = hash_password(body.new_password, rounds=settings.bcrypt_rounds)
    await ActivityRepo(session).add(
        user_id=user.id, actor=ctx.principal_id, action="PASSWORD_CHANGED"
    )
    await session.commit()
    return {"status": "password_changed"}


# --- Module Notes -----------------------------------------------------------
# Registration does not validate the OAB number against the bar association;
# `is_verified` stays False until an admin flow sets it.
