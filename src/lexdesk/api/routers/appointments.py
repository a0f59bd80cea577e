"""
lexdesk.api.routers.appointments

Calendar entries (hearings, meetings) for the calling lawyer.

Responsibilities:
- List/read/update/delete appointments behind the entitlement and ownership gates.
- Create appointments behind the entitlement gate only (no plan limit applies).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT, HTTP_404_NOT_FOUND

from lexdesk.api.deps import db_session
from lexdesk.auth.context import RequestContext
from lexdesk.auth.deps import authorize
from lexdesk.auth.pipeline import entitlement, ownership
from lexdesk.auth.registry import ResourceClass
from lexdesk.db.base import to_naive_utc
from lexdesk.db.models import Appointment
from lexdesk.db.repositories.owned import ClientRepo, OwnedRepo

router = APIRouter(prefix="/v1/appointments", tags=["appointments"])

# No quota step on creation: appointments have no entry in the plan quota table.
_listing = authorize(entitlement())
_owned = authorize(entitlement(), ownership(ResourceClass.appointment))


class AppointmentCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    starts_at: datetime
    ends_at: datetime | None = None
    description: str | None = None
    location: str | None = Field(default=None, max_length=300)
    client_id: uuid.UUID | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def as_naive_utc(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_ends_after_start(self) -> AppointmentCreateRequest:
        if self.ends_at is not None and self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class AppointmentUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    description: str | None = None
    location: str | None = Field(default=None, max_length=300)

    @field_validator("starts_at", "ends_at")
    @classmethod
    def as_naive_utc(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)

    @field_validator("title", "starts_at")
    @classmethod
    def not_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    client_id: uuid.UUID | None
    title: str
    description: str | None
    location: str | None
    starts_at: datetime
    ends_at: datetime | None
    created_at: datetime


def _repo(session: AsyncSession) -> OwnedRepo[Appointment]:
    return OwnedRepo(session, Appointment)


async def _load(repo: OwnedRepo[Appointment], appointment_id: str) -> Appointment:
    appointment = await repo.get(appointment_id)
    if appointment is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    ctx: RequestContext = Depends(_listing),
    session: AsyncSession = Depends(db_session),
) -> list[AppointmentResponse]:
    rows = await _repo(session).list_for_owner(
        uuid.UUID(ctx.principal_id), order_by=Appointment.starts_at
    )
    return [AppointmentResponse.model_validate(a) for a in rows]


@router.get("/{id}", response_model=AppointmentResponse)
async def get_appointment(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> AppointmentResponse:
    return AppointmentResponse.model_validate(await _load(_repo(session), id))


@router.post("", response_model=AppointmentResponse, status_code=HTTP_201_CREATED)
async def create_appointment(
    body: AppointmentCreateRequest,
    ctx: RequestContext = Depends(_listing),
    session: AsyncSession = Depends(db_session),
) -> AppointmentResponse:
    owner_id = uuid.UUID(ctx.principal_id)
    if body.client_id is not None:
        if await ClientRepo(session).get_owned(body.client_id, owner_id) is None:
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Client not found")
    appointment = await _repo(session).add(user_id=owner_id, **body.model_dump())
    await session.commit()
    return AppointmentResponse.model_validate(appointment)


@router.put("/{id}", response_model=AppointmentResponse)
async def update_appointment(
    id: str,
    body: AppointmentUpdateRequest,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> AppointmentResponse:
    repo = _repo(session)
    appointment = await repo.update(
        await _load(repo, id), **body.model_dump(exclude_unset=True)
    )
    await session.commit()
    return AppointmentResponse.model_validate(appointment)


@router.delete("/{id}", status_code=HTTP_204_NO_CONTENT)
async def delete_appointment(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> Response:
    repo = _repo(session)
    await repo.delete(await _load(repo, id))
    await session.commit()
    return Response(status_code=HTTP_204_NO_CONTENT)
