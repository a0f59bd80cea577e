"""
lexdesk.api.routers.processes

Legal processes (court cases) and their deadlines.

Responsibilities:
- List/read/update processes behind the entitlement and ownership gates.
- Create processes behind the plan-limit gate, for one of the caller's clients.
- Add deadlines to a process and mark them completed.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_404_NOT_FOUND

from lexdesk.api.deps import db_session
from lexdesk.auth.context import RequestContext
from lexdesk.auth.deps import authorize
from lexdesk.auth.pipeline import entitlement, ownership, quota
from lexdesk.auth.registry import ResourceClass
from lexdesk.db.base import to_naive_utc
from lexdesk.db.models import Process
from lexdesk.db.repositories.owned import ClientRepo, ProcessRepo

router = APIRouter(prefix="/v1/processes", tags=["processes"])

_listing = authorize(entitlement())
_owned = authorize(entitlement(), ownership(ResourceClass.process))
_creation = authorize(entitlement(), quota(ResourceClass.process))
_owned_by_process_id = authorize(
    entitlement(), ownership(ResourceClass.process, param="processId")
)

ProcessStatus = Literal["ACTIVE", "SUSPENDED", "ARCHIVED", "CLOSED"]
DeadlinePriority = Literal["LOW", "MEDIUM", "HIGH", "URGENT"]


class ProcessCreateRequest(BaseModel):
    client_id: uuid.UUID
    number: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=300)
    court: str | None = Field(default=None, max_length=200)
    description: str | None = None


class ProcessUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    court: str | None = Field(default=None, max_length=200)
    status: ProcessStatus | None = None
    description: str | None = None

    @field_validator("title", "status")
    @classmethod
    def not_null(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class DeadlineCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    due_date: datetime
    description: str | None = None
    priority: DeadlinePriority = "MEDIUM"

    @field_validator("due_date")
    @classmethod
    def as_naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class DeadlineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    process_id: uuid.UUID
    title: str
    description: str | None
    due_date: datetime
    priority: str
    is_completed: bool


class ProcessResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    client_id: uuid.UUID
    number: str
    title: str
    court: str | None
    status: str
    description: str | None
    created_at: datetime
    deadlines: list[DeadlineResponse]


async def _load(repo: ProcessRepo, process_id: str) -> Process:
    process = await repo.get(process_id)
    if process is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Process not found")
    return process


@router.get("", response_model=list[ProcessResponse])
async def list_processes(
    ctx: RequestContext = Depends(_listing),
    session: AsyncSession = Depends(db_session),
) -> list[ProcessResponse]:
    rows = await ProcessRepo(session).list_for_owner(uuid.UUID(ctx.principal_id))
    return [ProcessResponse.model_validate(p) for p in rows]


@router.get("/{id}", response_model=ProcessResponse)
async def get_process(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> ProcessResponse:
    return ProcessResponse.model_validate(await _load(ProcessRepo(session), id))


@router.post("", response_model=ProcessResponse, status_code=HTTP_201_CREATED)
async def create_process(
    body: ProcessCreateRequest,
    ctx: RequestContext = Depends(_creation),
    session: AsyncSession = Depends(db_session),
) -> ProcessResponse:
    owner_id = uuid.UUID(ctx.principal_id)
    # The client must be the caller's own; a foreign client looks the same as a missing one.
    if await ClientRepo(session).get_owned(body.client_id, owner_id) is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Client not found")
    process = await ProcessRepo(session).add(
        user_id=owner_id, status="ACTIVE", deadlines=[], **body.model_dump()
    )
    await session.commit()
    return ProcessResponse.model_validate(process)


@router.put("/{id}", response_model=ProcessResponse)
async def update_process(
    id: str,
    body: ProcessUpdateRequest,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> ProcessResponse:
    repo = ProcessRepo(session)
    process = await repo.update(await _load(repo, id), **body.model_dump(exclude_unset=True))
    await session.commit()
    return ProcessResponse.model_validate(process)


@router.post("/{id}/deadlines", response_model=DeadlineResponse, status_code=HTTP_201_CREATED)
async def add_deadline(
    id: str,
    body: DeadlineCreateRequest,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> DeadlineResponse:
    repo = ProcessRepo(session)
    deadline = await repo.add_deadline(await _load(repo, id), **body.model_dump())
    await session.commit()
    return DeadlineResponse.model_validate(deadline)


@router.put(
    "/{processId}/deadlines/{deadlineId}/complete", response_model=DeadlineResponse
)
async def complete_deadline(
    processId: str,
    deadlineId: str,
    _: RequestContext = Depends(_owned_by_process_id),
    session: AsyncSession = Depends(db_session),
) -> DeadlineResponse:
    repo = ProcessRepo(session)
    process = await _load(repo, processId)
    deadline = await repo.get_deadline(process.id, deadlineId)
    if deadline is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Deadline not found")
    deadline.is_completed = True
    await session.commit()
    return DeadlineResponse.model_validate(deadline)
