"""
lexdesk.api.routers.clients

Client records for the calling lawyer.

Responsibilities:
- List/read/update/delete clients behind the entitlement and ownership gates.
- Create clients behind the entitlement and plan-limit gates.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_204_NO_CONTENT,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
)

from lexdesk.api.deps import db_session
from lexdesk.auth.context import RequestContext
from lexdesk.auth.deps import authorize
from lexdesk.auth.pipeline import entitlement, ownership, quota
from lexdesk.auth.registry import ResourceClass
from lexdesk.db.models import Client
from lexdesk.db.repositories.owned import ClientRepo

router = APIRouter(prefix="/v1/clients", tags=["clients"])

_listing = authorize(entitlement())
_owned = authorize(entitlement(), ownership(ResourceClass.client))
_creation = authorize(entitlement(), quota(ResourceClass.client))


class ClientCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    cpf: str = Field(min_length=11, max_length=14)
    email: str = Field(min_length=3, max_length=320)
    phone: str = Field(min_length=1, max_length=32)
    address: str | None = None


class ClientUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: str | None = Field(default=None, min_length=3, max_length=320)
    phone: str | None = Field(default=None, min_length=1, max_length=32)
    address: str | None = None

    @field_validator("name", "email", "phone")
    @classmethod
    def not_null(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    cpf: str
    email: str
    phone: str
    address: str | None
    created_at: datetime


async def _load(repo: ClientRepo, client_id: str) -> Client:
    # Non-owners never get here (ownership gate); only admins can hit a missing id.
    client = await repo.get(client_id)
    if client is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Client not found")
    return client


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    ctx: RequestContext = Depends(_listing),
    session: AsyncSession = Depends(db_session),
) -> list[ClientResponse]:
    clients = await ClientRepo(session).list_for_owner(
        uuid.UUID(ctx.principal_id), order_by=Client.name
    )
    return [ClientResponse.model_validate(c) for c in clients]


@router.get("/{id}", response_model=ClientResponse)
async def get_client(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> ClientResponse:
    return ClientResponse.model_validate(await _load(ClientRepo(session), id))


@router.post("", response_model=ClientResponse, status_code=HTTP_201_CREATED)
async def create_client(
    body: ClientCreateRequest,
    ctx: RequestContext = Depends(_creation),
    session: AsyncSession = Depends(db_session),
) -> ClientResponse:
    repo = ClientRepo(session)
    owner_id = uuid.UUID(ctx.principal_id)
    if await repo.get_by_cpf(owner_id, body.cpf) is not None:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST, detail="A client with this CPF already exists"
        )
    client = await repo.add(user_id=owner_id, **body.model_dump())
    await session.commit()
    return ClientResponse.model_validate(client)


@router.put("/{id}", response_model=ClientResponse)
async def update_client(
    id: str,
    body: ClientUpdateRequest,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> ClientResponse:
    repo = ClientRepo(session)
    client = await repo.update(
        await _load(repo, id), **body.model_dump(exclude_unset=True)
    )
    await session.commit()
    return ClientResponse.model_validate(client)


@router.delete("/{id}", status_code=HTTP_204_NO_CONTENT)
async def delete_client(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> Response:
    repo = ClientRepo(session)
    client = await _load(repo, id)
    if await repo.count_processes(client.id) > 0:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail="Cannot delete a client with associated processes",
        )
    await repo.delete_with_dependents(client)
    await session.commit()
    return Response(status_code=HTTP_204_NO_CONTENT)
