"""
lexdesk.api.routers.documents

Documents for the calling lawyer.

Responsibilities:
- List (optionally by client or process), read and delete documents behind the
  entitlement and ownership gates.
- Create documents behind the plan-limit gate, either as metadata pointing at an
  external URL or as a multipart upload stored under `Settings.upload_dir`.
- Serve stored files back to their owner.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import desc
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_204_NO_CONTENT,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
)

from lexdesk.api.deps import db_session, settings_dep
from lexdesk.auth.context import RequestContext
from lexdesk.auth.deps import authorize
from lexdesk.auth.pipeline import entitlement, ownership, quota
from lexdesk.auth.registry import ResourceClass
from lexdesk.db.models import Document, Process
from lexdesk.db.repositories.owned import ClientRepo, OwnedRepo
from lexdesk.observability.logging import get_logger
from lexdesk.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/v1/documents", tags=["documents"])

_listing = authorize(entitlement())
_owned = authorize(entitlement(), ownership(ResourceClass.document))
_creation = authorize(entitlement(), quota(ResourceClass.document))

MAX_FILE_SIZE = 10 * 1024 * 1024


class DocumentCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    doc_type: str = Field(default="OTHER", max_length=64)
    file_url: str = Field(min_length=1)
    file_size: int = Field(default=0, ge=0, le=MAX_FILE_SIZE)
    content_type: str = Field(default="application/pdf", max_length=128)
    client_id: uuid.UUID | None = None
    process_id: uuid.UUID | None = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    client_id: uuid.UUID | None
    process_id: uuid.UUID | None
    title: str
    doc_type: str
    file_url: str
    file_size: int
    content_type: str
    created_at: datetime


def _repo(session: AsyncSession) -> OwnedRepo[Document]:
    return OwnedRepo(session, Document)


def _stored_path(settings: Settings, document: Document) -> Path | None:
    if document.storage_key is None:
        return None
    return Path(settings.upload_dir) / document.storage_key


async def _check_links(
    session: AsyncSession,
    owner_id: uuid.UUID,
    client_id: uuid.UUID | None,
    process_id: uuid.UUID | None,
) -> None:
    # Linked records must be the caller's own; foreign ones look missing.
    if client_id is not None:
        if await ClientRepo(session).get_owned(client_id, owner_id) is None:
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Client not found")
    if process_id is not None:
        if await OwnedRepo(session, Process).get_owned(process_id, owner_id) is None:
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Process not found")


async def _load(repo: OwnedRepo[Document], document_id: str) -> Document:
    document = await repo.get(document_id)
    if document is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Document not found")
    return document


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    client_id: uuid.UUID | None = Query(default=None),
    process_id: uuid.UUID | None = Query(default=None),
    ctx: RequestContext = Depends(_listing),
    session: AsyncSession = Depends(db_session),
) -> list[DocumentResponse]:
    rows = await _repo(session).list_for_owner(
        uuid.UUID(ctx.principal_id),
        order_by=desc(Document.created_at),
        client_id=client_id,
        process_id=process_id,
    )
    return [DocumentResponse.model_validate(d) for d in rows]


@router.get("/{id}", response_model=DocumentResponse)
async def get_document(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
) -> DocumentResponse:
    return DocumentResponse.model_validate(await _load(_repo(session), id))


@router.post("", response_model=DocumentResponse, status_code=HTTP_201_CREATED)
async def create_document(
    body: DocumentCreateRequest,
    ctx: RequestContext = Depends(_creation),
    session: AsyncSession = Depends(db_session),
) -> DocumentResponse:
    owner_id = uuid.UUID(ctx.principal_id)
    await _check_links(session, owner_id, body.client_id, body.process_id)
    document = await _repo(session).add(user_id=owner_id, **body.model_dump())
    await session.commit()
    return DocumentResponse.model_validate(document)


@router.post("/upload", response_model=DocumentResponse, status_code=HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    title: str = Form(min_length=1, max_length=300),
    doc_type: str = Form(default="OTHER", max_length=64),
    client_id: uuid.UUID | None = Form(default=None),
    process_id: uuid.UUID | None = Form(default=None),
    ctx: RequestContext = Depends(_creation),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> DocumentResponse:
    owner_id = uuid.UUID(ctx.principal_id)
    await _check_links(session, owner_id, client_id, process_id)

    content = await file.read()
    if not content:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="No file content sent")
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {MAX_FILE_SIZE // (1024 * 1024)}MB limit",
        )

    document_id = uuid.uuid4()
    suffix = Path(file.filename or "").suffix.lower()[:16]
    storage_key = f"{document_id.hex}{suffix}"
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    (upload_dir / storage_key).write_bytes(content)

    document = await _repo(session).add(
        id=document_id,
        user_id=owner_id,
        client_id=client_id,
        process_id=process_id,
        title=title,
        doc_type=doc_type,
        file_url=f"/v1/documents/{document_id}/download",
        file_size=len(content),
        content_type=file.content_type or "application/octet-stream",
        storage_key=storage_key,
    )
    await session.commit()
    log.info("document_uploaded", document_id=str(document_id), file_size=len(content))
    return DocumentResponse.model_validate(document)


@router.get("/{id}/download")
async def download_document(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> FileResponse:
    document = await _load(_repo(session), id)
    path = _stored_path(settings, document)
    if path is None or not path.is_file():
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="File not found on server")
    return FileResponse(
        path,
        media_type=document.content_type,
        filename=f"{document.title}{path.suffix}",
    )


@router.delete("/{id}", status_code=HTTP_204_NO_CONTENT)
async def delete_document(
    id: str,
    _: RequestContext = Depends(_owned),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> Response:
    repo = _repo(session)
    document = await _load(repo, id)
    path = _stored_path(settings, document)
    await repo.delete(document)
    await session.commit()
    if path is not None:
        path.unlink(missing_ok=True)
    return Response(status_code=HTTP_204_NO_CONTENT)


# --- Module Notes -----------------------------------------------------------
# Uploads are read into memory before the size check; MAX_FILE_SIZE bounds that
# per request. Request body size limits belong to the reverse proxy.
