"""
Notes API Endpoints.

Every route needs a bearer token. Access rules (owner, admin, public)
live in NoteService; these handlers only translate HTTP to service calls.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import FileResponse

from notekeeper.backend.core.dependencies import (
    AdminIdentity,
    CurrentIdentity,
    DbSession,
    RequestId,
)
from notekeeper.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from notekeeper.backend.models.note import NotePriority, NoteStatus, NoteVisibility
from notekeeper.backend.repositories.note import NoteFilters
from notekeeper.backend.schemas.base import ApiResponse, DeletedResponse, ResponseMetadata
from notekeeper.backend.schemas.note import (
    AttachmentResponse,
    BulkDeleteResponse,
    InclusiveUpperBound,
    NoteCreate,
    NoteListResponse,
    NoteResponse,
    NoteStatusUpdate,
    NoteUpdate,
)
from notekeeper.backend.services.note import NoteService

router = APIRouter()


def get_note_service(db: DbSession) -> NoteService:
    return NoteService(db)


Notes = Annotated[NoteService, Depends(get_note_service)]


def _note(note, request_id: str) -> ApiResponse[NoteResponse]:
    return ApiResponse(
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post("", response_model=ApiResponse[NoteResponse], status_code=201, summary="Create a note")
async def create_note(
    data: NoteCreate,
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _note(await notes.create_note(data, identity), request_id)


@router.get(
    "",
    summary="List notes",
    description="Own notes for users, every owner's for admins. Deleted notes never appear.",
)
async def list_notes(
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
    page: PaginationParams = Depends(get_pagination_params),
) -> dict[str, Any]:
    rows, total = await notes.list_notes(identity, limit=page.limit, offset=page.offset)
    return create_paginated_response(
        rows,
        NoteListResponse,
        total=total,
        limit=page.limit,
        offset=page.offset,
        request_id=request_id,
    )


@router.delete(
    "",
    response_model=ApiResponse[BulkDeleteResponse],
    summary="Bulk delete notes (admin)",
    description="Own notes by default; all_owners=true with confirm=true empties every account.",
)
async def delete_all_notes(
    notes: Notes,
    identity: AdminIdentity,
    request_id: RequestId,
    all_owners: bool = Query(default=False),
    confirm: bool = Query(default=False),
) -> ApiResponse[BulkDeleteResponse]:
    count = await notes.delete_all(identity, all_owners=all_owners, confirm=confirm)
    return ApiResponse(
        data=BulkDeleteResponse(deleted=count, all_owners=all_owners),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/search",
    response_model=ApiResponse[list[NoteListResponse]],
    summary="Search notes",
    description=(
        "Case-insensitive title match plus optional filters. Date bounds are inclusive; "
        "a date-only date_to covers that whole day."
    ),
)
async def search_notes(
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
    q: str = Query(default="", max_length=100),
    category: str | None = Query(default=None, max_length=50),
    priority: NotePriority | None = None,
    tag: str | None = Query(default=None, max_length=50),
    status: NoteStatus | None = None,
    visibility: NoteVisibility | None = None,
    date_from: datetime | None = None,
    date_to: InclusiveUpperBound = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ApiResponse[list[NoteListResponse]]:
    filters = NoteFilters(
        query=q,
        category=category,
        priority=priority.value if priority else None,
        tag=tag,
        status=status.value if status else None,
        visibility=visibility.value if visibility else None,
        date_from=date_from,
        date_to=date_to,
    )
    found = await notes.search_notes(identity, filters, limit=limit, offset=offset)
    return ApiResponse(
        data=[NoteListResponse.model_validate(n) for n in found],
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get("/{note_id}", response_model=ApiResponse[NoteResponse], summary="Get a note")
async def get_note(
    note_id: str,
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _note(await notes.get_note(note_id, identity), request_id)


@router.put(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Partial update: omitted fields keep their value.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _note(await notes.update_note(note_id, data, identity), request_id)


@router.patch("/{note_id}/status", response_model=ApiResponse[NoteResponse], summary="Change status")
async def update_note_status(
    note_id: str,
    data: NoteStatusUpdate,
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    return _note(await notes.update_status(note_id, data.status, identity), request_id)


@router.delete("/{note_id}", response_model=ApiResponse[DeletedResponse], summary="Delete a note")
async def delete_note(
    note_id: str,
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
) -> ApiResponse[DeletedResponse]:
    await notes.delete_note(note_id, identity)
    return ApiResponse(
        data=DeletedResponse(id=note_id),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/{note_id}/upload",
    response_model=ApiResponse[AttachmentResponse],
    status_code=201,
    summary="Attach a file",
    description="Size ceiling and allowed MIME types come from storage.yaml.",
)
async def upload_attachment(
    note_id: str,
    notes: Notes,
    identity: CurrentIdentity,
    request_id: RequestId,
    file: UploadFile = File(...),
) -> ApiResponse[AttachmentResponse]:
    attachment = await notes.add_attachment(note_id, file, identity)
    return ApiResponse(
        data=AttachmentResponse.model_validate(attachment),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/{note_id}/attachments/{attachment_id}",
    response_class=FileResponse,
    summary="Download an attachment",
)
async def download_attachment(
    note_id: str,
    attachment_id: str,
    notes: Notes,
    identity: CurrentIdentity,
) -> FileResponse:
    attachment, path = await notes.get_attachment(note_id, attachment_id, identity)
    return FileResponse(path, media_type=attachment.mime_type, filename=attachment.filename)
