"""
Pagination Utilities.

Offset pagination shared by the note and user listings.

Usage:
    @router.get("")
    async def list_notes(pagination: PaginationParams = Depends(get_pagination_params)):
        items, total = await service.list_notes(identity, pagination.limit, pagination.offset)
        return create_paginated_response(items, NoteListResponse, total, ...)
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Query
from pydantic import BaseModel

from notekeeper.backend.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PaginationParams:
    limit: int
    offset: int


def get_pagination_params(
    limit: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Page size",
    ),
    offset: int = Query(default=0, ge=0, description="Items to skip"),
) -> PaginationParams:
    return PaginationParams(limit=limit, offset=offset)


def create_paginated_response(
    items: list[Any],
    item_schema: type[BaseModel],
    total: int,
    limit: int,
    offset: int = 0,
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Serialize one page of ORM rows into the PaginatedResponse envelope.

    has_more is true while rows remain past this page.
    """
    page = [item_schema.model_validate(item) for item in items]
    envelope = PaginatedResponse[item_schema](
        data=page,
        pagination=PaginationInfo(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(page) < total,
        ),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return envelope.model_dump(mode="json")
