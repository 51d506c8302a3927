"""
Users API Endpoints.

Admin-only account administration.
"""

from typing import Any

from fastapi import APIRouter, Depends

from notekeeper.backend.core.dependencies import AdminIdentity, DbSession, RequestId
from notekeeper.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from notekeeper.backend.schemas.base import ApiResponse, DeletedResponse, ResponseMetadata
from notekeeper.backend.schemas.user import UserResponse
from notekeeper.backend.services.user import UserService

router = APIRouter()


@router.get(
    "",
    summary="List users (admin)",
    description="Paginated list of accounts, newest first.",
)
async def list_users(
    db: DbSession,
    identity: AdminIdentity,
    request_id: RequestId,
    pagination: PaginationParams = Depends(get_pagination_params),
) -> dict[str, Any]:
    """List user accounts."""
    service = UserService(db)
    users, total = await service.list_users(
        identity,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=users,
        item_schema=UserResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[DeletedResponse],
    summary="Delete a user (admin)",
    description="Remove an account together with its notes and attachment files.",
)
async def delete_user(
    user_id: str,
    db: DbSession,
    identity: AdminIdentity,
    request_id: RequestId,
) -> ApiResponse[DeletedResponse]:
    """Delete a user account."""
    service = UserService(db)
    await service.delete_user(user_id, identity)
    return ApiResponse(
        data=DeletedResponse(id=user_id),
        metadata=ResponseMetadata(request_id=request_id),
    )
