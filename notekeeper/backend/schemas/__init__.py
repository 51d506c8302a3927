# Pydantic schemas package
from notekeeper.backend.schemas.base import (
    ApiResponse,
    DeletedResponse,
    ErrorDetail,
    ErrorResponse,
    PaginatedResponse,
    PaginationInfo,
    ResponseMetadata,
)

__all__ = [
    "ApiResponse",
    "DeletedResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginatedResponse",
    "PaginationInfo",
    "ResponseMetadata",
]
