"""
Note Schemas.

Pydantic schemas for note API request/response validation.
"""

import re
from datetime import date, datetime, time
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from notekeeper.backend.models.note import (
    DEFAULT_CATEGORY,
    NotePriority,
    NoteStatus,
    NoteVisibility,
    normalize_tags,
)


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Note title",
        examples=["Groceries"],
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="Note body",
        examples=["milk, eggs"],
    )
    date: datetime | None = Field(
        default=None,
        description="Note date; defaults to creation time",
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        min_length=1,
        max_length=50,
        description="Free-form category",
    )
    priority: NotePriority = Field(default=NotePriority.MEDIUM)
    tags: list[str] = Field(default_factory=list, max_length=50)
    visibility: NoteVisibility = Field(default=NoteVisibility.PRIVATE)

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class NoteUpdate(BaseModel):
    """Schema for partially updating an existing note."""

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Note title",
    )
    description: str | None = Field(
        default=None,
        min_length=1,
        max_length=10000,
        description="Note body",
    )
    date: datetime | None = None
    category: str | None = Field(default=None, min_length=1, max_length=50)
    priority: NotePriority | None = None
    tags: list[str] | None = Field(default=None, max_length=50)
    status: NoteStatus | None = None
    visibility: NoteVisibility | None = None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else normalize_tags(value)


class NoteStatusUpdate(BaseModel):
    """Schema for a status-only transition."""

    status: NoteStatus


class AttachmentResponse(BaseModel):
    """Attachment metadata in API responses."""

    id: str
    filename: str
    mime_type: str
    size_bytes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteResponse(BaseModel):
    """Schema for note in API responses."""

    id: str = Field(description="Note unique identifier")
    title: str = Field(description="Note title")
    description: str = Field(description="Note body")
    date: datetime
    category: str
    priority: NotePriority
    tags: list[str]
    status: NoteStatus
    visibility: NoteVisibility
    owner_id: str
    attachments: list[AttachmentResponse]
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class NoteListResponse(BaseModel):
    """Schema for listing notes."""

    id: str
    title: str
    category: str
    priority: NotePriority
    tags: list[str]
    status: NoteStatus
    visibility: NoteVisibility
    owner_id: str
    date: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BulkDeleteResponse(BaseModel):
    """Result of a bulk soft delete."""

    deleted: int
    all_owners: bool


_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def end_of_day_if_date_only(value: Any) -> Any:
    """A bare YYYY-MM-DD upper bound covers the whole of that day."""
    if isinstance(value, str) and _DATE_ONLY.match(value.strip()):
        return datetime.combine(date.fromisoformat(value.strip()), time.max)
    return value


# Search date_to: full timestamps are used as given
InclusiveUpperBound = Annotated[datetime | None, BeforeValidator(end_of_day_if_date_only)]
