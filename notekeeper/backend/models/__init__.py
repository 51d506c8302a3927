"""SQLAlchemy models."""

from notekeeper.backend.models.base import Base

# Import all models so the mapper registry and Base.metadata see every table
from notekeeper.backend.models.user import User, UserRole  # noqa: E402, F401
from notekeeper.backend.models.note import (  # noqa: E402, F401
    Note,
    NoteAttachment,
    NotePriority,
    NoteStatus,
    NoteTag,
    NoteVisibility,
)

__all__ = [
    "Base",
    "Note",
    "NoteAttachment",
    "NotePriority",
    "NoteStatus",
    "NoteTag",
    "NoteVisibility",
    "User",
    "UserRole",
]
