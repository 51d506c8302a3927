"""
Note Models.

Notes, their tags, and their file attachments.
"""

import enum
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notekeeper.backend.core.utils import utc_now
from notekeeper.backend.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from notekeeper.backend.models.user import User


class NoteStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class NoteVisibility(str, enum.Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class NotePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


DEFAULT_CATEGORY = "personal"


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Strip, lowercase and de-duplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or ():
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class Note(UUIDMixin, TimestampMixin, Base):
    """
    Note database model.

    `status` is the lifecycle (active, archived, deleted) and `visibility`
    controls who besides the owner may read the note. Deleted is terminal.
    """

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    date: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_CATEGORY,
        nullable=False,
        index=True,
    )
    priority: Mapped[str] = mapped_column(
        String(10),
        default=NotePriority.MEDIUM.value,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(10),
        default=NoteStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    visibility: Mapped[str] = mapped_column(
        String(10),
        default=NoteVisibility.PRIVATE.value,
        nullable=False,
    )
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    owner: Mapped["User"] = relationship(back_populates="notes")
    tag_links: Mapped[list["NoteTag"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="NoteTag.name",
    )
    attachments: Mapped[list["NoteAttachment"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="NoteAttachment.created_at",
    )

    @property
    def tags(self) -> list[str]:
        return [link.name for link in self.tag_links]

    def set_tags(self, tags: Iterable[str] | None) -> None:
        """Replace the tag set, keeping rows for tags that survive."""
        wanted = normalize_tags(tags)
        kept = [link for link in self.tag_links if link.name in wanted]
        kept_names = {link.name for link in kept}
        kept.extend(NoteTag(name=name) for name in wanted if name not in kept_names)
        self.tag_links = kept

    def is_visible_to(self, user_id: str, is_admin: bool) -> bool:
        return (
            is_admin
            or self.owner_id == user_id
            or self.visibility == NoteVisibility.PUBLIC.value
        )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, status={self.status})>"


class NoteTag(Base):
    """Single tag attached to a note."""

    __tablename__ = "note_tags"
    __table_args__ = (UniqueConstraint("note_id", "name", name="uq_note_tags_note_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    note: Mapped["Note"] = relationship(back_populates="tag_links")


class NoteAttachment(UUIDMixin, Base):
    """Metadata for a file stored on disk under the upload root."""

    __tablename__ = "note_attachments"

    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
    )

    note: Mapped["Note"] = relationship(back_populates="attachments")

    def __repr__(self) -> str:
        return f"<NoteAttachment(id={self.id}, filename={self.filename!r})>"
