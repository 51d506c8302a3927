"""
Note Repository.

Data access layer for notes and their attachments. Every query here
excludes soft-deleted notes; callers never see them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.utils import escape_like, utc_now
from notekeeper.backend.models.note import Note, NoteAttachment, NoteStatus, NoteTag
from notekeeper.backend.repositories.base import BaseRepository


@dataclass
class NoteFilters:
    """Optional search narrowing. None means "do not filter on this"."""

    query: str | None = None
    category: str | None = None
    priority: str | None = None
    tag: str | None = None
    status: str | None = None
    visibility: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits standard CRUD operations from BaseRepository
    and adds owner-scoped, soft-delete-aware queries.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    @staticmethod
    def _live(owner_id: str | None = None) -> Select:
        """Base select over non-deleted notes, optionally for one owner."""
        stmt = select(Note).where(Note.status != NoteStatus.DELETED.value)
        if owner_id is not None:
            stmt = stmt.where(Note.owner_id == owner_id)
        return stmt

    @staticmethod
    def _apply_filters(stmt: Select, filters: NoteFilters) -> Select:
        if filters.query:
            pattern = f"%{escape_like(filters.query)}%"
            stmt = stmt.where(Note.title.ilike(pattern, escape="\\"))
        if filters.category is not None:
            stmt = stmt.where(Note.category == filters.category)
        if filters.priority is not None:
            stmt = stmt.where(Note.priority == filters.priority)
        if filters.tag is not None:
            stmt = stmt.where(Note.tag_links.any(NoteTag.name == filters.tag))
        if filters.status is not None:
            stmt = stmt.where(Note.status == filters.status)
        if filters.visibility is not None:
            stmt = stmt.where(Note.visibility == filters.visibility)
        if filters.date_from is not None:
            stmt = stmt.where(Note.date >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(Note.date <= filters.date_to)
        return stmt

    async def get_live(self, note_id: str) -> Note | None:
        """Get a non-deleted note by ID, or None."""
        result = await self.session.execute(
            self._live().where(Note.id == str(note_id))
        )
        return result.scalar_one_or_none()

    async def list_live(
        self,
        owner_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Note]:
        """
        List non-deleted notes, newest first.

        Args:
            owner_id: Restrict to one owner; None lists every owner
            limit: Maximum number of notes to return
            offset: Number of notes to skip

        Returns:
            List of notes
        """
        result = await self.session.execute(
            self._live(owner_id)
            .order_by(Note.created_at.desc(), Note.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count_live(self, owner_id: str | None = None) -> int:
        """Count non-deleted notes, optionally for one owner."""
        stmt = select(func.count()).select_from(Note).where(
            Note.status != NoteStatus.DELETED.value
        )
        if owner_id is not None:
            stmt = stmt.where(Note.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def search(
        self,
        filters: NoteFilters,
        owner_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Note]:
        """
        Search non-deleted notes.

        The query is a case-insensitive substring match on title with
        LIKE wildcards in user input matched literally. Date bounds are
        inclusive.
        """
        stmt = self._apply_filters(self._live(owner_id), filters)
        result = await self.session.execute(
            stmt.order_by(Note.created_at.desc(), Note.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def soft_delete_many(self, owner_id: str | None = None) -> int:
        """
        Mark every non-deleted note as deleted.

        Args:
            owner_id: Restrict to one owner; None affects every owner

        Returns:
            Number of notes affected
        """
        stmt = (
            update(Note)
            .where(Note.status != NoteStatus.DELETED.value)
            .values(status=NoteStatus.DELETED.value, updated_at=utc_now())
            .execution_options(synchronize_session="evaluate")
        )
        if owner_id is not None:
            stmt = stmt.where(Note.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_attachment(self, note_id: str, attachment_id: str) -> NoteAttachment | None:
        """Get an attachment only if it belongs to the given note."""
        result = await self.session.execute(
            select(NoteAttachment).where(
                NoteAttachment.id == str(attachment_id),
                NoteAttachment.note_id == str(note_id),
            )
        )
        return result.scalar_one_or_none()

    async def add_attachment(self, note: Note, **kwargs: Any) -> NoteAttachment:
        """Record attachment metadata on a note."""
        attachment = NoteAttachment(note_id=note.id, **kwargs)
        self.session.add(attachment)
        await self.session.flush()
        await self.session.refresh(note)
        return attachment

    async def attachment_paths_for_owner(self, owner_id: str) -> list[str]:
        """Storage paths of every attachment on any note of the owner, deleted notes included."""
        result = await self.session.execute(
            select(NoteAttachment.storage_path)
            .join(Note, Note.id == NoteAttachment.note_id)
            .where(Note.owner_id == owner_id)
        )
        return list(result.scalars().all())
