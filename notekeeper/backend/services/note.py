"""
Note Service.

Business logic layer for notes. Enforces who may read and change a
note, walks the status state machine, builds search filters, and
handles attachments.

Access rules:
    - Admins may read and change every note.
    - Owners may read and change their own notes.
    - Anyone authenticated may read a public note.
    - Deleted notes do not exist as far as any caller can tell.
"""

import mimetypes
from pathlib import Path
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.config import get_app_config
from notekeeper.backend.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from notekeeper.backend.core.security import Identity, ensure_role
from notekeeper.backend.core.utils import to_naive_utc, utc_now
from notekeeper.backend.models.note import Note, NoteAttachment, NoteStatus, NoteTag
from notekeeper.backend.models.user import UserRole
from notekeeper.backend.repositories.note import NoteFilters, NoteRepository
from notekeeper.backend.schemas.note import NoteCreate, NoteUpdate
from notekeeper.backend.services.base import BaseService
from notekeeper.backend.storage.local import LocalFileStorage, sanitize_filename

# Deleted is terminal and never reachable as a source state
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    NoteStatus.ACTIVE.value: frozenset({NoteStatus.ARCHIVED.value, NoteStatus.DELETED.value}),
    NoteStatus.ARCHIVED.value: frozenset({NoteStatus.ACTIVE.value, NoteStatus.DELETED.value}),
    NoteStatus.DELETED.value: frozenset(),
}


class UploadSource(Protocol):
    """Anything shaped like a Starlette UploadFile."""

    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


class NoteService(BaseService):
    """
    Service for note business logic.

    Every public method takes the caller's Identity and applies the
    ownership and visibility rules before touching data.
    """

    def __init__(self, session: AsyncSession, storage: LocalFileStorage | None = None) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)
        self._storage = storage

    @property
    def storage(self) -> LocalFileStorage:
        if self._storage is None:
            self._storage = LocalFileStorage.from_config()
        return self._storage

    # -------------------------------------------------------------------------
    # Access helpers
    # -------------------------------------------------------------------------

    async def _get_live(self, note_id: str) -> Note:
        note = await self.repo.get_live(note_id)
        if note is None:
            raise NotFoundError("Note not found")
        return note

    def _ensure_can_modify(self, note: Note, identity: Identity) -> None:
        if identity.is_admin or note.owner_id == identity.user_id:
            return
        self._logger.warning(
            "Note modification denied",
            extra={"note_id": note.id, "user_id": identity.user_id},
        )
        raise AuthorizationError("You do not have permission to modify this note")

    def _ensure_can_read(self, note: Note, identity: Identity) -> None:
        if note.is_visible_to(identity.user_id, identity.is_admin):
            return
        self._logger.warning(
            "Note read denied",
            extra={"note_id": note.id, "user_id": identity.user_id},
        )
        raise AuthorizationError("You do not have permission to view this note")

    def _transition(self, note: Note, target: str) -> None:
        """Move note to target status; same-state moves are no-ops."""
        if note.status == target:
            return
        if target not in STATUS_TRANSITIONS[note.status]:
            raise ValidationError(
                "Invalid status transition",
                details={"from": note.status, "to": target},
            )
        note.status = target

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def create_note(self, data: NoteCreate, identity: Identity) -> Note:
        """
        Create a note owned by the caller.

        Args:
            data: Note creation data
            identity: Caller

        Returns:
            Created note with status active

        Raises:
            ValidationError: If title or description is blank
        """
        self._validate_required(
            {"title": data.title, "description": data.description},
            ["title", "description"],
        )
        self._log_operation("Creating note", owner_id=identity.user_id)

        note = await self._execute_db_operation(
            "create_note",
            self.repo.create(
                title=data.title.strip(),
                description=data.description,
                date=to_naive_utc(data.date) if data.date else utc_now(),
                category=data.category.strip(),
                priority=data.priority.value,
                visibility=data.visibility.value,
                status=NoteStatus.ACTIVE.value,
                owner_id=identity.user_id,
                tag_links=[NoteTag(name=tag) for tag in data.tags],
            ),
        )

        self._log_debug("Note created", note_id=note.id)
        return note

    async def get_note(self, note_id: str, identity: Identity) -> Note:
        """
        Get a note the caller may read.

        Raises:
            NotFoundError: If the note does not exist or is deleted
            AuthorizationError: If the note is private and not the caller's
        """
        note = await self._get_live(note_id)
        self._ensure_can_read(note, identity)
        return note

    async def list_notes(
        self,
        identity: Identity,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Note], int]:
        """
        List notes in the caller's scope with total count for pagination.

        Admins see every owner's notes; everyone else sees their own.
        Deleted notes are never included.

        Returns:
            Tuple of (notes list, total count)
        """
        owner_id = None if identity.is_admin else identity.user_id
        notes = await self.repo.list_live(owner_id=owner_id, limit=limit, offset=offset)
        total = await self.repo.count_live(owner_id=owner_id)
        return notes, total

    async def update_note(self, note_id: str, data: NoteUpdate, identity: Identity) -> Note:
        """
        Partially update a note. Unspecified fields keep their values.

        Raises:
            NotFoundError: If the note does not exist or is deleted
            AuthorizationError: If the caller is neither owner nor admin
            ValidationError: If a supplied title or description is blank
        """
        note = await self._get_live(note_id)
        self._ensure_can_modify(note, identity)

        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not update_data:
            return note

        for name in ("title", "description"):
            if name in update_data:
                self._validate_required(update_data, [name])

        self._log_operation(
            "Updating note",
            note_id=note_id,
            fields=sorted(update_data),
        )

        if "title" in update_data:
            note.title = update_data["title"].strip()
        if "description" in update_data:
            note.description = update_data["description"]
        if "date" in update_data:
            note.date = to_naive_utc(update_data["date"])
        if "category" in update_data:
            note.category = update_data["category"].strip()
        if "priority" in update_data:
            note.priority = data.priority.value
        if "visibility" in update_data:
            note.visibility = data.visibility.value
        if "tags" in update_data:
            note.set_tags(update_data["tags"])
        if "status" in update_data:
            self._transition(note, data.status.value)

        return await self._execute_db_operation("update_note", self.repo.save(note))

    async def update_status(self, note_id: str, status: NoteStatus, identity: Identity) -> Note:
        """
        Change only the status of a note.

        Same access rules as update_note.
        """
        note = await self._get_live(note_id)
        self._ensure_can_modify(note, identity)

        self._log_operation(
            "Changing note status",
            note_id=note_id,
            from_status=note.status,
            to_status=status.value,
        )
        self._transition(note, status.value)
        return await self._execute_db_operation("update_status", self.repo.save(note))

    async def delete_note(self, note_id: str, identity: Identity) -> None:
        """
        Soft delete a note. Deleting it again raises NotFoundError.

        Raises:
            NotFoundError: If the note does not exist or is already deleted
            AuthorizationError: If the caller is neither owner nor admin
        """
        note = await self._get_live(note_id)
        self._ensure_can_modify(note, identity)

        self._log_operation("Deleting note", note_id=note_id)
        self._transition(note, NoteStatus.DELETED.value)
        await self._execute_db_operation("delete_note", self.repo.save(note))

    async def delete_all(
        self,
        identity: Identity,
        all_owners: bool = False,
        confirm: bool = False,
    ) -> int:
        """
        Soft delete notes in bulk (admin only).

        By default only the admin's own notes are affected. Reaching
        every owner needs both all_owners and confirm.

        Returns:
            Number of notes marked deleted

        Raises:
            AuthorizationError: If the caller is not an admin
            ValidationError: If all_owners is requested without confirm
        """
        ensure_role(identity, {UserRole.ADMIN.value})
        if all_owners and not confirm:
            raise ValidationError(
                "Deleting notes of every owner requires confirm=true",
                details={"all_owners": True, "confirm": False},
            )

        owner_id = None if all_owners else identity.user_id
        count = await self._execute_db_operation(
            "delete_all",
            self.repo.soft_delete_many(owner_id=owner_id),
        )
        self._log_operation(
            "Bulk deleted notes",
            admin_id=identity.user_id,
            all_owners=all_owners,
            deleted=count,
        )
        return count

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search_notes(
        self,
        identity: Identity,
        filters: NoteFilters,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Note]:
        """
        Search notes in the caller's scope.

        Non-admin callers are always restricted to their own notes,
        whatever filters they pass. An empty query lists the scope.

        Raises:
            ValidationError: If status=deleted or date_from > date_to
        """
        if filters.status == NoteStatus.DELETED.value:
            raise ValidationError(
                "Deleted notes cannot be searched",
                details={"status": filters.status},
            )

        date_from = to_naive_utc(filters.date_from) if filters.date_from else None
        date_to = to_naive_utc(filters.date_to) if filters.date_to else None
        if date_from and date_to and date_from > date_to:
            raise ValidationError(
                "date_from must not be after date_to",
                details={"date_from": date_from.isoformat(), "date_to": date_to.isoformat()},
            )

        query = filters.query.strip() if filters.query else None
        tag = filters.tag.strip().lower() if filters.tag else None
        normalized = NoteFilters(
            query=query or None,
            category=filters.category,
            priority=filters.priority,
            tag=tag or None,
            status=filters.status,
            visibility=filters.visibility,
            date_from=date_from,
            date_to=date_to,
        )

        owner_id = None if identity.is_admin else identity.user_id
        self._log_debug("Searching notes", query=query, owner_id=owner_id)
        return await self.repo.search(normalized, owner_id=owner_id, limit=limit, offset=offset)

    # -------------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------------

    def _resolve_mime_type(self, upload: UploadSource, filename: str) -> str:
        mime_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
        if not mime_type or mime_type == "application/octet-stream":
            guessed, _ = mimetypes.guess_type(filename)
            mime_type = guessed or "application/octet-stream"
        return mime_type

    async def add_attachment(
        self,
        note_id: str,
        upload: UploadSource,
        identity: Identity,
    ) -> NoteAttachment:
        """
        Store an uploaded file on a note.

        Nothing is written unless the file passes every check.

        Raises:
            NotFoundError: If the note does not exist or is deleted
            AuthorizationError: If the caller is neither owner nor admin
            ValidationError: If the file is empty or its type is not allowed
            PayloadTooLargeError: If the file exceeds the configured ceiling
        """
        note = await self._get_live(note_id)
        self._ensure_can_modify(note, identity)

        storage_config = get_app_config().storage
        filename = sanitize_filename(upload.filename)

        # size first: an oversize upload is always 413, whatever its type
        max_bytes = storage_config.max_upload_bytes
        content = await upload.read(max_bytes + 1)
        if len(content) > max_bytes:
            raise PayloadTooLargeError(
                f"File exceeds the {max_bytes} byte limit",
                max_bytes=max_bytes,
            )
        if not content:
            raise ValidationError("Uploaded file is empty", details={"filename": filename})

        mime_type = self._resolve_mime_type(upload, filename)
        if mime_type not in storage_config.allowed_mime_types:
            raise ValidationError(
                "File type not allowed",
                details={"mime_type": mime_type, "allowed": storage_config.allowed_mime_types},
            )

        storage_path = await self.storage.save(note.id, filename, content)
        self._log_operation(
            "Attachment stored",
            note_id=note.id,
            filename=filename,
            size_bytes=len(content),
        )

        try:
            return await self._execute_db_operation(
                "add_attachment",
                self.repo.add_attachment(
                    note,
                    filename=filename,
                    storage_path=storage_path,
                    mime_type=mime_type,
                    size_bytes=len(content),
                ),
            )
        except Exception:
            await self.storage.delete_many([storage_path])
            raise

    async def get_attachment(
        self,
        note_id: str,
        attachment_id: str,
        identity: Identity,
    ) -> tuple[NoteAttachment, Path]:
        """
        Locate an attachment the caller may read.

        Returns:
            Tuple of (attachment metadata, absolute file path)

        Raises:
            NotFoundError: If the note, attachment, or file is missing
            AuthorizationError: Under the same rules as get_note
        """
        await self.get_note(note_id, identity)

        attachment = await self.repo.get_attachment(note_id, attachment_id)
        if attachment is None:
            raise NotFoundError("Attachment not found")

        path = self.storage.resolve(attachment.storage_path)
        if not path.is_file():
            self._logger.error(
                "Attachment file missing on disk",
                extra={"attachment_id": attachment.id, "path": attachment.storage_path},
            )
            raise NotFoundError("Attachment not found")
        return attachment, path
