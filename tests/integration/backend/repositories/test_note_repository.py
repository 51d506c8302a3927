"""
Integration Tests for NoteRepository.

Runs queries against the test database.
"""

from datetime import datetime

import pytest

from notekeeper.backend.models.note import Note, NoteAttachment, NoteTag
from notekeeper.backend.models.user import User
from notekeeper.backend.repositories.note import NoteFilters, NoteRepository


@pytest.fixture
async def owners(db_session) -> tuple[User, User]:
    first = User(username="first", email="first@example.com", password_hash="x", role="user")
    second = User(username="second", email="second@example.com", password_hash="x", role="user")
    db_session.add_all([first, second])
    await db_session.flush()
    return first, second


@pytest.fixture
def repo(db_session) -> NoteRepository:
    return NoteRepository(db_session)


async def _note(repo: NoteRepository, owner: User, title: str, **fields) -> Note:
    tags = fields.pop("tags", [])
    defaults = {
        "description": "body",
        "date": datetime(2024, 1, 1),
        "category": "personal",
        "priority": "medium",
        "status": "active",
        "visibility": "private",
    }
    defaults.update(fields)
    return await repo.create(
        title=title,
        owner_id=owner.id,
        tag_links=[NoteTag(name=tag) for tag in tags],
        **defaults,
    )


class TestLiveNotes:
    @pytest.mark.asyncio
    async def test_deleted_notes_are_invisible(self, repo, owners):
        first, _ = owners
        kept = await _note(repo, first, "kept")
        gone = await _note(repo, first, "gone", status="deleted")

        assert await repo.get_live(kept.id) is not None
        assert await repo.get_live(gone.id) is None
        assert [n.title for n in await repo.list_live(owner_id=first.id)] == ["kept"]
        assert await repo.count_live(owner_id=first.id) == 1

    @pytest.mark.asyncio
    async def test_owner_scope(self, repo, owners):
        first, second = owners
        await _note(repo, first, "a")
        await _note(repo, second, "b")

        assert await repo.count_live(owner_id=second.id) == 1
        assert await repo.count_live() == 2


class TestSearch:
    @pytest.mark.asyncio
    async def test_combined_filters(self, repo, owners):
        first, _ = owners
        await _note(repo, first, "Plan trip", category="travel", tags=["summer"])
        await _note(repo, first, "Plan budget", category="money", tags=["summer"])
        await _note(repo, first, "Trip photos", category="travel")

        results = await repo.search(
            NoteFilters(query="plan", category="travel", tag="summer"),
            owner_id=first.id,
        )

        assert [n.title for n in results] == ["Plan trip"]

    @pytest.mark.asyncio
    async def test_backslash_is_literal(self, repo, owners):
        first, _ = owners
        await _note(repo, first, r"C:\temp")
        await _note(repo, first, "temp")

        results = await repo.search(NoteFilters(query="\\"), owner_id=first.id)
        assert [n.title for n in results] == [r"C:\temp"]


class TestBulkAndAttachments:
    @pytest.mark.asyncio
    async def test_soft_delete_many_counts_live_rows_only(self, repo, owners):
        first, second = owners
        await _note(repo, first, "a")
        await _note(repo, first, "b", status="deleted")
        await _note(repo, second, "c")

        assert await repo.soft_delete_many(owner_id=first.id) == 1
        assert await repo.count_live() == 1
        assert await repo.soft_delete_many() == 1
        assert await repo.count_live() == 0

    @pytest.mark.asyncio
    async def test_attachment_lookup_is_scoped_to_note(self, repo, owners):
        first, _ = owners
        note = await _note(repo, first, "with file")
        other = await _note(repo, first, "without file")

        attachment = await repo.add_attachment(
            note,
            filename="a.txt",
            storage_path=f"{note.id}/x_a.txt",
            mime_type="text/plain",
            size_bytes=1,
        )

        assert isinstance(attachment, NoteAttachment)
        assert [a.id for a in note.attachments] == [attachment.id]
        assert await repo.get_attachment(note.id, attachment.id) is not None
        assert await repo.get_attachment(other.id, attachment.id) is None
        assert await repo.attachment_paths_for_owner(first.id) == [f"{note.id}/x_a.txt"]
