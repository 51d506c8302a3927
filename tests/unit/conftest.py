"""
Unit Test Fixtures.

Mocked sessions plus ready-made identities and notes. Nothing here
opens a database connection.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from notekeeper.backend.core.security import Identity
from notekeeper.backend.models.note import Note, NoteTag


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Provides a fully mocked AsyncSession with common methods.
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


# =============================================================================
# Identity and Note Fixtures
# =============================================================================


@pytest.fixture
def owner() -> Identity:
    return Identity(user_id="user-owner", role="user")


@pytest.fixture
def stranger() -> Identity:
    return Identity(user_id="user-stranger", role="user")


@pytest.fixture
def admin() -> Identity:
    return Identity(user_id="user-admin", role="admin")


@pytest.fixture
def make_note():
    """
    Build a transient Note (never added to a session).

    Usage:
        note = make_note(visibility="public")
    """

    def _make(**overrides) -> Note:
        fields = {
            "id": "note-1",
            "title": "Groceries",
            "description": "milk, eggs",
            "category": "personal",
            "priority": "medium",
            "status": "active",
            "visibility": "private",
            "owner_id": "user-owner",
        }
        tags = overrides.pop("tags", [])
        fields.update(overrides)
        note = Note(**fields)
        note.tag_links = [NoteTag(name=tag) for tag in tags]
        return note

    return _make
