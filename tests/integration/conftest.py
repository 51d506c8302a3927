"""
Integration Test Fixtures.

The real app over httpx, sharing the test session, with uploads in a
per-test temporary directory. Users all share TEST_PASSWORD.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.database import get_db_session
from notekeeper.backend.core.security import create_access_token, hash_password
from notekeeper.backend.models.user import User, UserRole
from notekeeper.backend.storage.local import LocalFileStorage

TEST_PASSWORD = "correct-horse-battery"


@lru_cache
def _password_hash() -> str:
    """Hash TEST_PASSWORD once per run."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def upload_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point attachment storage at a per-test temporary directory."""
    root = tmp_path / "uploads"
    monkeypatch.setattr(
        LocalFileStorage,
        "from_config",
        classmethod(lambda cls: cls(root)),
    )
    return root


@pytest.fixture
async def client(
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    from notekeeper.backend.main import create_app

    async def _shared_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app = create_app()
    app.dependency_overrides[get_db_session] = _shared_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """
    Factory that inserts a user with TEST_PASSWORD.

    Usage:
        carol = await make_user("carol")
    """

    async def _make(username: str, role: UserRole = UserRole.USER) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=_password_hash(),
            role=role.value,
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
async def alice(make_user) -> User:
    return await make_user("alice")


@pytest.fixture
async def bob(make_user) -> User:
    return await make_user("bob")


@pytest.fixture
async def root_admin(make_user) -> User:
    return await make_user("root", role=UserRole.ADMIN)


def bearer(user: User) -> dict[str, str]:
    """Authorization header carrying a fresh access token for user."""
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    """Build Authorization headers for any user created in a test."""
    return bearer


@pytest.fixture
def user_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def alice_headers(alice: User) -> dict[str, str]:
    return bearer(alice)


@pytest.fixture
def bob_headers(bob: User) -> dict[str, str]:
    return bearer(bob)


@pytest.fixture
def admin_headers(root_admin: User) -> dict[str, str]:
    return bearer(root_admin)


class ApiAssertions:
    """Envelope checks shared by the API tests; each returns the parsed body."""

    @staticmethod
    def _body(response: Any, status: int) -> dict[str, Any]:
        assert response.status_code == status, f"{response.status_code} != {status}: {response.text}"
        return response.json()

    def assert_success(self, response: Any, expected_status: int = 200) -> dict[str, Any]:
        body = self._body(response, expected_status)
        assert body["success"] is True, body
        assert body["error"] is None, body
        return body

    def assert_error(
        self,
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        body = self._body(response, expected_status)
        assert body["success"] is False, body
        assert body["data"] is None, body
        if expected_code:
            assert body["error"]["code"] == expected_code, body["error"]
        return body

    def assert_validation_error(self, response: Any, field: str | None = None) -> dict[str, Any]:
        """400 VAL_REQUEST_INVALID, optionally naming `field` in one of the errors."""
        body = self.assert_error(response, 400, "VAL_REQUEST_INVALID")
        if field:
            fields = [e["field"] for e in body["error"]["details"]["validation_errors"]]
            assert any(field in f for f in fields), fields
        return body


@pytest.fixture
def api() -> ApiAssertions:
    return ApiAssertions()
