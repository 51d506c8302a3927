"""
User Repository.

Data access layer for user accounts.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.models.user import User
from notekeeper.backend.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    model = User

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email (case-insensitive)."""
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by exact username."""
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def exists_by_username_or_email(self, username: str, email: str) -> bool:
        """Check whether either identifier is already registered."""
        result = await self.session.execute(
            select(User.id)
            .where(or_(User.username == username, User.email == email.strip().lower()))
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_users(self, limit: int = 50, offset: int = 0) -> list[User]:
        """
        List users, newest first.

        Args:
            limit: Maximum number of users to return
            offset: Number of users to skip

        Returns:
            List of users
        """
        result = await self.session.execute(
            select(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
