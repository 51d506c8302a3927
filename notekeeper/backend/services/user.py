"""
User Service.

Admin-only account administration.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.exceptions import ValidationError
from notekeeper.backend.core.security import Identity, ensure_role
from notekeeper.backend.models.user import User, UserRole
from notekeeper.backend.repositories.note import NoteRepository
from notekeeper.backend.repositories.user import UserRepository
from notekeeper.backend.services.base import BaseService
from notekeeper.backend.storage.local import LocalFileStorage


class UserService(BaseService):
    """Service for listing and removing user accounts."""

    def __init__(self, session: AsyncSession, storage: LocalFileStorage | None = None) -> None:
        super().__init__(session)
        self.repo = UserRepository(session)
        self.note_repo = NoteRepository(session)
        self._storage = storage

    @property
    def storage(self) -> LocalFileStorage:
        if self._storage is None:
            self._storage = LocalFileStorage.from_config()
        return self._storage

    async def list_users(
        self,
        identity: Identity,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        """List accounts newest first, with total count."""
        ensure_role(identity, {UserRole.ADMIN.value})
        users = await self.repo.list_users(limit=limit, offset=offset)
        total = await self.repo.count()
        return users, total

    async def delete_user(self, user_id: str, identity: Identity) -> None:
        """
        Physically remove a user with every note and attachment they own.

        Raises:
            AuthorizationError: If the caller is not an admin
            ValidationError: If an admin targets their own account
            NotFoundError: If the user does not exist
        """
        ensure_role(identity, {UserRole.ADMIN.value})
        if user_id == identity.user_id:
            raise ValidationError(
                "Admins cannot delete their own account",
                details={"user_id": user_id},
            )

        user = await self.repo.get_by_id(user_id)
        paths = await self.note_repo.attachment_paths_for_owner(user.id)

        self._log_operation(
            "Deleting user",
            user_id=user.id,
            admin_id=identity.user_id,
            attachments=len(paths),
        )
        await self._execute_db_operation("delete_user", self.repo.delete(user))

        removed = await self.storage.delete_many(paths)
        self._log_debug("User files removed", user_id=user_id, removed=removed)
