"""
Base Repository.

Primary-key lookup, counting and unit-of-work helpers shared by the
user and note repositories. Nothing here commits: the request-scoped
session commits once the handler returns.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.exceptions import NotFoundError
from notekeeper.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Subclasses bind the mapped class:

        class UserRepository(BaseRepository[User]):
            model = User
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id_or_none(self, id: str) -> ModelType | None:
        return await self.session.get(self.model, str(id))

    async def get_by_id(self, id: str) -> ModelType:
        """Raises NotFoundError naming the model when the row is absent."""
        instance = await self.get_by_id_or_none(id)
        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return instance

    async def count(self) -> int:
        return (await self.session.execute(select(func.count()).select_from(self.model))).scalar_one()

    async def create(self, **values: Any) -> ModelType:
        instance = self.model(**values)
        self.session.add(instance)
        return await self.save(instance)

    async def save(self, instance: ModelType) -> ModelType:
        """Flush pending changes and reload server-side defaults."""
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, instance: ModelType) -> None:
        """Hard delete; ORM cascades apply."""
        await self.session.delete(instance)
        await self.session.flush()
