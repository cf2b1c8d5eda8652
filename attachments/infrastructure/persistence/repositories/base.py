"""Shared unit-of-work steps for SQLAlchemy repositories."""

from typing import Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from attachments.infrastructure.persistence.database import Base


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Add, flush and remove rows in the caller's session; never commits.

    Subclasses may override _on_after_create and _on_before_delete.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def _add(self, obj: ModelType) -> ModelType:
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        await self._on_after_create(obj)
        return obj

    async def _update(self, obj: ModelType) -> ModelType:
        """Flush pending changes on an already attached row and reload it."""
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def _remove(self, obj: ModelType) -> None:
        await self._on_before_delete(obj)
        await self.db.delete(obj)
        await self.db.flush()

    async def _on_after_create(self, obj: ModelType) -> None:
        pass

    async def _on_before_delete(self, obj: ModelType) -> None:
        pass
