"""User directory and image metadata store over an AsyncSession."""
import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from photobank.core.errors import StorageError
from photobank.db.models import Image, User

logger = logging.getLogger(__name__)


class UserDirectory:
    """Read access to users; records are created elsewhere."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_by_id(self, user_id: UUID) -> User | None:
        result = await self._db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> User | None:
        result = await self._db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def save(self, user: User) -> User:
        try:
            self._db.add(user)
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise StorageError("Could not save user") from e
        return user


class ImageRecordStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def insert_many(self, records: list[Image]) -> list[Image]:
        """Insert the whole batch in one transaction: all rows become visible or none do."""
        try:
            self._db.add_all(records)
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error("Bulk insert of %d image records failed", len(records))
            raise StorageError("Could not save image metadata") from e
        return records

    async def find_by_id(self, image_id: UUID) -> Image | None:
        result = await self._db.execute(select(Image).where(Image.id == image_id))
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: UUID) -> list[Image]:
        result = await self._db.execute(
            select(Image).where(Image.owner_id == owner_id).order_by(Image.created_at)
        )
        return list(result.scalars().all())

    async def save(self, record: Image) -> Image:
        try:
            self._db.add(record)
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise StorageError("Could not save image metadata") from e
        return record

    async def delete_by_owner(self, owner_id: UUID) -> int:
        """Delete every record of owner_id regardless of approval state. Returns the row count."""
        try:
            result = await self._db.execute(delete(Image).where(Image.owner_id == owner_id))
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise StorageError("Could not delete image metadata") from e
        return result.rowcount or 0
