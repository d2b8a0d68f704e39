"""Moderation: approve one image, or reject and purge everything its owner uploaded.

Rejection is owner-wide. The image id only identifies the owner; the owner's
whole images/<username> directory and every ImageRecord of that owner are
deleted, approved ones included. The endpoint name suggests single-image scope;
do not narrow it without product confirmation.

A purge is not isolated from an upload in flight for the same owner: files or
records written by that upload after the purge may survive it.
"""
import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from photobank.core.errors import ConfinementError, NotFoundError
from photobank.db.models import Image
from photobank.services.audit import log_audit
from photobank.services.records import ImageRecordStore, UserDirectory
from photobank.services.storage import StorageContext

logger = logging.getLogger(__name__)

APPROVED = "approved"
PURGED = "purged"


@dataclass(frozen=True)
class ModerationResult:
    state: str
    image: Image | None = None
    owner_id: UUID | None = None
    deleted_records: int = 0
    directory_removed: bool = False


class ModerationService:
    def __init__(
        self,
        db: AsyncSession,
        storage: StorageContext,
        users: UserDirectory,
        records: ImageRecordStore,
    ) -> None:
        self._db = db
        self._storage = storage
        self._users = users
        self._records = records

    async def moderate(self, image_id: UUID, approve: bool) -> ModerationResult:
        if approve:
            return await self.approve(image_id)
        return await self.reject(image_id)

    async def approve(self, image_id: UUID) -> ModerationResult:
        """Set approved=True. Approving an approved image changes nothing."""
        record = await self._records.find_by_id(image_id)
        if record is None:
            raise NotFoundError("Image not found")
        if record.approved:
            return ModerationResult(state=APPROVED, image=record, owner_id=record.owner_id)
        record.approved = True
        await log_audit(self._db, "image_approved", subject_id=record.id, event_data={"owner_id": str(record.owner_id)})
        await self._records.save(record)
        logger.info("Image %s approved", record.id)
        return ModerationResult(state=APPROVED, image=record, owner_id=record.owner_id)

    async def _remove_owner_directory(self, username: str) -> bool:
        """Best effort: failures are logged and never block metadata deletion."""
        try:
            self._storage.images.namespace(username)
            return await asyncio.to_thread(self._storage.images.delete_tree, username)
        except ConfinementError:
            logger.warning("Owner directory is not a single segment below the images root; skipping file removal")
        except OSError:
            logger.exception("Could not remove owner directory; continuing with metadata purge")
        return False

    async def reject(self, image_id: UUID) -> ModerationResult:
        record = await self._records.find_by_id(image_id)
        if record is None:
            raise NotFoundError("Image not found")
        owner = await self._users.find_by_id(record.owner_id)
        if owner is None:
            raise NotFoundError("Owner not found", code="owner_not_found")

        removed = False
        if owner.username:
            removed = await self._remove_owner_directory(owner.username)
        else:
            logger.warning("Owner %s has no username; skipping file removal", owner.id)

        await log_audit(
            self._db,
            "owner_purged",
            subject_id=owner.id,
            event_data={"image_id": str(image_id), "directory_removed": removed},
        )
        deleted = await self._records.delete_by_owner(owner.id)
        logger.info("Purged owner %s: %d records, directory removed=%s", owner.id, deleted, removed)
        return ModerationResult(state=PURGED, owner_id=owner.id, deleted_records=deleted, directory_removed=removed)
