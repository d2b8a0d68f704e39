"""Multi-file upload: owner resolution, per-file transform and write, one atomic metadata insert.

Files are written as soon as each transform finishes. If a later file fails or
the metadata insert fails, the files already on disk stay there and no record
of the batch is created; sweeping such orphans is left to an external janitor.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from uuid import UUID

from photobank.core.config import Settings, get_settings
from photobank.core.errors import TransformError, ValidationError
from photobank.db.models import Image
from photobank.services.image_transform import TransformOptions, transform
from photobank.services.records import ImageRecordStore, UserDirectory
from photobank.services.storage import StorageContext
from photobank.services.upload_validation import IncomingFile, sanitize_base_name, validate_content_types

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    index: int
    storage_path: str


def batch_stamp() -> int:
    """Milliseconds since the epoch, shared by every file of one batch."""
    return int(time.time() * 1000)


def output_name(stamp: int, base: str, index: int, extension: str) -> str:
    return f"{stamp}-{base}_{index}.{extension}"


class UploadPipeline:
    def __init__(
        self,
        storage: StorageContext,
        users: UserDirectory,
        records: ImageRecordStore,
        settings: Settings | None = None,
    ) -> None:
        self._storage = storage
        self._users = users
        self._records = records
        self._settings = settings or get_settings()

    async def _resolve_owner_name(self, owner_id: UUID | None) -> str:
        if owner_id is None:
            raise ValidationError("Missing owner id", code="missing_owner")
        user = await self._users.find_by_id(owner_id)
        if user is None:
            raise ValidationError("User does not exist", code="owner_not_found")
        if not user.username or not user.username.strip():
            raise ValidationError("User has no username", code="missing_username")
        return user.username

    def _check_batch(self, files: list[IncomingFile]) -> None:
        if len(files) < self._settings.min_upload_files:
            raise ValidationError(
                f"Upload at least {self._settings.min_upload_files} images",
                code="not_enough_files",
            )
        validate_content_types(files, self._settings)

    async def ensure_user_directory(self, username: str) -> str:
        """Create images/<username> if absent. Idempotent; returns the directory key."""
        # A username with separators would land inside another user's directory
        self._storage.images.namespace(username)
        await asyncio.to_thread(self._storage.images.ensure_directory, username)
        return username

    async def _process_one(
        self,
        directory: str,
        stamp: int,
        index: int,
        incoming: IncomingFile,
        options: TransformOptions,
    ) -> StoredFile:
        base = sanitize_base_name(incoming.filename)
        try:
            result = await asyncio.to_thread(transform, incoming.data, options)
        except TransformError as e:
            raise e.for_file(index, incoming.filename) from e
        key = f"{directory}/{output_name(stamp, base, index, result.extension)}"
        path = await asyncio.to_thread(self._storage.images.write_object, key, result.data)
        logger.debug("Stored %s (%dx%d, %d bytes)", key, result.width, result.height, len(result.data))
        return StoredFile(index=index, storage_path=self._storage.images.relative_key(path))

    async def upload(
        self,
        owner_id: UUID | None,
        files: list[IncomingFile],
        options: TransformOptions,
    ) -> list[Image]:
        """Transform and store a batch, then insert one ImageRecord per file (approved=False)."""
        username = await self._resolve_owner_name(owner_id)
        self._check_batch(files)

        directory = await self.ensure_user_directory(username)
        stamp = batch_stamp()
        results = await asyncio.gather(
            *(self._process_one(directory, stamp, i, f, options) for i, f in enumerate(files)),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            written = len(results) - len(failures)
            logger.warning(
                "Upload batch for owner %s aborted: %d of %d files failed, %d written without metadata",
                owner_id, len(failures), len(files), written,
            )
            raise failures[0]

        stored = sorted(results, key=lambda r: r.index)
        records = [Image(owner_id=owner_id, storage_path=s.storage_path, approved=False) for s in stored]
        saved = await self._records.insert_many(records)
        logger.info("Stored %d images for owner %s", len(saved), owner_id)
        return saved
