"""Avatar replacement: store the uploaded file as-is under avatars/<username>/ and repoint the user."""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from photobank.core.config import Settings, get_settings
from photobank.core.errors import ConfinementError, NotFoundError
from photobank.core.path_guard import normalize_avatar_path
from photobank.db.models import User
from photobank.services.audit import log_audit
from photobank.services.records import UserDirectory
from photobank.services.storage import StorageContext
from photobank.services.upload_pipeline import batch_stamp
from photobank.services.upload_validation import IncomingFile, avatar_extension, sanitize_base_name

logger = logging.getLogger(__name__)


class AvatarService:
    def __init__(
        self,
        db: AsyncSession,
        storage: StorageContext,
        users: UserDirectory,
        settings: Settings | None = None,
    ) -> None:
        self._db = db
        self._storage = storage
        self._users = users
        self._settings = settings or get_settings()

    async def _remove_previous(self, stored: str) -> None:
        try:
            await asyncio.to_thread(self._storage.avatars.delete_object, normalize_avatar_path(stored))
        except ConfinementError:
            logger.warning("Previous avatar path escapes the avatar root; not removed")
        except OSError:
            logger.exception("Could not remove previous avatar")

    async def replace_avatar(self, username: str, incoming: IncomingFile) -> User:
        user = await self._users.find_by_username(username)
        if user is None:
            raise NotFoundError("User not found")
        ext = avatar_extension(incoming.filename, self._settings)
        self._storage.avatars.namespace(user.username)

        await asyncio.to_thread(self._storage.avatars.ensure_directory, user.username)
        name = f"{batch_stamp()}-{sanitize_base_name(incoming.filename)}{ext}"
        path = await asyncio.to_thread(
            self._storage.avatars.write_object, f"{user.username}/{name}", incoming.data
        )
        previous = user.avatar_path
        user.avatar_path = self._storage.avatars.relative_key(path)
        await log_audit(self._db, "avatar_replaced", subject_id=user.id)
        await self._users.save(user)
        if previous and previous != user.avatar_path:
            await self._remove_previous(previous)
        logger.info("Avatar replaced for user %s", user.id)
        return user
