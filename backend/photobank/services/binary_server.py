"""Serve stored images and avatars as streamed bytes with cache and disposition headers."""
import logging
import mimetypes
from collections.abc import Iterator
from dataclasses import dataclass
from email.utils import formatdate
from pathlib import Path

from photobank.core.config import Settings, get_settings
from photobank.core.errors import NotFoundError
from photobank.core.path_guard import normalize_avatar_path
from photobank.db.models import Image, User
from photobank.services.storage import LocalStorage, StorageContext

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ServedFile:
    path: Path
    size: int
    mtime: float
    media_type: str

    @property
    def filename(self) -> str:
        # Printable ASCII only; quotes and backslashes would break out of the parameter
        name = "".join(c for c in self.path.name if " " <= c <= "~" and c not in "\"\\")
        return name or "file"

    def headers(self, max_age: int) -> dict[str, str]:
        return {
            "Content-Length": str(self.size),
            "Last-Modified": formatdate(self.mtime, usegmt=True),
            "Cache-Control": f"public, max-age={max_age}",
            "Content-Disposition": f'inline; filename="{self.filename}"',
        }


def guess_media_type(path: Path) -> str:
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type or DEFAULT_MEDIA_TYPE


def iter_file(path: Path, chunk_size: int) -> Iterator[bytes]:
    """Yield the file in chunks. A read error ends the stream early instead of raising."""
    try:
        with open(path, "rb") as fh:
            while chunk := fh.read(chunk_size):
                yield chunk
    except OSError:
        logger.exception("Read failed mid-stream; terminating response")


class BinaryServer:
    def __init__(self, storage: StorageContext, settings: Settings | None = None) -> None:
        self._storage = storage
        self._settings = settings or get_settings()

    @property
    def cache_max_age(self) -> int:
        return self._settings.cache_max_age_seconds

    @property
    def chunk_size(self) -> int:
        return self._settings.stream_chunk_size

    def _stat(self, backend: LocalStorage, key: str) -> ServedFile:
        # ConfinementError propagates: fail closed, no fallback path
        try:
            obj = backend.stat_object(key)
        except FileNotFoundError:
            raise NotFoundError("File not found")
        return ServedFile(path=obj.path, size=obj.size, mtime=obj.mtime, media_type=guess_media_type(obj.path))

    def serve_image(self, record: Image) -> ServedFile:
        return self._stat(self._storage.images, record.storage_path)

    def serve_avatar(self, user: User) -> ServedFile:
        if not user.avatar_path:
            raise NotFoundError("Avatar not found")
        return self._stat(self._storage.avatars, normalize_avatar_path(user.avatar_path))

    def stream(self, served: ServedFile) -> Iterator[bytes]:
        return iter_file(served.path, self.chunk_size)
