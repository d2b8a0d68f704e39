"""Upload validation: safe base names, content-type allowlist, count/size limits at the ingestion boundary."""
import os
import re
from dataclasses import dataclass

from fastapi import UploadFile

from photobank.core.config import Settings, get_settings
from photobank.core.errors import InvalidTypeError, ValidationError

DEFAULT_BASE_NAME = "image"
MAX_BASE_NAME_LENGTH = 100

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


@dataclass(frozen=True)
class IncomingFile:
    """One fully-read file of a multipart request."""

    filename: str | None
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def sanitize_base_name(filename: str | None) -> str:
    """Filesystem-safe base name: no extension, no separators, [a-z0-9_-] only, never empty."""
    if not filename:
        return DEFAULT_BASE_NAME
    base = os.path.basename(filename)
    stem, _ext = os.path.splitext(base)
    safe = _UNSAFE_CHARS.sub("_", stem).lower()[:MAX_BASE_NAME_LENGTH]
    return safe or DEFAULT_BASE_NAME


def allowed_image_types(settings: Settings | None = None) -> frozenset[str]:
    s = settings or get_settings()
    return frozenset(t.strip().lower() for t in s.image_content_types.split(",") if t.strip())


def is_content_type_allowed(content_type: str | None, settings: Settings | None = None) -> bool:
    if not content_type:
        return False
    # Drop parameters such as "; charset=..."
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in allowed_image_types(settings)


def validate_content_types(files: list[IncomingFile], settings: Settings | None = None) -> None:
    """Raise InvalidTypeError if any file declares a type outside the allowlist."""
    for f in files:
        if not is_content_type_allowed(f.content_type, settings):
            raise InvalidTypeError()


def avatar_extension(filename: str | None, settings: Settings | None = None) -> str:
    """Return the lowercased extension of an avatar upload or raise InvalidTypeError."""
    s = settings or get_settings()
    allowed = {e.strip().lower() for e in s.avatar_extensions.split(",") if e.strip()}
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in allowed:
        raise InvalidTypeError("Only png, jpg, jpeg, webp avatars are accepted")
    return ext


async def read_bounded(upload: UploadFile, limit: int) -> bytes:
    """Read at most ``limit`` bytes; raise ValidationError if the file is larger."""
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise ValidationError(
            f"File exceeds the {limit // (1024 * 1024)} MiB limit",
            code="file_too_large",
        )
    return data


async def collect_uploads(uploads: list[UploadFile] | None, settings: Settings | None = None) -> list[IncomingFile]:
    """Parse the multipart file list into IncomingFile values.

    Count, per-file size and declared type are enforced here, before any
    transform starts. The first violation aborts the whole request.
    """
    s = settings or get_settings()
    uploads = uploads or []
    if len(uploads) > s.max_upload_files:
        raise ValidationError(
            f"At most {s.max_upload_files} images per upload",
            code="too_many_files",
        )
    for upload in uploads:
        if not is_content_type_allowed(upload.content_type, s):
            raise InvalidTypeError()
    files = []
    for upload in uploads:
        data = await read_bounded(upload, s.max_upload_bytes)
        files.append(IncomingFile(filename=upload.filename, content_type=upload.content_type or "", data=data))
    return files
