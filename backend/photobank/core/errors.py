"""Domain errors. Each carries a machine-stable code and the HTTP status it maps to."""
from __future__ import annotations


class PhotobankError(Exception):
    """Base for errors surfaced to clients as {"status": "error", "code", "message"}."""

    status: int = 400
    code: str = "error"

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        super().__init__(message)


class ValidationError(PhotobankError):
    """User-correctable input problem: count, size, type, missing owner."""

    code = "validation_error"


class InvalidTypeError(ValidationError):
    code = "invalid_type"

    def __init__(self, message: str = "Only jpeg/png/webp images are accepted"):
        super().__init__(message)


class ConfinementError(PhotobankError):
    """Path escapes its root. The message never contains the offending path."""

    code = "invalid_path"

    def __init__(self, message: str = "Invalid path"):
        super().__init__(message)


class NotFoundError(PhotobankError):
    status = 404
    code = "not_found"

    def __init__(self, message: str = "Not found", code: str | None = None):
        super().__init__(message, code=code)


_LABEL_LIMIT = 64


def _file_label(filename: str | None) -> str:
    """Base name of a client filename with control characters dropped, cut to _LABEL_LIMIT."""
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = "".join(c for c in name if c.isprintable())
    if len(name) > _LABEL_LIMIT:
        name = name[:_LABEL_LIMIT] + "..."
    return name or "unnamed"


class TransformError(PhotobankError):
    """Image could not be decoded or encoded."""

    code = "transform_failed"

    def __init__(self, message: str, index: int | None = None, filename: str | None = None):
        self.index = index
        self.filename = filename
        super().__init__(message)

    def for_file(self, index: int, filename: str | None) -> "TransformError":
        """Return a copy that names the offending file of a batch."""
        return TransformError(f"File #{index} ({_file_label(filename)}): {self.message}", index=index, filename=filename)


class StorageError(PhotobankError):
    """Disk or metadata I/O failure. No partial rollback is attempted."""

    status = 500
    code = "storage_error"
