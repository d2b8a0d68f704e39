"""Storage context: the image and avatar roots, built explicitly from settings and handed to each service."""
from dataclasses import dataclass

from photobank.core.config import Settings, get_settings
from photobank.services.storage.base import StorageBackend, StoredObject
from photobank.services.storage.local import LocalStorage


@dataclass(frozen=True)
class StorageContext:
    images: LocalStorage
    avatars: LocalStorage


def build_storage_context(settings: Settings | None = None) -> StorageContext:
    s = settings or get_settings()
    return StorageContext(images=LocalStorage(s.images_dir), avatars=LocalStorage(s.avatars_dir))


def get_storage_context() -> StorageContext:
    """FastAPI dependency; tests override it with temporary roots."""
    return build_storage_context(get_settings())


__all__ = [
    "StorageBackend",
    "StoredObject",
    "LocalStorage",
    "StorageContext",
    "build_storage_context",
    "get_storage_context",
]
