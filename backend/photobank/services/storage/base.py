"""Storage backend interface: confined file operations under one root directory."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StoredObject:
    """Result of stat_object: a confined, existing, readable regular file."""

    path: Path
    size: int
    mtime: float


class StorageBackend(ABC):
    """Abstract storage rooted at one directory. Every key is relative to the root and confined to it."""

    @abstractmethod
    def resolve(self, key: str) -> Path:
        """Return the absolute path for key. Raise ConfinementError if it escapes the root."""
        ...

    @abstractmethod
    def ensure_directory(self, key: str) -> Path:
        """Create the directory for key if absent (idempotent) and return its path."""
        ...

    @abstractmethod
    def write_object(self, key: str, data: bytes) -> Path:
        """Write data at key. Raise StorageError on I/O failure."""
        ...

    @abstractmethod
    def stat_object(self, key: str) -> StoredObject:
        """Return metadata for key. Raise FileNotFoundError if missing or unreadable."""
        ...

    @abstractmethod
    def delete_object(self, key: str) -> bool:
        """Remove the file at key. Return False if it did not exist."""
        ...

    @abstractmethod
    def delete_tree(self, key: str) -> bool:
        """Recursively remove the directory at key. Return False if it did not exist."""
        ...
