"""Local disk storage: every operation resolves its key through the path guard first."""
import os
import shutil
from pathlib import Path

from photobank.core import path_guard
from photobank.core.errors import StorageError
from photobank.services.storage.base import StorageBackend, StoredObject


class LocalStorage(StorageBackend):
    """Disk storage under a single root (images or avatars)."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, key: str) -> Path:
        return path_guard.resolve(self._root, key)

    def namespace(self, name: str) -> Path:
        """Resolve a per-user directory: exactly one segment below the root."""
        return path_guard.resolve_segment(self._root, name)

    def relative_key(self, path: Path) -> str:
        return path_guard.to_relative(self._root, path)

    def ensure_directory(self, key: str) -> Path:
        path = self.resolve(key)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError("Could not create storage directory") from e
        return path

    def write_object(self, key: str, data: bytes) -> Path:
        path = self.resolve(key)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError("Could not write file") from e
        return path

    def stat_object(self, key: str) -> StoredObject:
        path = self.resolve(key)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise FileNotFoundError(f"Object not found: {key}")
        st = path.stat()
        return StoredObject(path=path, size=st.st_size, mtime=st.st_mtime)

    def delete_object(self, key: str) -> bool:
        path = self.resolve(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def delete_tree(self, key: str) -> bool:
        path = self.resolve(key)
        if not path.exists():
            return False
        shutil.rmtree(path)
        return True
