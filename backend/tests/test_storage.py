"""Local storage: confined writes, stat, deletes, storage context wiring."""
import pytest

from photobank.core.config import Settings
from photobank.core.errors import ConfinementError
from photobank.services.storage import build_storage_context
from photobank.services.storage.base import StorageBackend
from photobank.services.storage.local import LocalStorage


def test_local_storage_is_a_backend(tmp_path):
    assert isinstance(LocalStorage(tmp_path), StorageBackend)


def test_write_stat_and_relative_key(tmp_path):
    backend = LocalStorage(tmp_path)
    backend.ensure_directory("alice")
    path = backend.write_object("alice/1-a_0.jpg", b"abc")
    assert path.read_bytes() == b"abc"
    assert backend.relative_key(path) == "alice/1-a_0.jpg"
    obj = backend.stat_object("alice/1-a_0.jpg")
    assert obj.size == 3
    assert obj.mtime > 0


def test_stat_missing_or_directory(tmp_path):
    backend = LocalStorage(tmp_path)
    backend.ensure_directory("alice")
    with pytest.raises(FileNotFoundError):
        backend.stat_object("alice/none.jpg")
    with pytest.raises(FileNotFoundError):
        backend.stat_object("alice")


@pytest.mark.parametrize("key", ["../x.jpg", "alice/../../x.jpg", ""])
def test_every_operation_is_confined(tmp_path, key):
    backend = LocalStorage(tmp_path / "root")
    backend.root.mkdir()
    for op in (backend.ensure_directory, backend.stat_object, backend.delete_object, backend.delete_tree):
        with pytest.raises(ConfinementError):
            op(key)
    with pytest.raises(ConfinementError):
        backend.write_object(key, b"x")
    assert not (tmp_path / "x.jpg").exists()


def test_deletes_report_missing(tmp_path):
    backend = LocalStorage(tmp_path)
    assert backend.delete_object("alice/none.jpg") is False
    assert backend.delete_tree("alice") is False
    backend.ensure_directory("alice/sub")
    backend.write_object("alice/sub/f.png", b"1")
    assert backend.delete_tree("alice") is True
    assert not (tmp_path / "alice").exists()


def test_build_storage_context_uses_configured_roots(tmp_path):
    settings = Settings(images_dir=str(tmp_path / "i"), avatars_dir=str(tmp_path / "a"))
    ctx = build_storage_context(settings)
    assert ctx.images.root == (tmp_path / "i").resolve()
    assert ctx.avatars.root == (tmp_path / "a").resolve()
