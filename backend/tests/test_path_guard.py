"""Path confinement: every resolved path is strictly inside its root, or ConfinementError."""
import os

import pytest

from photobank.core.errors import ConfinementError
from photobank.core.path_guard import is_confined, normalize_avatar_path, resolve, resolve_segment, to_relative


@pytest.fixture
def root(tmp_path):
    r = tmp_path / "images"
    r.mkdir()
    return r


@pytest.mark.parametrize(
    "candidate",
    [
        "../../etc/passwd",
        "..",
        "../images_evil/x.png",
        "alice/../../x.png",
        "",
        ".",
        "alice/..",
        "/etc/passwd",
        "a\x00b",
    ],
)
def test_escapes_and_root_itself_rejected(root, candidate):
    with pytest.raises(ConfinementError):
        resolve(root, candidate)


def test_relative_path_inside_root(root):
    p = resolve(root, "alice/1-photo_0.jpg")
    assert p == root.resolve() / "alice" / "1-photo_0.jpg"
    assert p.is_absolute()


def test_empty_segments_normalized(root):
    p = resolve(root, "alice//./1.jpg")
    assert p == root.resolve() / "alice" / "1.jpg"


def test_absolute_path_inside_root_accepted(root):
    inside = root / "alice" / "a.png"
    assert resolve(root, str(inside)) == inside.resolve()


def test_sibling_with_common_prefix_rejected(root, tmp_path):
    sibling = tmp_path / "images2" / "x.png"
    with pytest.raises(ConfinementError):
        resolve(root, str(sibling))


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_escape_rejected(root, tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    (root / "link").symlink_to(outside, target_is_directory=True)
    with pytest.raises(ConfinementError):
        resolve(root, "link/secret.txt")


def test_error_message_does_not_leak_path(root):
    with pytest.raises(ConfinementError) as exc:
        resolve(root, "../../etc/passwd")
    assert "etc" not in str(exc.value)
    assert str(root) not in str(exc.value)


def test_is_confined(root):
    assert is_confined(root, "bob/x.jpg")
    assert not is_confined(root, "../x.jpg")


def test_to_relative_uses_forward_slashes(root):
    p = resolve(root, "alice/sub/x.jpg")
    assert to_relative(root, p) == "alice/sub/x.jpg"


@pytest.mark.parametrize(
    "stored, expected",
    [
        ("avatars/alice/1-me.png", "alice/1-me.png"),
        ("AVATARS\\alice\\1-me.png", "alice/1-me.png"),
        ("alice//1-me.png", "alice/1-me.png"),
        ("alice/1-me.png", "alice/1-me.png"),
    ],
)
def test_normalize_avatar_path(stored, expected):
    assert normalize_avatar_path(stored) == expected


@pytest.mark.parametrize("name", ["alice/bob", "alice\\bob", ".", "..", "", "../alice"])
def test_resolve_segment_rejects_nested_names(root, name):
    with pytest.raises(ConfinementError):
        resolve_segment(root, name)


def test_resolve_segment_accepts_single_name(root):
    assert resolve_segment(root, "alice") == root.resolve() / "alice"
