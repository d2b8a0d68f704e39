"""Confinement of filesystem paths to a root directory.

Every path built from a persisted or client-supplied string goes through
``resolve`` before the filesystem is touched (read, write, stream or delete).
"""
from __future__ import annotations

import os
import re
from pathlib import Path

from photobank.core.errors import ConfinementError

_AVATAR_PREFIX = re.compile(r"^avatars[/\\]", re.IGNORECASE)
_SEPARATORS = re.compile(r"[/\\]+")


def resolve(root: str | os.PathLike[str], candidate: str | os.PathLike[str]) -> Path:
    """Return the absolute path of ``candidate`` strictly inside ``root``.

    Relative candidates are joined to ``root``; symlinks are resolved on both
    sides. Raises ConfinementError when the result equals ``root`` or lies
    outside it, or when the candidate contains a null byte.
    """
    raw = os.fspath(candidate)
    if "\x00" in raw:
        raise ConfinementError()
    base = Path(root).resolve()
    target = Path(raw)
    target = target.resolve() if target.is_absolute() else (base / target).resolve()

    rel = os.path.relpath(target, base)
    if rel == os.curdir or rel == os.pardir or rel.startswith(os.pardir + os.sep):
        raise ConfinementError()
    if os.path.isabs(rel):
        # Different drive on Windows
        raise ConfinementError()
    return target


def resolve_segment(root: str | os.PathLike[str], name: str) -> Path:
    """Resolve ``name`` as a direct child of ``root``.

    Used for per-user namespaces: a name with separators would nest one user's
    directory inside another's. Raises ConfinementError otherwise.
    """
    if not name or _SEPARATORS.search(name) or name in (os.curdir, os.pardir):
        raise ConfinementError()
    target = resolve(root, name)
    if target.parent != Path(root).resolve():
        raise ConfinementError()
    return target


def is_confined(root: str | os.PathLike[str], candidate: str | os.PathLike[str]) -> bool:
    try:
        resolve(root, candidate)
    except ConfinementError:
        return False
    return True


def normalize_avatar_path(stored: str) -> str:
    """Strip a redundant ``avatars/`` prefix and canonicalize separators to ``/``."""
    rel = _AVATAR_PREFIX.sub("", stored.strip())
    return _SEPARATORS.sub("/", rel)


def to_relative(root: str | os.PathLike[str], absolute: Path) -> str:
    """Storage form of a confined path: relative to ``root`` with ``/`` separators."""
    return Path(os.path.relpath(absolute, Path(root).resolve())).as_posix()
