"""Filesystem helpers for dotlink."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable

from .models import Owner

DEFAULT_FILE_MODE = 0o644


def ensure_parent(path: Path) -> None:
    """Ensure the parent directory exists."""

    path.parent.mkdir(parents=True, exist_ok=True)


def exists(path: Path) -> bool:
    """Return ``True`` for existing paths, including dangling symlinks."""

    return path.exists() or path.is_symlink()


def symlink_points_to(link: Path, destination: Path) -> bool:
    """Return ``True`` if ``link`` is a symlink resolving to ``destination``."""

    if not link.is_symlink():
        return False
    current = Path(os.readlink(link))
    current_resolved = (link.parent / current).resolve(strict=False)
    return current_resolved == destination.resolve(strict=False)


def create_symlink(link: Path, destination: Path) -> None:
    """Create ``link`` pointing at the absolute ``destination``.

    Whatever currently lives at ``link`` is removed first.
    """

    remove_path(link)
    ensure_parent(link)
    link.symlink_to(destination.absolute())


def write_text_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a temporary sibling file."""

    if path.is_symlink() or path.is_dir():
        remove_path(path)
    ensure_parent(path)
    mode = path.stat().st_mode & 0o7777 if path.is_file() else DEFAULT_FILE_MODE
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.dotlink-tmp-", dir=path.parent)
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def read_bytes(path: Path) -> bytes | None:
    """Return the raw content of a regular file, or ``None`` if there is none.

    Content is compared as bytes so files that are not UTF-8 never match
    rendered text.
    """

    if path.is_symlink() or not path.is_file():
        return None
    return path.read_bytes()


def apply_owner(path: Path, owner: Owner) -> None:
    """Change the owner of ``path`` without following symlinks.

    Raises ``PermissionError`` when the process may not change ownership and
    ``KeyError`` when the user or group is unknown.
    """

    # POSIX-only modules; imported here so the package still imports elsewhere.
    import grp
    import pwd

    uid = _lookup_id(owner.user, lambda name: pwd.getpwnam(name).pw_uid)
    gid = -1 if owner.group is None else _lookup_id(owner.group, lambda name: grp.getgrnam(name).gr_gid)
    os.lchown(path, uid, gid)


def _lookup_id(name: str, resolver: Callable[[str], int]) -> int:
    if name.isdigit():
        return int(name)
    return resolver(name)


def remove_path(path: Path) -> None:
    """Delete ``path`` whether it is a file, directory, or symlink."""

    if not exists(path):
        return
    if path.is_symlink() or path.is_file():
        path.unlink()
        return
    shutil.rmtree(path)
