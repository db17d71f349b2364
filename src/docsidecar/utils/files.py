"""Utility helpers for working with files."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import IO, Tuple

LOGGER = logging.getLogger(__name__)


def is_file(path: str | os.PathLike | None) -> bool:
    """True if ``path`` names an existing regular file."""
    if not path:
        return False
    return os.path.isfile(path)


def is_dir(path: str | os.PathLike | None) -> bool:
    if not path:
        return False
    return os.path.isdir(path)


def file_mtime(path: str | os.PathLike) -> float:
    return os.stat(path).st_mtime


def file_size(path: str | os.PathLike) -> int:
    return os.stat(path).st_size


def split_file_name_suffix(name: str) -> Tuple[str, str]:
    """Split ``name`` at its last dot: ``cover.jpg`` -> ``("cover", "jpg")``."""
    stem, dot, suffix = name.rpartition(".")
    if not dot:
        return name, ""
    return stem, suffix


def make_path(directory: str | os.PathLike) -> None:
    """Create ``directory`` and any missing parents."""
    Path(directory).mkdir(parents=True, exist_ok=True)


def remove_file(path: str | os.PathLike) -> bool:
    """Delete a file, returning whether it was removed."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        LOGGER.warning("Could not remove %s: %s", path, exc)
        return False
    return True


def remove_empty_dir(directory: str | os.PathLike) -> bool:
    """Remove ``directory`` only if it is empty. Parents are left alone."""
    try:
        os.rmdir(directory)
    except OSError:
        return False
    return True


def remove_path(directory: str | os.PathLike, stop_at: str | os.PathLike | None = None) -> None:
    """Remove ``directory`` and then every ancestor left empty.

    Walking up stops at the first directory that is not empty, or before
    reaching ``stop_at``.
    """
    current = Path(directory)
    boundary = Path(stop_at) if stop_at is not None else None
    while current != current.parent:
        if boundary is not None and (current == boundary or boundary not in current.parents):
            break
        if not remove_empty_dir(current):
            break
        LOGGER.debug("Removed empty directory %s", current)
        current = current.parent


def copy_file(source: str | os.PathLike, destination: str | os.PathLike) -> None:
    """Copy file contents, forcing the copy to the storage device."""
    with open(source, "rb") as src, open(destination, "wb") as dst:
        shutil.copyfileobj(src, dst)
        fsync_file(dst)


def fsync_file(handle: IO) -> None:
    """Force the written bytes of an open file to the storage device."""
    handle.flush()
    os.fsync(handle.fileno())


def fsync_directory(path: str | os.PathLike) -> None:
    """Force the directory entry holding ``path`` to the storage device."""
    directory = os.path.dirname(os.fspath(path)) or "."
    flags = os.O_RDONLY | getattr(os, "O_DIRECTORY", 0)
    try:
        dir_fd = os.open(directory, flags)
    except OSError as exc:
        # not supported on every platform (e.g. Windows)
        LOGGER.debug("Cannot open %s for fsync: %s", directory, exc)
        return
    try:
        os.fsync(dir_fd)
    except OSError as exc:
        LOGGER.debug("fsync of directory %s failed: %s", directory, exc)
    finally:
        os.close(dir_fd)
