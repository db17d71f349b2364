"""Durable writes of settings files."""

from __future__ import annotations

import logging
import os
import time
from typing import IO, List, Tuple

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.sidecar.candidates import BACKUP_SUFFIX
from docsidecar.sidecar.paths import sidecar_dir, sidecar_file
from docsidecar.utils import lualiteral
from docsidecar.utils.files import (
    file_mtime,
    fsync_directory,
    fsync_file,
    is_file,
    make_path,
    remove_file,
)

LOGGER = logging.getLogger(__name__)


def flush_targets(doc_path: str, config: SidecarConfig) -> List[Tuple[str, str]]:
    """Return the ``(directory, file)`` pairs to try, in order.

    The document folder falls back to the central directory for read-only
    book storage. The central directory has no fallback.
    """
    central = (
        sidecar_dir(doc_path, PlacementMode.CENTRAL_DIR, config),
        sidecar_file(doc_path, PlacementMode.CENTRAL_DIR, config),
    )
    if config.placement_mode is PlacementMode.DOC_FOLDER:
        doc_folder = (
            sidecar_dir(doc_path, PlacementMode.DOC_FOLDER, config),
            sidecar_file(doc_path, PlacementMode.DOC_FOLDER, config),
        )
        return [doc_folder, central]
    return [central]


def write_literal_file(handle: IO[str], literal: str) -> None:
    """Write the banner and literal, then force them to the storage device."""
    lualiteral.write_file(handle, literal)
    fsync_file(handle)


def rotate_backup(path: str, min_age: float, now: float | None = None) -> bool:
    """Rename ``path`` to ``path.old`` if it was last modified more than ``min_age`` ago.

    Recent files are overwritten in place instead, so rapid saves do not
    push the last good generation out of the backup slot.
    """
    if not is_file(path):
        return False
    now = time.time() if now is None else now
    try:
        if file_mtime(path) >= now - min_age:
            return False
        os.replace(path, path + BACKUP_SUFFIX)
    except OSError as exc:
        LOGGER.warning("Could not back up %s: %s", path, exc)
        return False
    LOGGER.debug("Renamed %s to %s%s", path, path, BACKUP_SUFFIX)
    return True


def write_sidecar(directory: str, path: str, literal: str, *, min_age: float) -> bool:
    """Write one target. Returns ``False`` if the target is unwritable."""
    try:
        make_path(directory)
    except OSError as exc:
        LOGGER.warning("Cannot create sidecar directory %s: %s", directory, exc)
        return False

    directory_updated = rotate_backup(path, min_age)
    LOGGER.debug("Writing to %s", path)
    try:
        handle = open(path, "w", encoding="utf-8")
    except OSError as exc:
        LOGGER.warning("Cannot open %s for writing: %s", path, exc)
        return False
    try:
        with handle:
            write_literal_file(handle, literal)
    except OSError as exc:
        LOGGER.warning("Writing %s failed: %s", path, exc)
        remove_file(path)
        return False

    if directory_updated:
        # make the rename survive a crash too
        fsync_directory(path)
    return True
