"""Removal of stale settings files and empty sidecar directories."""

from __future__ import annotations

import logging
from typing import Iterable

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.models import Candidate
from docsidecar.sidecar.candidates import BACKUP_SUFFIX
from docsidecar.sidecar.paths import sidecar_dir
from docsidecar.utils.files import (
    is_dir,
    is_file,
    remove_empty_dir,
    remove_file,
    remove_path,
)

LOGGER = logging.getLogger(__name__)


def purge_candidates(candidates: Iterable[Candidate], keep: str | None = None) -> int:
    """Delete candidate files except ``keep`` and its backup.

    With no ``keep`` every candidate goes. Returns the number of files removed.
    """
    protected = {keep, keep + BACKUP_SUFFIX} if keep else set()
    removed = 0
    for candidate in candidates:
        if candidate.path in protected or not is_file(candidate.path):
            continue
        if remove_file(candidate.path):
            LOGGER.debug("Purged %s", candidate.path)
            removed += 1
    return removed


def remove_sidecar_dirs(doc_sidecar_dir: str, dir_sidecar_dir: str, config: SidecarConfig) -> None:
    """Remove both sidecar directories of a document if they are empty.

    The document folder directory is removed on its own; the central one
    takes its empty ancestors with it, up to the settings root.
    """
    if is_dir(doc_sidecar_dir):
        remove_empty_dir(doc_sidecar_dir)
    if is_dir(dir_sidecar_dir):
        remove_path(dir_sidecar_dir, stop_at=config.settings_root)


def remove_sidecar_dir(doc_path: str, directory: str, config: SidecarConfig) -> None:
    """Remove one sidecar directory of ``doc_path`` if it is empty."""
    if not directory:
        return
    if directory.rstrip("/") == sidecar_dir(doc_path, PlacementMode.DOC_FOLDER, config):
        remove_empty_dir(directory)
    else:
        remove_path(directory, stop_at=config.settings_root)
