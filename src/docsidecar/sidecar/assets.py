"""Custom cover images and metadata overrides stored in sidecar directories."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.sidecar.paths import doc_sidecar_file, sidecar_dir
from docsidecar.sidecar.purge import remove_sidecar_dir
from docsidecar.sidecar.writer import write_literal_file
from docsidecar.utils import lualiteral
from docsidecar.utils.files import (
    copy_file,
    is_dir,
    is_file,
    make_path,
    remove_file,
    split_file_name_suffix,
)

LOGGER = logging.getLogger(__name__)

COVER_STEM = "cover"
CUSTOM_METADATA_FILENAME = "custom_metadata.lua"


def find_cover_file_in_dir(directory: str) -> str | None:
    if not is_dir(directory):
        return None
    try:
        names = sorted(os.listdir(directory))
    except OSError:
        return None
    for name in names:
        if split_file_name_suffix(name)[0] == COVER_STEM:
            return directory + "/" + name
    return None


def find_cover_file(doc_path: str | None, config: SidecarConfig) -> str | None:
    """Look for ``cover.*`` in the preferred sidecar directory, then the other one."""
    if not doc_path:
        return None
    mode = config.placement_mode
    cover_file = find_cover_file_in_dir(sidecar_dir(doc_path, mode, config))
    if cover_file is None:
        cover_file = find_cover_file_in_dir(sidecar_dir(doc_path, mode.other, config))
    return cover_file


def find_custom_metadata_file(doc_path: str | None, config: SidecarConfig) -> str | None:
    if not doc_path:
        return None
    for mode in (PlacementMode.DOC_FOLDER, PlacementMode.CENTRAL_DIR):
        path = sidecar_dir(doc_path, mode, config) + "/" + CUSTOM_METADATA_FILENAME
        if is_file(path):
            return path
    return None


def custom_candidate_sidecar_dirs(doc_path: str, config: SidecarConfig) -> List[str]:
    """Directories to write custom assets to, in order.

    A document that already has a settings file keeps its assets next to
    it; otherwise the order matches where settings would be flushed.
    """
    existing = doc_sidecar_file(doc_path, config, no_legacy=True)
    if existing:
        return [os.path.dirname(existing)]
    central = sidecar_dir(doc_path, PlacementMode.CENTRAL_DIR, config)
    if config.placement_mode is PlacementMode.DOC_FOLDER:
        return [sidecar_dir(doc_path, PlacementMode.DOC_FOLDER, config), central]
    return [central]


def migrate_asset(path: str, directory: str) -> bool:
    """Move an asset into ``directory``; the original is kept if the copy fails."""
    if os.path.dirname(path) == directory:
        return False
    target = directory + "/" + os.path.basename(path)
    try:
        copy_file(path, target)
    except OSError as exc:
        LOGGER.warning("Could not move %s to %s: %s", path, directory, exc)
        return False
    remove_file(path)
    LOGGER.debug("Moved %s to %s", path, directory)
    return True


def flush_custom_cover(doc_path: str, image_file: str, config: SidecarConfig) -> bool:
    """Install ``image_file`` as ``cover.<ext>`` in the first writable directory."""
    if not doc_path:
        return False
    suffix = split_file_name_suffix(os.path.basename(image_file))[1].lower()
    for directory in custom_candidate_sidecar_dirs(doc_path, config):
        target = directory + "/" + COVER_STEM + "." + suffix
        try:
            make_path(directory)
            copy_file(image_file, target)
        except OSError as exc:
            LOGGER.warning("Cannot write custom cover %s: %s", target, exc)
            continue
        LOGGER.debug("Custom cover written to %s", target)
        return True
    return False


def flush_custom_metadata(
    doc_path: str,
    data: Dict[str, Any],
    config: SidecarConfig,
    *,
    previous_file: str | None = None,
) -> str | None:
    """Write a metadata override, returning its new path.

    A previous file in another directory is removed once the new one is
    written, together with its directory if that is left empty.
    """
    if not doc_path:
        return None
    literal = lualiteral.dumps(data)
    new_file = None
    for directory in custom_candidate_sidecar_dirs(doc_path, config):
        target = directory + "/" + CUSTOM_METADATA_FILENAME
        try:
            make_path(directory)
            handle = open(target, "w", encoding="utf-8")
        except OSError as exc:
            LOGGER.warning("Cannot write custom metadata %s: %s", target, exc)
            continue
        try:
            with handle:
                write_literal_file(handle, literal)
        except OSError as exc:
            LOGGER.warning("Writing custom metadata %s failed: %s", target, exc)
            remove_file(target)
            continue
        new_file = target
        break

    if new_file and previous_file:
        old_dir = os.path.dirname(previous_file)
        if old_dir != os.path.dirname(new_file):
            remove_file(previous_file)
            remove_sidecar_dir(doc_path, old_dir, config)
    return new_file
