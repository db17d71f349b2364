"""Discovery and loading of a document's settings record."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.models import Candidate
from docsidecar.sidecar.candidates import BACKUP_SUFFIX
from docsidecar.sidecar.paths import (
    history_path,
    kpdfview_file,
    legacy_sidecar_file,
    sidecar_dir,
    sidecar_file,
)
from docsidecar.utils import lualiteral
from docsidecar.utils.files import file_size, is_dir, remove_file

LOGGER = logging.getLogger(__name__)


def candidate_paths(doc_path: str | None, config: SidecarConfig) -> List[str]:
    """Build the eight candidate slots of a document, by priority.

    Slots that cannot exist are empty strings so that every entry keeps its
    position, which the backup pairing relies on.
    """
    if not doc_path:
        return []

    doc_file = legacy_file = ""
    if is_dir(sidecar_dir(doc_path, PlacementMode.DOC_FOLDER, config)):
        doc_file = sidecar_file(doc_path, PlacementMode.DOC_FOLDER, config)
        legacy_file = legacy_sidecar_file(doc_path, config)
    dir_file = ""
    if is_dir(sidecar_dir(doc_path, PlacementMode.CENTRAL_DIR, config)):
        dir_file = sidecar_file(doc_path, PlacementMode.CENTRAL_DIR, config)
    history_file = history_path(doc_path, config)

    return [
        doc_file,
        doc_file + BACKUP_SUFFIX if doc_file else "",
        legacy_file,
        dir_file,
        dir_file + BACKUP_SUFFIX if dir_file else "",
        history_file,
        history_file + BACKUP_SUFFIX,
        kpdfview_file(doc_path),
    ]


def read_record(path: str | Path) -> Dict[str, Any] | None:
    """Parse a settings file, returning ``None`` unless it holds a non-empty mapping."""
    try:
        if file_size(path) == 0:
            return None
        stored = lualiteral.load_file(Path(path))
    except (OSError, UnicodeDecodeError, lualiteral.LuaLiteralError) as exc:
        LOGGER.debug("Cannot read %s: %s", path, exc)
        return None
    if isinstance(stored, dict) and stored:
        return stored
    return None


def load_record(candidates: Sequence[Candidate]) -> Tuple[Dict[str, Any] | None, str | None]:
    """Return the record of the first valid candidate and its path.

    Empty or unparsable candidates ranked ahead of the winner are deleted.
    Candidates after the winner are left untouched.
    """
    for candidate in candidates:
        stored = read_record(candidate.path)
        if stored is not None:
            LOGGER.debug("Data is read from %s", candidate.path)
            return stored, candidate.path
        LOGGER.debug("%s is invalid, removed", candidate.path)
        remove_file(candidate.path)
    return None, None
