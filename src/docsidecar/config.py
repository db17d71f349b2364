"""Application configuration defaults."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

BACKUP_MIN_AGE = 60.0


class PlacementMode(str, Enum):
    """Where sidecar directories are created."""

    DOC_FOLDER = "doc"
    CENTRAL_DIR = "dir"

    @property
    def other(self) -> "PlacementMode":
        if self is PlacementMode.DOC_FOLDER:
            return PlacementMode.CENTRAL_DIR
        return PlacementMode.DOC_FOLDER


def _get_default_data_dir() -> Path:
    """Get the default data directory based on platform and environment."""
    override = os.environ.get("DOCSIDECAR_HOME")
    if override:
        return Path(override)

    if sys.platform == "win32":
        appdata = os.environ.get("LOCALAPPDATA", os.path.expanduser("~"))
        return Path(appdata) / "docsidecar"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "docsidecar"
    return Path.home() / ".local" / "share" / "docsidecar"


@dataclass(slots=True)
class SidecarConfig:
    placement_mode: PlacementMode = PlacementMode.DOC_FOLDER
    data_dir: Path | None = None
    settings_root: Path | None = None
    history_dir: Path | None = None
    backup_min_age: float = BACKUP_MIN_AGE

    def __post_init__(self) -> None:
        self.placement_mode = PlacementMode(self.placement_mode)
        if self.data_dir is None:
            self.data_dir = _get_default_data_dir()
        self.data_dir = Path(self.data_dir)
        if self.settings_root is None:
            self.settings_root = self.data_dir / "docsettings"
        if self.history_dir is None:
            self.history_dir = self.data_dir / "history"
        self.settings_root = Path(self.settings_root)
        self.history_dir = Path(self.history_dir)

    @property
    def prefers_doc_folder(self) -> bool:
        return self.placement_mode is PlacementMode.DOC_FOLDER
