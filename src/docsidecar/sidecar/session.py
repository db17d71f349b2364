"""Per-document settings sessions.

``open_doc_settings`` resolves the most recent valid settings file of a
document; ``DocSettings.flush`` writes it back durably and cleans up the
copies that lost. ``open_custom_metadata`` gives the smaller session used
for metadata overrides.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.models import Candidate, CoverLookup, PurgeTargets
from docsidecar.sidecar import assets, loader, purge, writer
from docsidecar.sidecar.candidates import build_candidates
from docsidecar.sidecar.paths import has_sidecar_file, sidecar_dir, sidecar_file
from docsidecar.sidecar.record import Settings
from docsidecar.utils import lualiteral
from docsidecar.utils.files import copy_file, make_path, remove_file

LOGGER = logging.getLogger(__name__)


class DocSettings(Settings):
    """Settings of one document plus the locations they may live in."""

    def __init__(self, doc_path: str | None, config: SidecarConfig) -> None:
        super().__init__({})
        self.doc_path = doc_path or ""
        self.config = config
        self.doc_sidecar_dir = sidecar_dir(doc_path, PlacementMode.DOC_FOLDER, config)
        self.doc_sidecar_file = sidecar_file(doc_path, PlacementMode.DOC_FOLDER, config)
        self.dir_sidecar_dir = sidecar_dir(doc_path, PlacementMode.CENTRAL_DIR, config)
        self.dir_sidecar_file = sidecar_file(doc_path, PlacementMode.CENTRAL_DIR, config)
        self.candidates: List[Candidate] = []
        self.source_candidate: str | None = None
        self._cover = CoverLookup.unknown()

    # custom assets

    def cover_file(self) -> str | None:
        if not self._cover.is_known:
            found = assets.find_cover_file(self.doc_path, self.config)
            self._cover = CoverLookup.present(found) if found else CoverLookup.absent()
        return self._cover.path

    def reset_cover_cache(self) -> None:
        self._cover = CoverLookup.unknown()

    def custom_metadata_file(self) -> str | None:
        return assets.find_custom_metadata_file(self.doc_path, self.config)

    def flush_custom_cover(self, image_file: str) -> bool:
        written = assets.flush_custom_cover(self.doc_path, image_file, self.config)
        if written:
            self.reset_cover_cache()
        return written

    def _migrate_custom_assets(self, directory: str) -> None:
        cover = self.cover_file()
        if cover and assets.migrate_asset(cover, directory):
            self.reset_cover_cache()
        metadata = self.custom_metadata_file()
        if metadata:
            assets.migrate_asset(metadata, directory)

    # persistence

    def flush(self, data: Dict[str, Any] | None = None, *, no_custom_metadata: bool = False) -> str | None:
        """Write the settings, returning the sidecar directory used.

        ``None`` means the settings could not be serialized or no target
        could be written; nothing is raised.
        """
        if not self.doc_path:
            return None
        try:
            literal = lualiteral.dumps(self.data if data is None else data)
        except lualiteral.LuaLiteralError as exc:
            LOGGER.warning("Settings of %s could not be serialized: %s", self.doc_path, exc)
            return None
        for directory, path in writer.flush_targets(self.doc_path, self.config):
            if not writer.write_sidecar(directory, path, literal, min_age=self.config.backup_min_age):
                continue
            if not no_custom_metadata:
                self._migrate_custom_assets(directory)
            self.purge(path)
            return directory
        LOGGER.warning("Settings of %s could not be saved", self.doc_path)
        return None

    def purge(self, sidecar_to_keep: str | None = None, targets: PurgeTargets | None = None) -> None:
        """Remove stale settings files, custom assets and empty sidecar dirs.

        Without arguments everything belonging to the document goes. With
        ``sidecar_to_keep`` only settings candidates are removed, sparing
        that file and its backup.
        """
        if targets is None:
            targets = PurgeTargets(doc_settings=True)
            if sidecar_to_keep is None:
                targets.custom_cover_file = self.cover_file()
                targets.custom_metadata_file = self.custom_metadata_file()

        if targets.doc_settings:
            purge.purge_candidates(self.candidates, sidecar_to_keep)
        if targets.custom_cover_file:
            remove_file(targets.custom_cover_file)
            self.reset_cover_cache()
        if targets.custom_metadata_file:
            remove_file(targets.custom_metadata_file)
        if targets:
            purge.remove_sidecar_dirs(self.doc_sidecar_dir, self.dir_sidecar_dir, self.config)


def open_doc_settings(doc_path: str | None, config: SidecarConfig) -> DocSettings:
    """Open the settings of a document.

    Invalid files ranked ahead of the one that is read are deleted.
    """
    session = DocSettings(doc_path, config)
    session.candidates = build_candidates(loader.candidate_paths(doc_path, config))
    stored, source = loader.load_record(session.candidates)
    if stored is not None:
        session.data = stored
        session.source_candidate = source
    session.data["doc_path"] = session.doc_path
    return session


def _copy_into(path: str, directory: str, name: str) -> bool:
    """Copy an asset into ``directory``; ``False`` if the copy failed."""
    try:
        make_path(directory)
        copy_file(path, directory + "/" + name)
    except OSError as exc:
        LOGGER.warning("Could not copy %s to %s: %s", path, directory, exc)
        return False
    return True


def update_location(
    doc_path: str,
    new_doc_path: str | None,
    config: SidecarConfig,
    *,
    copy: bool = False,
) -> str | None:
    """Follow a document rename, copy, move or deletion.

    With ``new_doc_path`` the settings and custom assets are carried over to
    the new location; without it the document is being deleted. Unless
    ``copy`` is set, everything left at the old location is purged, except
    settings or assets that could not be carried over.
    Returns the new sidecar directory, if any.
    """
    doc_settings = None
    new_sidecar_dir = None
    keep_settings = False

    if has_sidecar_file(doc_path, config):
        doc_settings = open_doc_settings(doc_path, config)
        if new_doc_path:
            new_doc_settings = open_doc_settings(new_doc_path, config)
            data = dict(doc_settings.data, doc_path=new_doc_path)
            new_sidecar_dir = new_doc_settings.flush(data, no_custom_metadata=True)
            if new_sidecar_dir is None:
                LOGGER.warning("Keeping the settings of %s, they could not be moved to %s", doc_path, new_doc_path)
                keep_settings = True
        else:
            cache_file_path = doc_settings.read_setting("cache_file_path")
            if cache_file_path:
                remove_file(cache_file_path)

    if doc_settings is None:
        doc_settings = open_doc_settings(doc_path, config)

    cover_file = doc_settings.cover_file()
    metadata_file = doc_settings.custom_metadata_file()
    # assets that must survive the purge
    keep: set = set()
    if new_doc_path:
        target_dir = new_sidecar_dir or sidecar_dir(new_doc_path, config.placement_mode, config)
        carried = False
        for asset, name in (
            (cover_file, os.path.basename(cover_file or "")),
            (metadata_file, assets.CUSTOM_METADATA_FILENAME),
        ):
            if not asset:
                continue
            if os.path.dirname(asset) == target_dir:
                # shared with the new document, e.g. a.pdf renamed to a.epub
                keep.add(asset)
                carried = True
            elif _copy_into(asset, target_dir, name):
                carried = True
            else:
                keep.add(asset)
        if carried and new_sidecar_dir is None:
            new_sidecar_dir = target_dir

    if not copy:
        doc_settings.purge(
            targets=PurgeTargets(
                doc_settings=not keep_settings,
                custom_cover_file=None if cover_file in keep else cover_file,
                custom_metadata_file=None if metadata_file in keep else metadata_file,
            )
        )

    if cover_file:
        doc_settings.reset_cover_cache()
    return new_sidecar_dir


class CustomMetadata(Settings):
    """Metadata override of a document, kept in ``custom_metadata.lua``."""

    def __init__(self, path: str | None, config: SidecarConfig, data: Dict[str, Any] | None = None) -> None:
        super().__init__(data)
        self.custom_metadata_file = path
        self.config = config

    def flush(self, doc_path: str) -> str | None:
        """Write the override next to the document's settings.

        Returns the file written, or ``None`` if no directory was writable.
        """
        new_file = assets.flush_custom_metadata(
            doc_path,
            self.data,
            self.config,
            previous_file=self.custom_metadata_file,
        )
        if new_file:
            self.custom_metadata_file = new_file
        return new_file


def open_custom_metadata(path: str | None, config: SidecarConfig) -> CustomMetadata:
    """Open a metadata override file; missing or invalid files give an empty record."""
    stored = loader.read_record(path) if path else None
    return CustomMetadata(path, config, stored)
