"""Mapping from a document path to its sidecar locations.

All helpers work on plain path strings: the sidecar layout on disk is a
function of the document path text, including the legacy history naming
scheme, so no normalization is applied. An empty document path yields
empty results.
"""

from __future__ import annotations

import os

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.utils.files import is_file

SIDECAR_SUFFIX = ".sdr"
LEGACY_KPDFVIEW_SUFFIX = ".kpdfview.lua"


def _split_suffix(doc_path: str) -> tuple[str, str]:
    """Split off the extension of the last path component."""
    head, sep, name = doc_path.rpartition("/")
    stem, dot, suffix = name.rpartition(".")
    if not dot:
        return doc_path, ""
    return head + sep + stem, suffix


def sidecar_dir(doc_path: str | None, mode: PlacementMode, config: SidecarConfig) -> str:
    """Return the ``.sdr`` directory of a document for ``mode``.

    ``/foo/bar.pdf`` maps to ``/foo/bar.sdr`` in the document folder, or to
    ``<settings_root>/foo/bar.sdr`` in the central directory.
    """
    if not doc_path:
        return ""
    path = _split_suffix(doc_path)[0]
    if PlacementMode(mode) is PlacementMode.CENTRAL_DIR:
        root = str(config.settings_root).rstrip("/")
        path = root + "/" + path.lstrip("/")
    return path + SIDECAR_SUFFIX


def sidecar_file(doc_path: str | None, mode: PlacementMode, config: SidecarConfig) -> str:
    """Return ``<sidecar_dir>/metadata.<ext>.lua``.

    The document extension is kept so that ``foo.pdf`` and ``foo.epub``
    living side by side do not share a settings file.
    """
    if not doc_path:
        return ""
    return sidecar_dir(doc_path, mode, config) + "/metadata." + _split_suffix(doc_path)[1] + ".lua"


def legacy_sidecar_file(doc_path: str, config: SidecarConfig) -> str:
    """Old ``<basename>.lua`` file inside the document-folder sidecar dir."""
    if not doc_path:
        return ""
    directory = sidecar_dir(doc_path, PlacementMode.DOC_FOLDER, config)
    return directory + "/" + os.path.basename(doc_path) + ".lua"


def kpdfview_file(doc_path: str) -> str:
    if not doc_path:
        return ""
    return doc_path + LEGACY_KPDFVIEW_SUFFIX


def history_path(doc_path: str | None, config: SidecarConfig) -> str:
    """Return the legacy history file of a document.

    ``/a/b/c.pdf`` becomes ``<history_dir>/[#a#b#] c.pdf.lua``.
    """
    if not doc_path:
        return ""
    head, sep, tail = doc_path.rpartition("/")
    name = doc_path
    if sep and tail:
        name = head + "/] " + tail
    return str(config.history_dir) + "/[" + name.replace("/", "#") + ".lua"


def _bracketed(text: str) -> str:
    """First balanced ``[...]`` group of ``text``, brackets included."""
    start = text.find("[")
    if start == -1:
        return ""
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return ""


def path_from_history(hist_name: str | None) -> str:
    """Directory of the document a history file name refers to."""
    if not hist_name or not hist_name.endswith(".lua"):
        return ""
    group = _bracketed(hist_name)
    if not group:
        return ""
    # drop "[" and "#]"
    return group[1:-2].replace("#", "/")


def name_from_history(hist_name: str | None) -> str:
    """File name of the document a history file name refers to."""
    if not hist_name or not hist_name.endswith(".lua"):
        return ""
    group = _bracketed(hist_name)
    if not group:
        return ""
    # skip the space after "]" and strip ".lua"
    return hist_name[len(group) + 1 : -4]


def file_from_history(hist_name: str | None) -> str | None:
    path = path_from_history(hist_name)
    if path:
        name = name_from_history(hist_name)
        if name:
            return os.path.join(path, name)
    return None


def doc_sidecar_file(doc_path: str | None, config: SidecarConfig, *, no_legacy: bool = False) -> str | None:
    """Return the existing settings file of a document, or ``None``.

    Probes the document folder, then the central directory, then (unless
    ``no_legacy``) the history file.
    """
    if not doc_path:
        return None
    for mode in (PlacementMode.DOC_FOLDER, PlacementMode.CENTRAL_DIR):
        candidate = sidecar_file(doc_path, mode, config)
        if is_file(candidate):
            return candidate
    if not no_legacy:
        candidate = history_path(doc_path, config)
        if is_file(candidate):
            return candidate
    return None


def has_sidecar_file(doc_path: str | None, config: SidecarConfig) -> bool:
    return doc_sidecar_file(doc_path, config) is not None
