"""Most-recently-used ranking of settings file candidates."""

from __future__ import annotations

import logging
from typing import List, Sequence

from docsidecar.models import Candidate
from docsidecar.utils.files import file_mtime, is_file

LOGGER = logging.getLogger(__name__)

BACKUP_SUFFIX = ".old"


def build_candidates(paths: Sequence[str]) -> List[Candidate]:
    """Return the existing files of ``paths``, most recent first.

    The position of a path in ``paths`` is its priority and breaks mtime
    ties. A ``.old`` entry directly following an existing entry is that
    entry's backup: if the backup looks newer, the primary inherits the
    backup's mtime so the backup can never sort ahead of it.
    """
    candidates: List[Candidate] = []
    previous_entry_exists = False

    for priority, path in enumerate(paths):
        if not path or not is_file(path):
            previous_entry_exists = False
            continue
        try:
            mtime = file_mtime(path)
        except OSError:
            previous_entry_exists = False
            continue
        if path.endswith(BACKUP_SUFFIX) and previous_entry_exists:
            primary = candidates[-1]
            if primary.mtime < mtime:
                LOGGER.warning(
                    "Backup %s is newer (%s) than its primary (%s), fudging timestamps",
                    path,
                    mtime,
                    primary.mtime,
                )
                primary.mtime = mtime
        candidates.append(Candidate(path=path, mtime=mtime, priority=priority))
        previous_entry_exists = True

    candidates.sort(key=lambda c: (-c.mtime, c.priority))
    return candidates
