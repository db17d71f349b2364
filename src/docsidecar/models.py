"""Core docsidecar data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True)
class Candidate:
    """An existing settings file considered when opening a document.

    ``priority`` is the position in the candidate list; lower wins ties.
    ``mtime`` may have been raised to match a newer backup.
    """

    path: str
    mtime: float
    priority: int


class CoverState(Enum):
    UNKNOWN = "unknown"
    ABSENT = "absent"
    PRESENT = "present"


@dataclass(frozen=True, slots=True)
class CoverLookup:
    """Cached result of looking for a custom cover image."""

    state: CoverState
    path: str | None = None

    @classmethod
    def unknown(cls) -> "CoverLookup":
        return cls(CoverState.UNKNOWN)

    @classmethod
    def absent(cls) -> "CoverLookup":
        return cls(CoverState.ABSENT)

    @classmethod
    def present(cls, path: str) -> "CoverLookup":
        return cls(CoverState.PRESENT, path)

    @property
    def is_known(self) -> bool:
        return self.state is not CoverState.UNKNOWN


@dataclass(slots=True)
class PurgeTargets:
    """What a purge removes.

    ``doc_settings`` removes every candidate from the last open; the two
    file paths are deleted unconditionally when set.
    """

    doc_settings: bool = False
    custom_cover_file: str | None = None
    custom_metadata_file: str | None = None

    def __bool__(self) -> bool:
        return bool(self.doc_settings or self.custom_cover_file or self.custom_metadata_file)
