"""Tests for core data models."""

from __future__ import annotations

from docsidecar.models import Candidate, CoverLookup, CoverState, PurgeTargets


class TestCandidate:
    """Test Candidate dataclass."""

    def test_create_candidate(self) -> None:
        """Should create Candidate with all fields."""
        candidate = Candidate(path="/books/a.sdr/metadata.pdf.lua", mtime=100.0, priority=0)

        assert candidate.path == "/books/a.sdr/metadata.pdf.lua"
        assert candidate.mtime == 100.0
        assert candidate.priority == 0

    def test_mtime_is_mutable(self) -> None:
        """Should allow raising the recorded mtime."""
        candidate = Candidate(path="a", mtime=100.0, priority=0)

        candidate.mtime = 150.0

        assert candidate.mtime == 150.0


class TestCoverLookup:
    """Test the three-way cover cache value."""

    def test_unknown(self) -> None:
        lookup = CoverLookup.unknown()

        assert lookup.state is CoverState.UNKNOWN
        assert not lookup.is_known
        assert lookup.path is None

    def test_absent(self) -> None:
        lookup = CoverLookup.absent()

        assert lookup.state is CoverState.ABSENT
        assert lookup.is_known
        assert lookup.path is None

    def test_present(self) -> None:
        lookup = CoverLookup.present("/books/a.sdr/cover.jpg")

        assert lookup.state is CoverState.PRESENT
        assert lookup.is_known
        assert lookup.path == "/books/a.sdr/cover.jpg"

    def test_equality(self) -> None:
        """Should compare lookups by value."""
        assert CoverLookup.present("x") == CoverLookup.present("x")
        assert CoverLookup.absent() != CoverLookup.unknown()


class TestPurgeTargets:
    """Test PurgeTargets selection."""

    def test_empty_selection_is_false(self) -> None:
        assert not PurgeTargets()

    def test_any_selection_is_true(self) -> None:
        assert PurgeTargets(doc_settings=True)
        assert PurgeTargets(custom_cover_file="/a.sdr/cover.png")
        assert PurgeTargets(custom_metadata_file="/a.sdr/custom_metadata.lua")
