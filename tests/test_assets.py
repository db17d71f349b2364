"""Tests for custom covers and metadata overrides."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.sidecar.assets import (
    CUSTOM_METADATA_FILENAME,
    custom_candidate_sidecar_dirs,
    find_cover_file,
    find_cover_file_in_dir,
    find_custom_metadata_file,
    flush_custom_cover,
    migrate_asset,
)
from docsidecar.sidecar.paths import sidecar_dir, sidecar_file
from docsidecar.sidecar.session import open_custom_metadata, open_doc_settings
from docsidecar.utils.lualiteral import load_file


@pytest.fixture
def config(tmp_path: Path) -> SidecarConfig:
    return SidecarConfig(data_dir=tmp_path / "data")


@pytest.fixture
def central_config(tmp_path: Path) -> SidecarConfig:
    return SidecarConfig(placement_mode=PlacementMode.CENTRAL_DIR, data_dir=tmp_path / "data")


@pytest.fixture
def doc_path(tmp_path: Path) -> str:
    doc = tmp_path / "books" / "novel.epub"
    doc.parent.mkdir(parents=True)
    doc.write_bytes(b"PK")
    return str(doc)


@pytest.fixture
def image(tmp_path: Path) -> str:
    path = tmp_path / "Scan.JPG"
    path.write_bytes(b"\xff\xd8\xff")
    return str(path)


def _write(path: str, data: bytes = b"x") -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Path(path).write_bytes(data)
    return path


class TestFindCover:
    """Test cover discovery."""

    def test_matches_stem_only(self, tmp_path: Path) -> None:
        _write(str(tmp_path / "covers.png"))
        _write(str(tmp_path / "my_cover.png"))
        assert find_cover_file_in_dir(str(tmp_path)) is None

        cover = _write(str(tmp_path / "cover.png"))
        assert find_cover_file_in_dir(str(tmp_path)) == cover

    def test_missing_dir(self, tmp_path: Path) -> None:
        assert find_cover_file_in_dir(str(tmp_path / "missing.sdr")) is None

    def test_preferred_location_first(self, config: SidecarConfig, doc_path: str) -> None:
        """Should look in the preferred mode's directory before the other one."""
        doc_cover = _write(sidecar_dir(doc_path, "doc", config) + "/cover.png")
        dir_cover = _write(sidecar_dir(doc_path, "dir", config) + "/cover.jpg")

        assert find_cover_file(doc_path, config) == doc_cover
        central = SidecarConfig(placement_mode="dir", data_dir=config.data_dir)
        assert find_cover_file(doc_path, central) == dir_cover

    def test_falls_back_to_other_location(self, config: SidecarConfig, doc_path: str) -> None:
        dir_cover = _write(sidecar_dir(doc_path, "dir", config) + "/cover.gif")

        assert find_cover_file(doc_path, config) == dir_cover

    def test_cover_cache(self, config: SidecarConfig, doc_path: str) -> None:
        """Should cache the lookup until it is reset."""
        doc_settings = open_doc_settings(doc_path, config)
        assert doc_settings.cover_file() is None

        cover = _write(sidecar_dir(doc_path, "doc", config) + "/cover.png")
        assert doc_settings.cover_file() is None

        doc_settings.reset_cover_cache()
        assert doc_settings.cover_file() == cover


class TestFindCustomMetadata:
    """Test metadata override discovery."""

    def test_doc_folder_first(self, config: SidecarConfig, doc_path: str) -> None:
        doc_file = _write(sidecar_dir(doc_path, "doc", config) + "/" + CUSTOM_METADATA_FILENAME)
        _write(sidecar_dir(doc_path, "dir", config) + "/" + CUSTOM_METADATA_FILENAME)

        assert find_custom_metadata_file(doc_path, config) == doc_file

    def test_none(self, config: SidecarConfig, doc_path: str) -> None:
        assert find_custom_metadata_file(doc_path, config) is None
        assert find_custom_metadata_file("", config) is None


class TestCandidateDirs:
    """Test custom_candidate_sidecar_dirs."""

    def test_existing_settings_directory(self, config: SidecarConfig, doc_path: str) -> None:
        """Should only use the directory of an existing settings file."""
        _write(sidecar_file(doc_path, "dir", config))

        assert custom_candidate_sidecar_dirs(doc_path, config) == [sidecar_dir(doc_path, "dir", config)]

    def test_new_document_doc_mode(self, config: SidecarConfig, doc_path: str) -> None:
        assert custom_candidate_sidecar_dirs(doc_path, config) == [
            sidecar_dir(doc_path, "doc", config),
            sidecar_dir(doc_path, "dir", config),
        ]

    def test_new_document_central_mode(self, central_config: SidecarConfig, doc_path: str) -> None:
        assert custom_candidate_sidecar_dirs(doc_path, central_config) == [
            sidecar_dir(doc_path, "dir", central_config)
        ]


class TestFlushCustomCover:
    """Test installing a custom cover."""

    def test_lowercases_extension(self, config: SidecarConfig, doc_path: str, image: str) -> None:
        assert flush_custom_cover(doc_path, image, config)

        cover = Path(sidecar_dir(doc_path, "doc", config)) / "cover.jpg"
        assert cover.read_bytes() == b"\xff\xd8\xff"

    def test_falls_back(self, config: SidecarConfig, doc_path: str, image: str) -> None:
        """Should try the central directory when the book folder is read-only."""
        Path(sidecar_dir(doc_path, "doc", config)).write_text("blocked")

        assert flush_custom_cover(doc_path, image, config)
        assert (Path(sidecar_dir(doc_path, "dir", config)) / "cover.jpg").exists()

    def test_all_fail(self, central_config: SidecarConfig, doc_path: str, image: str) -> None:
        central_config.settings_root.parent.mkdir(parents=True)
        central_config.settings_root.write_text("blocked")

        assert not flush_custom_cover(doc_path, image, central_config)

    def test_session_resets_cache(self, config: SidecarConfig, doc_path: str, image: str) -> None:
        doc_settings = open_doc_settings(doc_path, config)
        assert doc_settings.cover_file() is None

        assert doc_settings.flush_custom_cover(image)

        assert doc_settings.cover_file() == sidecar_dir(doc_path, "doc", config) + "/cover.jpg"


class TestMigrateAsset:
    """Test moving assets next to freshly written settings."""

    def test_moves_file(self, tmp_path: Path) -> None:
        source = _write(str(tmp_path / "old.sdr" / "cover.png"), b"png")
        target_dir = tmp_path / "new.sdr"
        target_dir.mkdir()

        assert migrate_asset(source, str(target_dir))
        assert not os.path.exists(source)
        assert (target_dir / "cover.png").read_bytes() == b"png"

    def test_same_directory(self, tmp_path: Path) -> None:
        source = _write(str(tmp_path / "a.sdr" / "cover.png"))

        assert not migrate_asset(source, str(tmp_path / "a.sdr"))
        assert os.path.exists(source)

    def test_failed_copy_keeps_original(self, tmp_path: Path) -> None:
        """Should never lose the asset when the copy fails."""
        source = _write(str(tmp_path / "old.sdr" / "cover.png"))

        assert not migrate_asset(source, str(tmp_path / "missing.sdr"))
        assert os.path.exists(source)

    def test_flush_moves_assets(self, config: SidecarConfig, doc_path: str) -> None:
        """Should colocate custom assets with the written settings."""
        cover = _write(sidecar_dir(doc_path, "dir", config) + "/cover.png", b"png")
        metadata = _write(
            sidecar_dir(doc_path, "dir", config) + "/" + CUSTOM_METADATA_FILENAME,
            b'return { ["title"] = "T" }',
        )

        doc_settings = open_doc_settings(doc_path, config)
        assert doc_settings.cover_file() == cover
        directory = doc_settings.flush({"a": 1})

        assert sorted(os.listdir(directory)) == ["cover.png", CUSTOM_METADATA_FILENAME, "metadata.epub.lua"]
        assert not os.path.exists(cover)
        assert not os.path.exists(metadata)
        assert not os.path.exists(sidecar_dir(doc_path, "dir", config))
        assert doc_settings.cover_file() == directory + "/cover.png"

    def test_flush_without_migration(self, config: SidecarConfig, doc_path: str) -> None:
        cover = _write(sidecar_dir(doc_path, "dir", config) + "/cover.png")

        open_doc_settings(doc_path, config).flush({"a": 1}, no_custom_metadata=True)

        assert os.path.exists(cover)


class TestCustomMetadata:
    """Test the metadata override session."""

    def test_open_missing(self, config: SidecarConfig) -> None:
        custom = open_custom_metadata(None, config)

        assert custom.data == {}
        assert custom.custom_metadata_file is None

    def test_open_invalid(self, config: SidecarConfig, tmp_path: Path) -> None:
        """Should start empty when the file does not parse."""
        path = _write(str(tmp_path / CUSTOM_METADATA_FILENAME), b"return {")

        custom = open_custom_metadata(path, config)

        assert custom.data == {}
        assert custom.custom_metadata_file == path

    def test_flush_new(self, config: SidecarConfig, doc_path: str) -> None:
        custom = open_custom_metadata(None, config)
        custom.save_setting("title", "Better Title")

        written = custom.flush(doc_path)

        assert written == sidecar_dir(doc_path, "doc", config) + "/" + CUSTOM_METADATA_FILENAME
        assert load_file(Path(written)) == {"title": "Better Title"}

    def test_flush_no_backup(self, config: SidecarConfig, doc_path: str) -> None:
        """Should overwrite in place without rotating."""
        path = _write(sidecar_dir(doc_path, "doc", config) + "/" + CUSTOM_METADATA_FILENAME, b'return { a = 1 }')
        os.utime(path, (1000, 1000))

        custom = open_custom_metadata(path, config)
        custom.save_setting("a", 2)
        custom.flush(doc_path)

        assert load_file(Path(path)) == {"a": 2}
        assert not os.path.exists(path + ".old")

    def test_flush_relocates(self, config: SidecarConfig, doc_path: str) -> None:
        """Should move the override next to the settings and clean up."""
        old = _write(sidecar_dir(doc_path, "dir", config) + "/" + CUSTOM_METADATA_FILENAME, b'return { a = 1 }')
        _write(sidecar_file(doc_path, "doc", config), b'return { page = 1 }')

        custom = open_custom_metadata(find_custom_metadata_file(doc_path, config), config)
        assert custom.custom_metadata_file == old
        written = custom.flush(doc_path)

        assert written == sidecar_dir(doc_path, "doc", config) + "/" + CUSTOM_METADATA_FILENAME
        assert not os.path.exists(old)
        assert not os.path.exists(sidecar_dir(doc_path, "dir", config))
        assert custom.custom_metadata_file == written

    def test_flush_failure_keeps_old(self, central_config: SidecarConfig, doc_path: str, tmp_path: Path) -> None:
        old = _write(str(tmp_path / "elsewhere" / CUSTOM_METADATA_FILENAME), b'return { a = 1 }')
        central_config.settings_root.parent.mkdir(parents=True)
        central_config.settings_root.write_text("blocked")

        custom = open_custom_metadata(old, central_config)

        with patch("docsidecar.sidecar.assets.remove_file") as mock_remove:
            assert custom.flush(doc_path) is None
        mock_remove.assert_not_called()
        assert os.path.exists(old)

    def test_flush_write_error_removes_partial(self, central_config: SidecarConfig, doc_path: str) -> None:
        """Should not leave a truncated override behind."""
        custom = open_custom_metadata(None, central_config)
        custom.save_setting("title", "T")
        target = sidecar_dir(doc_path, "dir", central_config) + "/" + CUSTOM_METADATA_FILENAME

        with patch("docsidecar.sidecar.assets.write_literal_file", side_effect=OSError("disk full")):
            assert custom.flush(doc_path) is None

        assert not os.path.exists(target)
        assert custom.custom_metadata_file is None
