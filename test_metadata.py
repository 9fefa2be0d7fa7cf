#!/usr/bin/env python3
"""
Tests for the metadata backends.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from safe_media_rename.config import RenameConfig
from safe_media_rename.metadata import (
    EmbeddedExifQuery,
    ExiftoolQuery,
    create_metadata_query,
    normalize_exif_date,
)


class TestExiftoolQuery:
    """Tests for the exiftool subprocess backend."""

    def test_returns_well_formed_timestamp(self):
        query = ExiftoolQuery(timeout=5)
        with patch("safe_media_rename.metadata.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="2024-03-15_143022\n", stderr="")

            assert query.query(Path("clip.mp4"), "CreateDate") == "2024-03-15_143022"

            cmd = mock_run.call_args[0][0]
            assert cmd[0] == "exiftool"
            assert "-CreateDate" in cmd
            assert cmd[-1] == "clip.mp4"
            assert mock_run.call_args[1]["timeout"] == 5

    @pytest.mark.parametrize("stdout", ["", "0000:00:00 00:00:00", "2024-03-15 14:30:22"])
    def test_malformed_output_is_absent(self, stdout):
        with patch("safe_media_rename.metadata.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout=stdout, stderr="")
            assert ExiftoolQuery().query(Path("clip.mp4"), "CreateDate") is None

    def test_nonzero_exit_is_absent(self):
        with patch("safe_media_rename.metadata.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="2024-03-15_143022",
                                              stderr="Error")
            assert ExiftoolQuery().query(Path("clip.mp4"), "CreateDate") is None

    def test_timeout_is_absent(self):
        with patch("safe_media_rename.metadata.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="exiftool", timeout=10)
            assert ExiftoolQuery().query(Path("clip.mp4"), "CreateDate") is None

    def test_missing_binary_is_absent(self):
        with patch("safe_media_rename.metadata.subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("exiftool")
            assert ExiftoolQuery().query(Path("clip.mp4"), "CreateDate") is None

    def test_availability_is_cached(self):
        query = ExiftoolQuery()
        with patch("safe_media_rename.metadata.shutil.which") as mock_which:
            mock_which.return_value = None
            assert query.is_available() is False
            assert query.is_available() is False
            assert mock_which.call_count == 1


class TestEmbeddedExifQuery:
    """Tests for the in-process Pillow/exifread backend."""

    def test_reads_datetime_from_jpeg(self, tmp_path: Path):
        path = tmp_path / "photo.jpg"
        exif = Image.Exif()
        exif[306] = "2021:05:06 07:08:09"
        Image.new("RGB", (8, 8)).save(path, exif=exif)

        query = EmbeddedExifQuery()

        assert query.query(path, "ModifyDate") == "2021-05-06_070809"
        assert query.query(path, "DateTimeOriginal") is None
        assert query.query(path, "MediaCreateDate") is None

    def test_non_image_has_no_timestamps(self, tmp_path: Path):
        path = tmp_path / "song.mp3"
        path.write_bytes(b"ID3 not really an mp3")

        query = EmbeddedExifQuery()

        for field in ("CreateDate", "DateTimeOriginal", "ModifyDate"):
            assert query.query(path, field) is None


def test_normalize_exif_date():
    assert normalize_exif_date("2021:05:06 07:08:09") == "2021-05-06_070809"
    assert normalize_exif_date("2021:05:06 07:08:09\x00") == "2021-05-06_070809"
    assert normalize_exif_date("0000:00:00 00:00:00") is None
    assert normalize_exif_date("garbage") is None


def test_create_metadata_query():
    assert create_metadata_query(RenameConfig(use_metadata=False)) is None
    assert isinstance(create_metadata_query(RenameConfig()), ExiftoolQuery)
    assert isinstance(create_metadata_query(RenameConfig(metadata_backend="embedded")),
                      EmbeddedExifQuery)
    with pytest.raises(ValueError):
        create_metadata_query(RenameConfig(metadata_backend="ffprobe"))
