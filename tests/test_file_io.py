"""
Tests for fleet_panel.common.file_io module.

Tests SnapshotFileHandler and ParquetFileHandler load/save behavior,
including tolerance of missing or corrupt files and atomic writes.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest

from fleet_panel.common import ParquetFileHandler, SnapshotFileHandler


class TestSnapshotFileHandlerLoad:
    """Test SnapshotFileHandler.load()."""

    def test_missing_file_returns_none(self, snapshot_handler: SnapshotFileHandler) -> None:
        """Should return None when the snapshot does not exist."""
        assert snapshot_handler.exists is False
        assert snapshot_handler.load() is None

    def test_corrupt_file_returns_none(
        self,
        snapshot_path: Path,
        snapshot_handler: SnapshotFileHandler,
    ) -> None:
        """Should return None for a file that is not valid JSON."""
        snapshot_path.write_text('{"vehicles": {', encoding='utf-8')

        assert snapshot_handler.load() is None

    def test_non_object_returns_none(
        self,
        snapshot_path: Path,
        snapshot_handler: SnapshotFileHandler,
    ) -> None:
        """Should return None when the document is not a JSON object."""
        snapshot_path.write_text('[1, 2, 3]', encoding='utf-8')

        assert snapshot_handler.load() is None

    def test_loads_object(
        self,
        snapshot_path: Path,
        snapshot_handler: SnapshotFileHandler,
    ) -> None:
        """Should decode a JSON object."""
        snapshot_path.write_text('{"cursor": "42"}', encoding='utf-8')

        assert snapshot_handler.load() == {'cursor': '42'}


class TestSnapshotFileHandlerSave:
    """Test SnapshotFileHandler.save()."""

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Should create missing parent directories on save."""
        handler = SnapshotFileHandler(tmp_path / 'cache' / 'nested' / 'frota.json')

        handler.save({'cursor': '1'})

        assert handler.exists

    def test_round_trip_keeps_unicode(self, snapshot_handler: SnapshotFileHandler) -> None:
        """Should write non-ASCII text as-is."""
        snapshot_handler.save({'name': 'João', 'city': 'São Paulo'})

        assert 'João' in snapshot_handler.path.read_text(encoding='utf-8')
        assert snapshot_handler.load() == {'name': 'João', 'city': 'São Paulo'}

    def test_unserializable_raises_and_keeps_previous(
        self,
        snapshot_handler: SnapshotFileHandler,
    ) -> None:
        """Should raise TypeError and leave the previous document intact."""
        snapshot_handler.save({'cursor': '7'})

        with pytest.raises(TypeError):
            snapshot_handler.save({'cursor': object()})

        assert snapshot_handler.load() == {'cursor': '7'}

    def test_failed_rename_cleans_temp_file(
        self,
        snapshot_handler: SnapshotFileHandler,
    ) -> None:
        """Should remove the temp file when the final rename fails."""
        with (
            patch.object(Path, 'replace', side_effect=OSError('read-only')),
            pytest.raises(OSError, match='read-only'),
        ):
            snapshot_handler.save({'cursor': '1'})

        leftovers: list[Path] = list(snapshot_handler.path.parent.glob('*.tmp'))
        assert leftovers == []
        assert not snapshot_handler.exists

    def test_written_file_is_plain_json(self, snapshot_handler: SnapshotFileHandler) -> None:
        """Should write a document any JSON reader can parse."""
        snapshot_handler.save({'cycles': 3})

        raw: dict[str, int] = json.loads(snapshot_handler.path.read_text(encoding='utf-8'))
        assert raw == {'cycles': 3}


class TestParquetFileHandler:
    """Test ParquetFileHandler."""

    def test_initialization_creates_parent_directory(self, tmp_path: Path) -> None:
        """Should create the parent directory up front."""
        target: Path = tmp_path / 'export' / 'fleet.parquet'

        handler = ParquetFileHandler(target, compression='gzip')

        assert target.parent.is_dir()
        assert handler.compression == 'gzip'
        assert handler.exists is False

    def test_load_missing_returns_none(self, tmp_path: Path) -> None:
        """Should return None when nothing was exported yet."""
        assert ParquetFileHandler(tmp_path / 'fleet.parquet').load() is None

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Should write a Parquet file that reads back identically."""
        handler = ParquetFileHandler(tmp_path / 'fleet.parquet')
        dataframe = pd.DataFrame({'vehicle_id': ['1001', '1002'], 'speed': [45.0, None]})

        handler.save(dataframe)
        loaded: pd.DataFrame | None = handler.load()

        assert loaded is not None
        pd.testing.assert_frame_equal(loaded, dataframe)

    def test_corrupt_file_returns_none(self, tmp_path: Path) -> None:
        """Should return None for a file that is not Parquet."""
        target: Path = tmp_path / 'fleet.parquet'
        target.write_bytes(b'not parquet at all')

        assert ParquetFileHandler(target).load() is None
