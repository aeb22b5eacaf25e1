# fleet_panel/common/file_io.py
"""
File input/output utilities for the fleet_panel package.

This module handles the low-level details of reading and writing the JSON
snapshot document and the Parquet fleet export, keeping storage format details
away from the store and view logic.

Design Philosophy:
------------------
- load() returns None on errors (missing/corrupt data is recoverable)
- save() raises on errors (callers decide whether a failure is fatal)
- Writes are atomic (temp file + rename) so a crash mid-write never leaves a
  truncated snapshot behind

Thread Safety:
--------------
These classes are NOT thread-safe. The snapshot store serializes its own
save() calls; use separate paths for separate writers.

Usage:
------
    from fleet_panel.common.file_io import SnapshotFileHandler

    handler = SnapshotFileHandler(Path('.cache-frota.json'))
    document = handler.load()          # None if missing/corrupt
    handler.save({'vehicles': {}})     # raises on failure
"""

import json
import logging
import tempfile
from collections.abc import Mapping
from contextlib import suppress
from pathlib import Path
from typing import Any, cast

import pandas as pd
from pyarrow import (
    ArrowInvalid as _ArrowInvalid,  # pyright: ignore[reportUnknownVariableType]
    ArrowIOError as _ArrowIOError,  # pyright: ignore[reportUnknownVariableType]
)

from fleet_panel.config import CompressionType

# The pyarrow type stubs are incomplete, hence the casts.
ArrowInvalid: type[Exception] = cast(type[Exception], _ArrowInvalid)
ArrowIOError: type[Exception] = cast(type[Exception], _ArrowIOError)

__all__: list[str] = ['ParquetFileHandler', 'SnapshotFileHandler']

logger: logging.Logger = logging.getLogger(__name__)


def _atomic_replace(file_path: Path, suffix: str) -> Path:
    """
    Reserve a temp file next to file_path for an atomic write.

    Same directory ensures the later rename stays on one filesystem.

    Returns:
        Path of the (empty) temp file; the caller writes it then renames it.
    """
    with tempfile.NamedTemporaryFile(
        mode='wb',
        suffix=suffix,
        dir=file_path.parent,
        delete=False,
    ) as temp_file:
        return Path(temp_file.name)


# =============================================================================
# JSON Snapshot Document
# =============================================================================


class SnapshotFileHandler:
    """
    Reads and writes the single JSON snapshot document.

    Atomic Write Guarantee:
        save() writes to a temporary file in the same directory, then renames
        it over the target. The previous snapshot stays intact until the new
        one is completely written.

    Attributes:
        path: The snapshot file path (read-only property).
        exists: Whether the snapshot file currently exists (read-only property).
    """

    def __init__(self, snapshot_path: Path) -> None:
        """
        Initialize the snapshot file handler.

        Args:
            snapshot_path: Location of the JSON document. Its parent directory
                is created on first save, not here, so a read-only location can
                still be loaded from.
        """
        self._path: Path = snapshot_path

        logger.debug('Initialized SnapshotFileHandler: path=%r', self._path)

    @property
    def path(self) -> Path:
        """The configured snapshot path."""
        return self._path

    @property
    def exists(self) -> bool:
        """Whether the snapshot file currently exists on disk."""
        return self._path.exists()

    def load(self) -> dict[str, Any] | None:
        """
        Load the snapshot document.

        Returns None for missing, unreadable or corrupt files rather than
        raising, so callers treat it as "no cached state" and start empty.

        Returns:
            The decoded JSON object, or None if the file is missing, cannot be
            read, is not valid JSON, or does not hold a JSON object.
        """
        if not self._path.exists():
            # Absence is expected on first run
            return None

        try:
            logger.debug('Loading snapshot from %r', self._path)
            raw_text: str = self._path.read_text(encoding='utf-8')
            document: Any = json.loads(raw_text)
        except (OSError, ValueError) as read_error:
            # ValueError covers json.JSONDecodeError and UnicodeDecodeError
            logger.warning('Failed to read snapshot %r: %s', self._path, read_error)
            return None

        if not isinstance(document, dict):
            logger.warning(
                'Snapshot %r does not hold a JSON object (got %s), ignoring it',
                self._path,
                type(document).__name__,
            )
            return None

        return cast(dict[str, Any], document)

    def save(self, document: Mapping[str, Any]) -> None:
        """
        Write the snapshot document atomically.

        Args:
            document: JSON-serializable mapping.

        Raises:
            OSError: File system errors (permissions, disk full, etc).
            TypeError: If the document holds values JSON cannot encode.
            ValueError: If the document holds circular references or NaN
                handling fails.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path: Path | None = None

        try:
            payload: str = json.dumps(document, ensure_ascii=False)
            temp_path = _atomic_replace(self._path, '.json.tmp')
            temp_path.write_text(payload, encoding='utf-8')
            temp_path.replace(self._path)
        except (OSError, TypeError, ValueError):
            if temp_path is not None and temp_path.exists():
                with suppress(OSError):
                    temp_path.unlink()
            raise

        logger.debug('Saved snapshot (%d bytes) to %r', len(payload), self._path)


# =============================================================================
# Parquet Export
# =============================================================================


class ParquetFileHandler:
    """
    Handles reading and writing a single Parquet file.

    Each handler manages exactly one file. save() uses the same temp file +
    rename scheme as the snapshot handler.

    Attributes:
        path: The Parquet file path (read-only property).
        compression: The compression codec (read-only property).
        exists: Whether the Parquet file currently exists (read-only property).
    """

    def __init__(
        self,
        parquet_path: Path,
        compression: CompressionType = 'snappy',
    ) -> None:
        """
        Initialize the Parquet file handler.

        Creates the parent directory if it doesn't exist, failing fast on
        permission issues rather than waiting until save().

        Args:
            parquet_path: Target file path.
            compression: Codec passed to pandas.to_parquet().

        Raises:
            OSError: If parent directory cannot be created.
        """
        self._path: Path = parquet_path
        self._compression: CompressionType = compression

        self._path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(
            'Initialized ParquetFileHandler: path=%r, compression=%r',
            self._path,
            self._compression,
        )

    @property
    def path(self) -> Path:
        """The configured Parquet file path."""
        return self._path

    @property
    def compression(self) -> CompressionType:
        """The configured compression codec."""
        return self._compression

    @property
    def exists(self) -> bool:
        """Whether the Parquet file currently exists on disk."""
        return self._path.exists()

    def load(self) -> pd.DataFrame | None:
        """
        Load the Parquet file into a DataFrame.

        Returns:
            DataFrame with the file contents, or None if the file is missing,
            unreadable, or corrupt.
        """
        if not self._path.exists():
            return None

        try:
            dataframe: pd.DataFrame = pd.read_parquet(self._path)
        except (OSError, ArrowInvalid, ArrowIOError) as read_error:
            logger.exception(
                'Failed to read Parquet file %r: %s',
                self._path,
                read_error,
            )
            return None

        logger.debug('Loaded %d records from %r', len(dataframe), self._path)
        return dataframe

    def save(self, dataframe: pd.DataFrame) -> None:
        """
        Save a DataFrame to the Parquet file atomically.

        Args:
            dataframe: The DataFrame to persist. Empty DataFrames are allowed
                but trigger a warning log.

        Raises:
            OSError: File system errors (permissions, disk full, etc).
            ArrowInvalid: DataFrame contains types that cannot be serialized.
            ArrowIOError: I/O errors during write.
        """
        if dataframe.empty:
            logger.warning('Saving empty DataFrame to %r', self._path)

        record_count: int = len(dataframe)
        temp_path: Path | None = None

        try:
            temp_path = _atomic_replace(self._path, '.parquet.tmp')
            dataframe.to_parquet(
                temp_path,
                index=False,
                compression=self._compression,
            )
            temp_path.replace(self._path)
        except (OSError, ArrowInvalid, ArrowIOError) as write_error:
            logger.exception(
                'Failed to save %d records to %r: %s',
                record_count,
                self._path,
                write_error,
            )
            if temp_path is not None and temp_path.exists():
                with suppress(OSError):
                    temp_path.unlink()
            raise

        logger.info(
            'Saved %d records (%d columns) to %r',
            record_count,
            len(dataframe.columns),
            self._path,
        )
