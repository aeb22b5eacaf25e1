"""
Tests for fleet_panel.export module.

Tests flattening of the fleet view and schema enforcement on the export.
"""

from typing import TypeAlias
from collections.abc import Callable
from datetime import datetime

import pandas as pd
import pytest

from fleet_panel.export import (
    FLEET_EXPORT_COLUMNS,
    NUMERIC_COLUMNS,
    enforce_fleet_schema,
    fleet_view_to_dataframe,
)
from fleet_panel.models import Alert, Position, Vehicle
from fleet_panel.reference import Severity
from fleet_panel.store import SnapshotStore
from fleet_panel.view import build_fleet_view

PositionFactory: TypeAlias = Callable[..., Position]


class TestExportConstants:
    """Test export column definitions."""

    def test_numeric_columns_are_exported(self) -> None:
        """Every numeric column should be part of the export."""
        assert all(column in FLEET_EXPORT_COLUMNS for column in NUMERIC_COLUMNS)

    def test_columns_are_unique(self) -> None:
        """FLEET_EXPORT_COLUMNS should not repeat a column."""
        assert len(set(FLEET_EXPORT_COLUMNS)) == len(FLEET_EXPORT_COLUMNS)


class TestFleetViewToDataFrame:
    """Test fleet_view_to_dataframe()."""

    def test_one_row_per_vehicle(
        self,
        store: SnapshotStore,
        sample_vehicle: Vehicle,
        make_position: PositionFactory,
    ) -> None:
        """Should flatten each vehicle with typed columns."""
        store.replace_vehicles([sample_vehicle, Vehicle(vehicle_id='1002')])
        store.apply_messages(
            [
                make_position(
                    speed=45,
                    ignition=True,
                    odometer=152340,
                    alerts=(
                        Alert(code='evt5', description='x', severity=Severity.CRITICO, icon='!'),
                        Alert(code='evt19', description='y', severity=Severity.INFO, icon='!'),
                    ),
                )
            ]
        )

        dataframe: pd.DataFrame = fleet_view_to_dataframe(build_fleet_view(store))

        assert list(dataframe.columns) == FLEET_EXPORT_COLUMNS
        assert len(dataframe) == 2  # noqa: PLR2004

        first = dataframe.iloc[0]
        assert first['vehicle_id'] == '1001'
        assert first['speed'] == 45.0  # noqa: PLR2004
        assert first['timestamp'] == pd.Timestamp(datetime(2025, 1, 5, 14, 30))
        assert first['alert_count'] == 1
        assert first['alert_codes'] == 'evt5,evt19'
        assert first['status'] == 'moving'

        second = dataframe.iloc[1]
        assert second['status'] == 'no-signal'
        assert pd.isna(second['speed'])
        assert pd.isna(second['timestamp'])
        assert pd.isna(second['plate'])

    def test_dtypes(
        self,
        store: SnapshotStore,
        sample_vehicle: Vehicle,
        make_position: PositionFactory,
    ) -> None:
        """Should enforce float, nullable boolean and categorical dtypes."""
        store.replace_vehicles([sample_vehicle])
        store.apply_messages([make_position()])

        dataframe: pd.DataFrame = fleet_view_to_dataframe(build_fleet_view(store))

        for column in NUMERIC_COLUMNS:
            assert dataframe[column].dtype == 'float64', column
        assert dataframe['ignition'].dtype == 'boolean'
        assert pd.isna(dataframe['ignition'].iloc[0])
        assert dataframe['in_maintenance'].dtype == bool
        assert isinstance(dataframe['status'].dtype, pd.CategoricalDtype)
        assert pd.api.types.is_datetime64_any_dtype(dataframe['timestamp'])

    def test_empty_view(self, store: SnapshotStore) -> None:
        """Should produce an empty frame with every column."""
        dataframe: pd.DataFrame = fleet_view_to_dataframe(build_fleet_view(store))

        assert dataframe.empty
        assert list(dataframe.columns) == FLEET_EXPORT_COLUMNS


class TestEnforceFleetSchema:
    """Test enforce_fleet_schema()."""

    def test_missing_columns_raise(self) -> None:
        """Should reject frames without the export columns."""
        with pytest.raises(ValueError, match='missing required columns'):
            enforce_fleet_schema(pd.DataFrame({'vehicle_id': ['1']}))

    def test_invalid_numbers_become_nan(
        self,
        store: SnapshotStore,
        sample_vehicle: Vehicle,
    ) -> None:
        """Should coerce unparseable numeric values to NaN."""
        store.replace_vehicles([sample_vehicle])
        dataframe: pd.DataFrame = fleet_view_to_dataframe(build_fleet_view(store))
        dataframe['speed'] = dataframe['speed'].astype(object)
        dataframe.loc[0, 'speed'] = 'fast'

        result: pd.DataFrame = enforce_fleet_schema(dataframe)

        assert pd.isna(result.loc[0, 'speed'])
