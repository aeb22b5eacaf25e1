# fleet_panel/export.py
"""
Tabular export of the fleet view.

The fleet view is flattened into one row per vehicle with a fixed column
order and enforced dtypes, ready for Parquet storage and BI tools. Nested
alert records are reduced to counts plus a comma-joined list of codes.

Dtypes:
    - Measurements and counters: float64 (NaN when unknown)
    - ignition: pandas nullable boolean (keeps "unknown" distinct from False)
    - in_maintenance: bool
    - status: category
    - timestamp: datetime64 (naive local time, NaT when unparseable)
    - Everything else: string objects, None when empty
"""

import logging
from typing import Any, Final

import numpy as np
import pandas as pd

from fleet_panel.merge import parse_timestamp
from fleet_panel.view import FleetView, VehicleView

__all__: list[str] = [
    'FLEET_EXPORT_COLUMNS',
    'enforce_fleet_schema',
    'fleet_view_to_dataframe',
]

logger: logging.Logger = logging.getLogger(__name__)

# Canonical column order of the export.
FLEET_EXPORT_COLUMNS: Final[list[str]] = [
    'vehicle_id',  # Upstream vehicle id
    'plate',  # Display plate, empty for plateless vehicles
    'identification',  # Free-text label from the vehicle list
    'equipment',  # Tracker model name
    'driver',  # Message driver, else registered driver
    'in_maintenance',  # Maintenance flag
    'status',  # Status code
    'status_label',  # Status display label
    'timestamp',  # Last accepted message time
    'latitude',
    'longitude',
    'location_summary',  # "municipality/state"
    'highway',
    'street',
    'speed',  # km/h
    'ignition',  # True/False/<NA>
    'odometer',
    'rpm',
    'temperature_1',
    'temperature_2',
    'temperature_3',
    'humidity_1',
    'humidity_2',
    'humidity_3',
    'trailer',  # Message trailer, else linked trailer
    'trailer_battery',
    'fleet_drive_battery',
    'alert_count',  # Non-informational alerts
    'critical_alerts',
    'high_alerts',
    'alert_codes',  # Comma-joined evtN codes
    'telemetry_alert',
    'macro',
    'origin',
]

NUMERIC_COLUMNS: Final[list[str]] = [
    'latitude',
    'longitude',
    'speed',
    'odometer',
    'rpm',
    'temperature_1',
    'temperature_2',
    'temperature_3',
    'humidity_1',
    'humidity_2',
    'humidity_3',
    'trailer_battery',
    'fleet_drive_battery',
    'alert_count',
    'critical_alerts',
    'high_alerts',
]


def _flatten(vehicle: VehicleView) -> dict[str, Any]:
    row: dict[str, Any] = vehicle.model_dump(
        include=set(FLEET_EXPORT_COLUMNS) - {'alert_count', 'alert_codes'},
    )
    row['status'] = vehicle.status.value
    row['timestamp'] = parse_timestamp(vehicle.timestamp) if vehicle.timestamp else None
    row['alert_count'] = sum(1 for alert in vehicle.alerts if not alert.is_informational)
    row['alert_codes'] = ','.join(alert.code for alert in vehicle.alerts)
    return row


def enforce_fleet_schema(dataframe: pd.DataFrame) -> pd.DataFrame:
    """
    Enforce column order and dtypes on a fleet export DataFrame.

    Idempotent: applying it twice gives the same frame.

    Raises:
        ValueError: If required columns are missing.
    """
    missing_columns: set[str] = set(FLEET_EXPORT_COLUMNS) - set(dataframe.columns)
    if missing_columns:
        raise ValueError(f'DataFrame missing required columns: {sorted(missing_columns)}')

    result: pd.DataFrame = dataframe.copy()

    for column_name in NUMERIC_COLUMNS:
        result[column_name] = pd.to_numeric(result[column_name], errors='coerce').astype(
            np.float64
        )

    result['timestamp'] = pd.to_datetime(result['timestamp'], errors='coerce')
    result['ignition'] = result['ignition'].astype('boolean')
    result['in_maintenance'] = result['in_maintenance'].fillna(False).astype(bool)
    result['status'] = result['status'].astype('category')

    non_string_columns: set[str] = set(NUMERIC_COLUMNS) | {
        'timestamp',
        'ignition',
        'in_maintenance',
        'status',
    }
    string_columns: list[str] = [
        column for column in FLEET_EXPORT_COLUMNS if column not in non_string_columns
    ]
    for column_name in string_columns:
        # Empty strings become None so Parquet stores nulls
        result[column_name] = result[column_name].astype(object).where(
            result[column_name].notna() & (result[column_name].astype(str) != ''),
            None,
        )

    return result[FLEET_EXPORT_COLUMNS]


def fleet_view_to_dataframe(view: FleetView) -> pd.DataFrame:
    """
    Flatten a fleet view into a typed DataFrame, one row per vehicle.

    Returns:
        DataFrame with FLEET_EXPORT_COLUMNS, possibly with zero rows.
    """
    rows: list[dict[str, Any]] = [_flatten(vehicle) for vehicle in view.vehicles]
    dataframe: pd.DataFrame = pd.DataFrame(rows, columns=FLEET_EXPORT_COLUMNS)
    if dataframe.empty:
        logger.warning('Fleet view has no vehicles, exporting an empty table')
    return enforce_fleet_schema(dataframe)
