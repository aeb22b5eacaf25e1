# fleet_panel/view.py
"""
Read-only views over the snapshot store.

build_fleet_view() derives the per-vehicle display records and the fleet
statistics; build_health() reports raw counters. Both are recomputed on
every call and never mutate the store.

Status precedence (first match wins):
    1. moving:              position with speed > 0
    2. ignition-on-stopped: position with ignition on
    3. stopped:             position with ignition off
    4. indeterminate:       position with unknown ignition
    5. no-signal:           no position (or one without a timestamp)
"""

import logging
import re
import time
from enum import Enum
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from fleet_panel.models.entities import Alert, Position, Vehicle
from fleet_panel.reference import Severity
from fleet_panel.store import SnapshotStore

__all__: list[str] = [
    'FleetStatistics',
    'FleetView',
    'HealthReport',
    'VehicleStatus',
    'VehicleView',
    'build_fleet_view',
    'build_health',
    'derive_status',
]

logger: logging.Logger = logging.getLogger(__name__)

_NUMERIC_ONLY: Final[re.Pattern[str]] = re.compile(r'[0-9]+')


class VehicleStatus(str, Enum):
    MOVING = 'moving'
    IGNITION_ON_STOPPED = 'ignition-on-stopped'
    STOPPED = 'stopped'
    INDETERMINATE = 'indeterminate'
    NO_SIGNAL = 'no-signal'


# Display label and color per status
STATUS_STYLES: Final[dict[VehicleStatus, tuple[str, str]]] = {
    VehicleStatus.MOVING: ('Em Movimento', '#10b981'),
    VehicleStatus.IGNITION_ON_STOPPED: ('Parado — Ignição Ligada', '#f59e0b'),
    VehicleStatus.STOPPED: ('Parado', '#1436a6'),
    VehicleStatus.INDETERMINATE: ('Indeterminado', '#8b5cf6'),
    VehicleStatus.NO_SIGNAL: ('Sem Sinal', '#6b7280'),
}


# =============================================================================
# View Models
# =============================================================================


class VehicleView(BaseModel):
    """One row of the fleet view."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    vehicle_id: str
    plate: str
    identification: str
    equipment: str
    driver: str
    in_maintenance: bool
    latitude: float | None
    longitude: float | None
    municipality: str
    state: str
    highway: str
    street: str
    location_summary: str
    speed: int | None
    odometer: int | None
    ignition: bool | None
    timestamp: str | None
    alerts: tuple[Alert, ...]
    critical_alerts: int
    high_alerts: int
    macro: str | None
    trailer: str | None
    trailer_battery: int | None
    control_point: str | None
    route_point: str | None
    rpm: int | None
    temperature_1: float | None
    temperature_2: float | None
    temperature_3: float | None
    humidity_1: float | None
    humidity_2: float | None
    humidity_3: float | None
    fleet_drive_battery: int | None
    telemetry_alert: str | None
    origin: str | None
    status: VehicleStatus
    status_label: str
    status_color: str


class FleetStatistics(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)

    total: int = 0
    moving: int = 0
    ignition_on_stopped: int = 0
    stopped: int = 0
    indeterminate: int = 0
    no_signal: int = 0
    alerts: int = Field(default=0, description='Active non-informational alerts')
    critical_alerts: int = 0
    high_alerts: int = 0


class FleetView(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)

    vehicles: list[VehicleView]
    statistics: FleetStatistics
    last_update: str | None


class HealthReport(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)

    status: str = 'ok'
    uptime_seconds: float
    vehicles: int
    positions: int
    drivers: int
    trailer_links: int
    cursor: str
    cycles: int
    last_update: str | None


# =============================================================================
# Derivation
# =============================================================================


def derive_status(position: Position | None) -> tuple[VehicleStatus, str, str]:
    """
    Classify a vehicle from its last position.

    Returns:
        (status, label, color). The moving label carries the speed, e.g.
        ``'Em Movimento (45 km/h)'``.
    """
    status: VehicleStatus
    if position is None or not position.timestamp:
        status = VehicleStatus.NO_SIGNAL
    elif position.speed is not None and position.speed > 0:
        status = VehicleStatus.MOVING
    elif position.ignition is True:
        status = VehicleStatus.IGNITION_ON_STOPPED
    elif position.ignition is False:
        status = VehicleStatus.STOPPED
    else:
        status = VehicleStatus.INDETERMINATE

    label: str
    color: str
    label, color = STATUS_STYLES[status]
    if status is VehicleStatus.MOVING and position is not None:
        label = f'{label} ({position.speed} km/h)'
    return status, label, color


def _display_plate(plate: str) -> str:
    # Numeric-only "plates" are internal codes, not plates
    return '' if _NUMERIC_ONLY.fullmatch(plate) else plate


def _build_vehicle_view(
    vehicle_id: str,
    vehicle: Vehicle | None,
    position: Position | None,
    linked_trailer: str | None,
) -> VehicleView:
    status: VehicleStatus
    label: str
    color: str
    status, label, color = derive_status(position)

    # Blank records stand in for a missing side; every optional field is empty
    known: Vehicle = vehicle if vehicle is not None else Vehicle(vehicle_id=vehicle_id)
    last: Position = (
        position
        if position is not None
        else Position(message_id='', vehicle_id=vehicle_id)
    )

    return VehicleView(
        vehicle_id=vehicle_id,
        plate=_display_plate(known.plate or last.plate),
        identification=known.identification,
        equipment=known.equipment,
        driver=last.driver_name or known.driver_name,
        in_maintenance=known.in_maintenance,
        latitude=last.latitude,
        longitude=last.longitude,
        municipality=last.municipality,
        state=last.state,
        highway=last.highway,
        street=last.street,
        location_summary='/'.join(part for part in (last.municipality, last.state) if part),
        speed=last.speed,
        odometer=last.odometer,
        ignition=last.ignition,
        timestamp=last.timestamp or None,
        alerts=last.alerts,
        critical_alerts=sum(1 for alert in last.alerts if alert.severity is Severity.CRITICO),
        high_alerts=sum(1 for alert in last.alerts if alert.severity is Severity.ALTO),
        macro=last.macro,
        trailer=last.trailer or linked_trailer,
        trailer_battery=last.trailer_battery,
        control_point=last.control_point,
        route_point=last.route_point,
        rpm=last.rpm,
        temperature_1=last.temperature_1,
        temperature_2=last.temperature_2,
        temperature_3=last.temperature_3,
        humidity_1=last.humidity_1,
        humidity_2=last.humidity_2,
        humidity_3=last.humidity_3,
        fleet_drive_battery=last.fleet_drive_battery,
        telemetry_alert=last.telemetry_alert,
        origin=last.origin,
        status=status,
        status_label=label,
        status_color=color,
    )


def _sort_key(view: VehicleView) -> tuple[bool, str, str]:
    # Plateless vehicles last
    return (not view.plate, view.plate.casefold(), view.vehicle_id)


def build_fleet_view(store: SnapshotStore) -> FleetView:
    """
    Derive the fleet view from the current store contents.

    Covers every vehicle id known from the vehicle list or from a position.
    """
    vehicles: dict[str, Vehicle] = store.vehicles
    positions: dict[str, Position] = store.positions
    trailer_links: dict[str, str] = store.trailer_links

    vehicle_ids: set[str] = set(vehicles) | set(positions)
    views: list[VehicleView] = sorted(
        (
            _build_vehicle_view(
                vehicle_id,
                vehicles.get(vehicle_id),
                positions.get(vehicle_id),
                trailer_links.get(vehicle_id),
            )
            for vehicle_id in vehicle_ids
        ),
        key=_sort_key,
    )

    counts: dict[VehicleStatus, int] = dict.fromkeys(VehicleStatus, 0)
    for view in views:
        counts[view.status] += 1

    statistics: FleetStatistics = FleetStatistics(
        total=len(views),
        moving=counts[VehicleStatus.MOVING],
        ignition_on_stopped=counts[VehicleStatus.IGNITION_ON_STOPPED],
        stopped=counts[VehicleStatus.STOPPED],
        indeterminate=counts[VehicleStatus.INDETERMINATE],
        no_signal=counts[VehicleStatus.NO_SIGNAL],
        alerts=sum(
            1 for view in views for alert in view.alerts if not alert.is_informational
        ),
        critical_alerts=sum(view.critical_alerts for view in views),
        high_alerts=sum(view.high_alerts for view in views),
    )

    return FleetView(
        vehicles=views,
        statistics=statistics,
        last_update=store.last_update,
    )


def build_health(
    store: SnapshotStore,
    started_at: float,
    now: float | None = None,
) -> HealthReport:
    """
    Report raw store counters.

    Args:
        store: Store to inspect.
        started_at: time.monotonic() value taken at process start.
        now: Current time.monotonic() value; read from the clock if None.
    """
    current: float = time.monotonic() if now is None else now
    return HealthReport(
        uptime_seconds=max(0.0, current - started_at),
        vehicles=len(store.vehicles),
        positions=len(store.positions),
        drivers=len(store.drivers),
        trailer_links=len(store.trailer_links),
        cursor=store.cursor,
        cycles=store.cycles,
        last_update=store.last_update,
    )
