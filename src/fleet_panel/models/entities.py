# fleet_panel/models/entities.py
"""
Typed records held by the snapshot store.

Design Notes:
    - Records are frozen. The store replaces a record with a single
      assignment, so a reader never sees a half-updated record.
    - "Unknown" is None, never 0 or False. Ignition is tri-state.
    - Models use extra='ignore' so a snapshot written by a newer version
      still loads.
    - Field names are English; the upstream names are mapped in
      fleet_panel.normalize.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleet_panel.reference import Severity

__all__: list[str] = [
    'Alert',
    'Driver',
    'EntityModelBase',
    'Position',
    'SnapshotDocument',
    'TrailerRosterEntry',
    'Vehicle',
]


class EntityModelBase(BaseModel):
    """Base for stored entities."""

    model_config = ConfigDict(extra='ignore', frozen=True)


class Alert(EntityModelBase):
    """Active alert flag on a position, resolved through the event table."""

    code: str
    description: str
    severity: Severity
    icon: str

    @property
    def is_informational(self) -> bool:
        return self.severity is Severity.INFO


class Vehicle(EntityModelBase):
    """One entry of the vehicle list. Replaced wholesale on every refresh."""

    vehicle_id: str
    plate: str = ''
    equipment_code: int = 0
    equipment: str = ''
    identification: str = ''
    driver_name: str = ''
    in_maintenance: bool = False
    firmware_version: str | None = None
    has_temperature_sensor_1: bool = False
    has_temperature_sensor_2: bool = False
    has_temperature_sensor_3: bool = False
    has_macro_keypad: bool = False
    accepts_commands: bool = False
    has_ignition_interlock: bool = False
    ignition_interlock_active: bool = False


class Driver(EntityModelBase):
    """One entry of the driver list."""

    driver_id: str
    name: str = ''
    document: str = ''


class TrailerRosterEntry(EntityModelBase):
    """One (tractor plate, trailer) pair of the trailer roster."""

    tractor_plate: str
    trailer_name: str


class Position(EntityModelBase):
    """
    Last accepted message of one vehicle.

    Attributes:
        message_id: Upstream mId, kept as a string (arbitrary precision).
        timestamp: Upstream timestamp string, verbatim.
        speed: km/h, None when not reported.
        ignition: True/False, None when unknown.
        alerts: Flags active in this message only.
    """

    message_id: str
    vehicle_id: str
    plate: str = ''
    timestamp: str = ''
    latitude: float | None = None
    longitude: float | None = None
    municipality: str = ''
    state: str = ''
    highway: str = ''
    street: str = ''
    speed: int | None = None
    ignition: bool | None = None
    odometer: int | None = None
    rpm: int | None = None
    temperature_1: float | None = None
    temperature_2: float | None = None
    temperature_3: float | None = None
    humidity_1: float | None = None
    humidity_2: float | None = None
    humidity_3: float | None = None
    alerts: tuple[Alert, ...] = ()
    telemetry_alert: str | None = None
    macro: str | None = None
    driver_name: str | None = None
    driver_id: str | None = None
    control_point: str | None = None
    route_point: str | None = None
    trailer: str | None = None
    trailer_battery: int | None = None
    fleet_drive_battery: int | None = None
    origin_code: int | None = None
    origin: str | None = None
    message_type: int | None = None
    trigger_event: int | None = None


class SnapshotDocument(BaseModel):
    """
    On-disk layout of the snapshot.

    Every section defaults to empty so documents missing keys still load.
    Sections are validated record by record in the store, not here, so one
    bad record never discards a whole section.
    """

    model_config = ConfigDict(extra='ignore')

    vehicles: dict[str, dict[str, Any]] = Field(default_factory=dict)
    positions: dict[str, dict[str, Any]] = Field(default_factory=dict)
    drivers: dict[str, dict[str, Any]] = Field(default_factory=dict)
    trailer_links: dict[str, str] = Field(default_factory=dict)
    cursor: str = '1'
    last_update: str | None = None
    cycles: int = 0
    saved_at: str | None = None

    @field_validator('cursor', mode='before')
    @classmethod
    def coerce_cursor(cls, cursor: Any) -> str:
        """Accept a cursor saved as a JSON integer; other non-strings reset it."""
        if isinstance(cursor, bool):
            return ''
        if isinstance(cursor, int):
            return str(cursor)
        return cursor if isinstance(cursor, str) else ''
