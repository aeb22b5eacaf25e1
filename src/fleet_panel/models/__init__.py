# fleet_panel/models/__init__.py

from fleet_panel.models.entities import (
    Alert,
    Driver,
    Position,
    SnapshotDocument,
    TrailerRosterEntry,
    Vehicle,
)
from fleet_panel.models.operations import (
    ParsedResponse,
    RawRecord,
    RequestShape,
    UpstreamErrorResponse,
    UpstreamOperation,
    UpstreamOperations,
)

__all__: list[str] = [
    'Alert',
    'Driver',
    'ParsedResponse',
    'Position',
    'RawRecord',
    'RequestShape',
    'SnapshotDocument',
    'TrailerRosterEntry',
    'UpstreamErrorResponse',
    'UpstreamOperation',
    'UpstreamOperations',
    'Vehicle',
]
