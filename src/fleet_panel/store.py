# fleet_panel/store.py
"""
Authoritative in-memory fleet state with JSON persistence.

The store owns every table (vehicles, positions, drivers, trailer links),
the message cursor and the bookkeeping counters. Fetch operations mutate it
only through the methods below; the view builder only reads.

Design Decisions:
-----------------
- Memory is the source of truth. A failed save is logged and otherwise
  ignored; the next successful mutation writes everything again.

- Records are immutable models replaced by a single assignment, so readers
  never observe a half-written record. A re-entrant lock serializes
  mutations and serialization; accessors hand out shallow copies.

- On load every stored alert is rebuilt from the current event table by its
  code, and codes that left the table are dropped, so table edits apply to
  cached data too.

- Loading tolerates a missing or corrupt file and missing sections. Records
  that fail validation are skipped one by one.

Usage:
------
    store = SnapshotStore(SnapshotFileHandler(Path('.cache-frota.json')))
    store.load()
    summary = store.apply_messages(positions)
    print(summary.accepted, store.cursor)
"""

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from fleet_panel.common import SnapshotFileHandler
from fleet_panel.cursor import INITIAL_CURSOR, MessageCursor
from fleet_panel.merge import merge_position
from fleet_panel.models.entities import (
    Alert,
    Driver,
    Position,
    SnapshotDocument,
    TrailerRosterEntry,
    Vehicle,
)
from fleet_panel.reference import EventInfo, event_info
from fleet_panel.trailers import resolve_trailer_links

__all__: list[str] = ['MessageBatchSummary', 'SnapshotStore']

logger: logging.Logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MessageBatchSummary(BaseModel):
    """Outcome of applying one batch of messages."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    received: int
    accepted: int
    dropped: int
    cursor: str
    cursor_advanced: bool


# =============================================================================
# Snapshot Store
# =============================================================================


class SnapshotStore:
    """
    Single owner of the fleet state.

    Attributes:
        vehicles, positions, drivers, trailer_links: Copies of the tables.
        cursor: Current message cursor string.
        cycles: Number of non-empty message batches applied.
        last_update: UTC ISO-8601 time of the last non-empty batch.
    """

    def __init__(
        self,
        handler: SnapshotFileHandler,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._handler: SnapshotFileHandler = handler
        self._clock: Callable[[], datetime] = clock
        self._lock: threading.RLock = threading.RLock()

        self._vehicles: dict[str, Vehicle] = {}
        self._positions: dict[str, Position] = {}
        self._drivers: dict[str, Driver] = {}
        self._trailer_links: dict[str, str] = {}
        self._cursor: MessageCursor = MessageCursor()
        self._last_update: str | None = None
        self._cycles: int = 0

    # -------------------------------------------------------------------------
    # Read Accessors
    # -------------------------------------------------------------------------

    @property
    def vehicles(self) -> dict[str, Vehicle]:
        with self._lock:
            return dict(self._vehicles)

    @property
    def positions(self) -> dict[str, Position]:
        with self._lock:
            return dict(self._positions)

    @property
    def drivers(self) -> dict[str, Driver]:
        with self._lock:
            return dict(self._drivers)

    @property
    def trailer_links(self) -> dict[str, str]:
        with self._lock:
            return dict(self._trailer_links)

    @property
    def cursor(self) -> str:
        return self._cursor.value

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def last_update(self) -> str | None:
        return self._last_update

    @property
    def has_vehicles(self) -> bool:
        return bool(self._vehicles)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def replace_vehicles(self, vehicles: Iterable[Vehicle]) -> int:
        """
        Store the records of a vehicle-list fetch.

        Each listed vehicle replaces its stored record wholesale. Vehicles
        missing from the list are kept.

        Returns:
            Number of vehicles written.
        """
        with self._lock:
            count: int = 0
            for vehicle in vehicles:
                self._vehicles[vehicle.vehicle_id] = vehicle
                count += 1
            self.save()
        return count

    def replace_drivers(self, drivers: Iterable[Driver]) -> int:
        """Store the records of a driver-list fetch; see replace_vehicles()."""
        with self._lock:
            count: int = 0
            for driver in drivers:
                self._drivers[driver.driver_id] = driver
                count += 1
            self.save()
        return count

    def apply_messages(
        self,
        positions: Sequence[Position],
        message_ids: Iterable[str | None] | None = None,
    ) -> MessageBatchSummary:
        """
        Merge a batch of normalized messages.

        For every message carrying a trailer name the trailer link of its
        vehicle is updated, whether or not the message itself is accepted.

        Args:
            positions: Normalized messages in upstream order.
            message_ids: Every id of the raw batch, including records the
                normalizer skipped. Defaults to the ids of `positions`.

        Returns:
            Counts plus the cursor after the batch.
        """
        ids: list[str | None] = (
            list(message_ids)
            if message_ids is not None
            else [position.message_id for position in positions]
        )

        with self._lock:
            if not positions and not ids:
                return MessageBatchSummary(
                    received=0,
                    accepted=0,
                    dropped=0,
                    cursor=self._cursor.value,
                    cursor_advanced=False,
                )

            accepted: int = 0
            for incoming in positions:
                if incoming.trailer:
                    self._trailer_links[incoming.vehicle_id] = incoming.trailer

                merged: Position | None = merge_position(
                    self._positions.get(incoming.vehicle_id), incoming
                )
                if merged is not None:
                    self._positions[incoming.vehicle_id] = merged
                    accepted += 1

            advanced: bool = self._cursor.advance(ids)
            self._last_update = self._clock().isoformat()
            self._cycles += 1
            self.save()

            return MessageBatchSummary(
                received=len(positions),
                accepted=accepted,
                dropped=len(positions) - accepted,
                cursor=self._cursor.value,
                cursor_advanced=advanced,
            )

    def apply_trailer_roster(self, roster: Iterable[TrailerRosterEntry]) -> int:
        """
        Replace the trailer links from a roster fetch.

        The map is replaced only when at least one pair resolves to a known
        vehicle; otherwise the current links stay untouched.

        Returns:
            Number of resolved links (0 means nothing changed).
        """
        with self._lock:
            links: dict[str, str] = resolve_trailer_links(roster, self._vehicles)
            if links:
                self._trailer_links = links
                self.save()
            return len(links)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        """Serialize the full state as a JSON-ready dict."""
        with self._lock:
            document: SnapshotDocument = SnapshotDocument(
                vehicles={
                    key: value.model_dump(mode='json')
                    for key, value in self._vehicles.items()
                },
                positions={
                    key: value.model_dump(mode='json')
                    for key, value in self._positions.items()
                },
                drivers={
                    key: value.model_dump(mode='json')
                    for key, value in self._drivers.items()
                },
                trailer_links=dict(self._trailer_links),
                cursor=self._cursor.value,
                last_update=self._last_update,
                cycles=self._cycles,
                saved_at=self._clock().isoformat(),
            )
        return document.model_dump(mode='json')

    def save(self) -> bool:
        """
        Write the snapshot. Failures are logged, never raised.

        Returns:
            True if the file was written.
        """
        with self._lock:
            try:
                self._handler.save(self.to_document())
            except (OSError, TypeError, ValueError) as save_error:
                logger.warning(
                    'Snapshot save to %r failed, keeping state in memory: %s',
                    self._handler.path,
                    save_error,
                )
                return False
        return True

    def load(self) -> bool:
        """
        Replace the state with the persisted snapshot, if one is readable.

        Returns:
            True if a snapshot was loaded, False if starting empty.
        """
        raw_document: dict[str, Any] | None = self._handler.load()
        if raw_document is None:
            logger.info('No usable snapshot at %r, starting empty', self._handler.path)
            return False

        try:
            document: SnapshotDocument = SnapshotDocument.model_validate(raw_document)
        except ValidationError as validation_error:
            logger.warning(
                'Snapshot %r has an invalid layout, starting empty: %s',
                self._handler.path,
                validation_error,
            )
            return False

        vehicles: dict[str, Vehicle] = _load_section(document.vehicles, Vehicle)
        drivers: dict[str, Driver] = _load_section(document.drivers, Driver)
        positions: dict[str, Position] = {}
        for vehicle_id, raw_position in document.positions.items():
            position: Position | None = _load_position(raw_position)
            if position is not None:
                positions[vehicle_id] = position

        with self._lock:
            self._vehicles = vehicles
            self._drivers = drivers
            self._positions = positions
            self._trailer_links = dict(document.trailer_links)
            self._cursor = MessageCursor(document.cursor or INITIAL_CURSOR)
            self._last_update = document.last_update
            self._cycles = document.cycles

        logger.info(
            'Snapshot loaded: %d vehicles, %d positions, %d drivers, '
            '%d trailer links, cursor=%s',
            len(vehicles),
            len(positions),
            len(drivers),
            len(document.trailer_links),
            self._cursor.value,
        )
        return True


# =============================================================================
# Load Helpers
# =============================================================================


EntityT = TypeVar("EntityT", bound=BaseModel)


def _load_section(
    section: dict[str, dict[str, Any]],
    model: type[EntityT],
) -> dict[str, EntityT]:
    loaded: dict[str, EntityT] = {}
    for key, raw_record in section.items():
        try:
            loaded[key] = model.model_validate(raw_record)
        except ValidationError as validation_error:
            logger.warning(
                'Skipping invalid %s %r in snapshot: %s',
                model.__name__,
                key,
                validation_error,
            )
    return loaded


def _refresh_alerts(raw_alerts: Any) -> tuple[Alert, ...]:
    """Rebuild stored alerts from the event table, dropping unknown codes."""
    if not isinstance(raw_alerts, list | tuple):
        return ()

    alerts: list[Alert] = []
    for raw_alert in raw_alerts:
        code: Any = raw_alert.get('code') if isinstance(raw_alert, dict) else raw_alert
        if not isinstance(code, str):
            continue
        info: EventInfo | None = event_info(code)
        if info is None:
            logger.debug('Dropping retired alert code %s from snapshot', code)
            continue
        alerts.append(
            Alert(
                code=code,
                description=info.description,
                severity=info.severity,
                icon=info.icon,
            )
        )
    return tuple(alerts)


def _load_position(raw_position: dict[str, Any]) -> Position | None:
    fields: dict[str, Any] = {
        key: value for key, value in raw_position.items() if key != 'alerts'
    }
    fields['alerts'] = _refresh_alerts(raw_position.get('alerts'))
    try:
        return Position.model_validate(fields)
    except ValidationError as validation_error:
        logger.warning('Skipping invalid position in snapshot: %s', validation_error)
        return None
