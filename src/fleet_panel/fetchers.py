# fleet_panel/fetchers.py
"""
The four fetch operations: vehicles, drivers, trailer roster, messages.

Each operation sends one request (the trailer roster possibly several),
normalizes the records and hands them to the store. Every operation is
fault-isolated: it logs whatever went wrong and returns False instead of
raising, so one failing fetch never stops a polling cycle.

Outcomes:
    - Transport or protocol failure: logged at ERROR, returns False.
    - Upstream error envelope: already logged by the client, returns False.
    - Empty result: logged at INFO, returns True. The protocol cannot tell
      "nothing new" from a degraded upstream, so neither is treated as a
      failure.

Trailer roster retry:
    The upstream has accepted different request shapes over time. The roster
    fetch tries the child-element shape, then the attribute shape, each with
    a bounded number of attempts and a fixed delay between attempts (and
    between shapes). When every attempt fails the current links are kept.
"""

import logging
import time
from collections.abc import Callable
from typing import Final

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from fleet_panel.client import APIError, UpstreamClient
from fleet_panel.config import PollingConfig
from fleet_panel.models.entities import Driver, Position, TrailerRosterEntry, Vehicle
from fleet_panel.models.operations import (
    ParsedResponse,
    RequestShape,
    UpstreamOperation,
    UpstreamOperations,
)
from fleet_panel.normalize import (
    normalize_driver,
    normalize_position,
    normalize_trailer_entry,
    normalize_vehicle,
)
from fleet_panel.store import MessageBatchSummary, SnapshotStore

__all__: list[str] = ['FleetFetcher', 'RosterUnavailableError']

logger: logging.Logger = logging.getLogger(__name__)

TRAILER_REQUEST_SHAPES: Final[tuple[RequestShape, ...]] = (
    RequestShape.ELEMENTS,
    RequestShape.ATTRIBUTES,
)


class RosterUnavailableError(APIError):
    """The roster request got an error envelope instead of data."""


def _log_failed_roster_attempt(retry_state: RetryCallState) -> None:
    exception: BaseException | None = (
        retry_state.outcome.exception() if retry_state.outcome else None
    )
    logger.warning(
        'Trailer roster attempt %d failed: %s',
        retry_state.attempt_number,
        exception,
    )


class FleetFetcher:
    """
    Runs fetch operations against the upstream and feeds the store.

    Example:
        >>> fetcher = FleetFetcher(client, store, config.polling)
        >>> fetcher.fetch_vehicles()
        True
    """

    def __init__(
        self,
        client: UpstreamClient,
        store: SnapshotStore,
        polling: PollingConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            client: Upstream client shared by every operation.
            store: Destination of normalized records.
            polling: Trailer retry delay and attempt counts.
            sleep: Function used for every roster delay.
        """
        self._client: UpstreamClient = client
        self._store: SnapshotStore = store
        self._polling: PollingConfig = polling
        self._sleep: Callable[[float], None] = sleep

    # -------------------------------------------------------------------------
    # Vehicles and Drivers
    # -------------------------------------------------------------------------

    def fetch_vehicles(self) -> bool:
        """Fetch the vehicle list and store every parseable record."""
        try:
            response: ParsedResponse | None = self._client.send(UpstreamOperations.VEHICLES)
            if response is None:
                return False

            vehicles: list[Vehicle] = [
                vehicle
                for vehicle in map(normalize_vehicle, response.records)
                if vehicle is not None
            ]
            if not vehicles:
                logger.info('Vehicle list is empty')
                return True

            self._store.replace_vehicles(vehicles)
            logger.info('Vehicles: %d loaded', len(vehicles))
            return True
        except Exception:
            logger.exception('Vehicle fetch failed')
            return False

    def fetch_drivers(self) -> bool:
        """Fetch the driver list and store every parseable record."""
        try:
            response: ParsedResponse | None = self._client.send(UpstreamOperations.DRIVERS)
            if response is None:
                return False

            drivers: list[Driver] = [
                driver
                for driver in map(normalize_driver, response.records)
                if driver is not None
            ]
            if not drivers:
                logger.info('Driver list is empty')
                return True

            self._store.replace_drivers(drivers)
            logger.info('Drivers: %d loaded', len(drivers))
            return True
        except Exception:
            logger.exception('Driver fetch failed')
            return False

    # -------------------------------------------------------------------------
    # Incremental Messages
    # -------------------------------------------------------------------------

    def fetch_messages(self) -> bool:
        """Fetch messages newer than the cursor and merge them."""
        try:
            operation: UpstreamOperation = UpstreamOperations.MESSAGES
            cursor: str = self._store.cursor
            fields: dict[str, str] = (
                {operation.cursor_field: cursor} if operation.cursor_field else {}
            )
            response: ParsedResponse | None = self._client.send(operation, **fields)
            if response is None:
                return False

            if not response.records:
                logger.info('Messages: none newer than %s', cursor)
                return True

            positions: list[Position] = [
                position
                for position in map(normalize_position, response.records)
                if position is not None
            ]
            summary: MessageBatchSummary = self._store.apply_messages(
                positions,
                message_ids=[record.get('mId') for record in response.records],
            )
            logger.info(
                'Messages: %d received, %d accepted, %d late (cursor %s)',
                response.record_count,
                summary.accepted,
                summary.dropped,
                summary.cursor,
            )
            return True
        except Exception:
            logger.exception('Message fetch failed')
            return False

    # -------------------------------------------------------------------------
    # Trailer Roster
    # -------------------------------------------------------------------------

    def fetch_trailers(self, attempts: int) -> bool:
        """
        Fetch the trailer roster and replace the links if any resolve.

        Args:
            attempts: Attempts per request shape.

        Returns:
            True if some shape produced a roster (even one that resolved no
            links), False if every attempt failed.
        """
        try:
            for shape_index, shape in enumerate(TRAILER_REQUEST_SHAPES):
                if shape_index > 0:
                    self._sleep(self._polling.trailer_retry_delay_seconds)

                try:
                    response: ParsedResponse = self._send_roster_request(shape, attempts)
                except APIError as roster_error:
                    logger.warning(
                        'Trailer roster (%s shape) failed after %d attempts: %s',
                        shape.value,
                        attempts,
                        roster_error,
                    )
                    continue

                self._apply_roster(response)
                return True

            kept: int = len(self._store.trailer_links)
            if kept:
                logger.info('Trailer roster unavailable, keeping %d cached links', kept)
            else:
                logger.warning('Trailer roster unavailable and no cached links')
            return False
        except Exception:
            logger.exception('Trailer roster fetch failed')
            return False

    def _send_roster_request(self, shape: RequestShape, attempts: int) -> ParsedResponse:
        retrying: Retrying = Retrying(
            retry=retry_if_exception_type(APIError),
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(self._polling.trailer_retry_delay_seconds),
            before_sleep=_log_failed_roster_attempt,
            sleep=self._sleep,
            reraise=True,
        )

        for attempt in retrying:
            with attempt:
                response: ParsedResponse | None = self._client.send(
                    UpstreamOperations.TRAILERS, shape=shape
                )
                if response is None:
                    raise RosterUnavailableError('Upstream returned an error envelope')
                return response

        # Unreachable: reraise=True re-raises the last error
        raise RosterUnavailableError('Trailer roster retries exhausted')

    def _apply_roster(self, response: ParsedResponse) -> None:
        if not response.records:
            logger.info('Trailer roster is empty, keeping current links')
            return

        roster: list[TrailerRosterEntry] = [
            entry
            for entry in map(normalize_trailer_entry, response.records)
            if entry is not None
        ]
        linked: int = self._store.apply_trailer_roster(roster)
        logger.info(
            'Trailers: %d from upstream, %d linked to vehicles',
            response.record_count,
            linked,
        )

