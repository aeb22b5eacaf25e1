# fleet_panel/scheduler.py
"""
Polling orchestration: startup sequence plus two periodic cycles.

Startup (blocking, runs once):
    vehicles -> pause -> drivers -> pause -> trailer roster (startup
    attempts) -> pause -> messages. If the vehicle table is still empty
    afterwards, one extra vehicle fetch is scheduled after a delay.

Fast cycle ('messages' job):
    Incremental messages every `messages_interval_seconds`.

Slow cycle ('roster' job):
    vehicles -> pause -> drivers -> pause -> trailer roster (cycle attempts)
    every `roster_interval_seconds`.

Overlap rules:
    The jobs run on an APScheduler BackgroundScheduler with max_instances=1
    and coalesce=True. On top of that every task holds a named in-flight
    lock, so a tick that fires while the same task still runs is skipped
    (logged at INFO) instead of queued. Different tasks may run side by side.

Stopping:
    stop() may arrive while the startup sequence still runs on another
    thread. The remaining startup steps are skipped and no job is
    registered afterwards.

Usage:
------
    scheduler = PollingScheduler(fetcher, store, config.polling)
    scheduler.start()    # runs the startup sequence, then the cycles
    ...
    scheduler.stop()     # stops the jobs and flushes the snapshot
"""

import logging
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Final

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from fleet_panel.config import PollingConfig
from fleet_panel.fetchers import FleetFetcher
from fleet_panel.store import SnapshotStore

__all__: list[str] = [
    'MESSAGES_JOB_ID',
    'ROSTER_JOB_ID',
    'VEHICLES_RETRY_JOB_ID',
    'PollingScheduler',
]

logger: logging.Logger = logging.getLogger(__name__)

MESSAGES_JOB_ID: Final[str] = 'messages'
ROSTER_JOB_ID: Final[str] = 'roster'
VEHICLES_RETRY_JOB_ID: Final[str] = 'vehicles-retry'
STARTUP_TASK: Final[str] = 'startup'


class PollingScheduler:
    """
    Owns the named periodic tasks and their in-flight guards.

    Attributes:
        running: Whether the periodic jobs are active.
    """

    def __init__(
        self,
        fetcher: FleetFetcher,
        store: SnapshotStore,
        polling: PollingConfig,
        scheduler: BaseScheduler | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            fetcher: Fetch operations to run.
            store: Store flushed on stop and checked for an empty vehicle table.
            polling: Intervals, pauses and attempt counts.
            scheduler: APScheduler instance; a BackgroundScheduler by default.
            sleep: Function used for the pauses between sequence steps.
        """
        self._fetcher: FleetFetcher = fetcher
        self._store: SnapshotStore = store
        self._polling: PollingConfig = polling
        self._scheduler: BaseScheduler = (
            scheduler if scheduler is not None else BackgroundScheduler()
        )
        self._sleep: Callable[[float], None] = sleep
        self._in_flight: dict[str, threading.Lock] = {
            name: threading.Lock()
            for name in (STARTUP_TASK, MESSAGES_JOB_ID, ROSTER_JOB_ID, VEHICLES_RETRY_JOB_ID)
        }
        self._stopped: threading.Event = threading.Event()
        # Serializes job registration against stop()
        self._lifecycle: threading.Lock = threading.Lock()

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    # -------------------------------------------------------------------------
    # Task Bodies
    # -------------------------------------------------------------------------

    def _pause(self) -> None:
        self._sleep(self._polling.step_pause_seconds)

    def _startup_sequence(self) -> None:
        steps: list[Callable[[], object]] = [
            self._fetcher.fetch_vehicles,
            self._fetcher.fetch_drivers,
            lambda: self._fetcher.fetch_trailers(self._polling.startup_trailer_attempts),
            self._fetcher.fetch_messages,
        ]
        for index, step in enumerate(steps):
            if self._stopped.is_set():
                logger.info('Stop requested, skipping the rest of the startup sequence')
                return
            if index:
                self._pause()
            step()

    def _roster_sequence(self) -> None:
        self._fetcher.fetch_vehicles()
        self._pause()
        self._fetcher.fetch_drivers()
        self._pause()
        self._fetcher.fetch_trailers(self._polling.cycle_trailer_attempts)

    def _guarded(self, name: str, task: Callable[[], object]) -> bool:
        """
        Run a task unless the same task is already in flight.

        Returns:
            True if the task ran (whether or not it succeeded).
        """
        lock: threading.Lock = self._in_flight[name]
        if not lock.acquire(blocking=False):
            logger.info('Task %r still running, skipping this tick', name)
            return False
        try:
            task()
        except Exception:
            logger.exception('Task %r failed', name)
        finally:
            lock.release()
        return True

    def run_startup(self) -> bool:
        """Run the blocking startup sequence."""
        logger.info('Running startup sequence')
        return self._guarded(STARTUP_TASK, self._startup_sequence)

    def run_message_cycle(self) -> bool:
        return self._guarded(MESSAGES_JOB_ID, self._fetcher.fetch_messages)

    def run_roster_cycle(self) -> bool:
        return self._guarded(ROSTER_JOB_ID, self._roster_sequence)

    def run_vehicles_retry(self) -> bool:
        return self._guarded(VEHICLES_RETRY_JOB_ID, self._fetcher.fetch_vehicles)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, run_startup: bool = True) -> None:
        """
        Run the startup sequence (optional) and start the periodic jobs.

        Args:
            run_startup: Skip the startup sequence when False.
        """
        if run_startup:
            self.run_startup()

        with self._lifecycle:
            if self._stopped.is_set():
                logger.info('Stopped during startup, periodic jobs not started')
                return
            self._register_jobs()
            self._scheduler.start()

        logger.info(
            'Polling started: messages every %ds, roster every %ds',
            self._polling.messages_interval_seconds,
            self._polling.roster_interval_seconds,
        )

    def _register_jobs(self) -> None:
        if not self._store.has_vehicles:
            delay: float = self._polling.empty_vehicles_retry_seconds
            logger.warning('Vehicle table empty after startup, retrying in %.0fs', delay)
            self._scheduler.add_job(
                self.run_vehicles_retry,
                'date',
                run_date=datetime.now(UTC) + timedelta(seconds=delay),
                id=VEHICLES_RETRY_JOB_ID,
                name='One-off vehicle list retry',
                replace_existing=True,
            )

        self._scheduler.add_job(
            self.run_message_cycle,
            'interval',
            seconds=self._polling.messages_interval_seconds,
            id=MESSAGES_JOB_ID,
            name=f'Messages (every {self._polling.messages_interval_seconds}s)',
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.add_job(
            self.run_roster_cycle,
            'interval',
            seconds=self._polling.roster_interval_seconds,
            id=ROSTER_JOB_ID,
            name=f'Vehicles, drivers, trailers (every {self._polling.roster_interval_seconds}s)',
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

    def stop(self) -> None:
        """Stop the periodic jobs and flush the snapshot once more."""
        with self._lifecycle:
            self._stopped.set()
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
                logger.info('Polling stopped')
        self._store.save()
