# fleet_panel/service.py
"""
Wiring of the ingestion service.

FleetPanelService builds every component from one configuration file and
exposes the operations the command line offers.

Usage:
------
    from fleet_panel.service import FleetPanelService

    service = FleetPanelService('config/fleet_panel.yaml')
    service.start()          # startup sequence + periodic cycles
    view = service.fleet_view()
    service.shutdown()       # bounded by polling.shutdown_timeout_seconds

Design Decisions:
-----------------
- The upstream client is created lazily, so read-only commands (export,
  health) work without network access or valid TLS settings.

- Shutdown runs in a helper thread. If stopping the jobs, flushing the
  snapshot and closing the client take longer than the configured bound,
  shutdown() reports failure and the caller hard-exits.
"""

import logging
import threading
import time
from pathlib import Path

import pandas as pd

from fleet_panel.client import UpstreamClient
from fleet_panel.common import ParquetFileHandler, SnapshotFileHandler, setup_logger
from fleet_panel.config import PanelConfig, load_config
from fleet_panel.export import fleet_view_to_dataframe
from fleet_panel.fetchers import FleetFetcher
from fleet_panel.scheduler import PollingScheduler
from fleet_panel.store import SnapshotStore
from fleet_panel.view import FleetView, HealthReport, build_fleet_view, build_health

__all__: list[str] = ['FleetPanelService', 'ServiceError']

logger: logging.Logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Raised when a service command cannot run with the given configuration."""


class FleetPanelService:
    """
    Owns the store, the upstream client and the polling scheduler.

    Attributes:
        config: Loaded configuration (read-only property).
        store: The snapshot store (read-only property).
    """

    def __init__(
        self,
        config_path: Path | str | None = None,
        config: PanelConfig | None = None,
    ) -> None:
        """
        Load configuration, configure logging and load the snapshot.

        Args:
            config_path: YAML file to load. Ignored when `config` is given.
            config: Pre-built configuration (tests, embedding).

        Raises:
            FileNotFoundError: If the config file doesn't exist.
            ValueError: If configuration validation fails.
        """
        self._config: PanelConfig = config if config is not None else load_config(config_path)
        setup_logger(config=self._config.logging)

        self._started_at: float = time.monotonic()
        self._store: SnapshotStore = SnapshotStore(
            SnapshotFileHandler(self._config.storage.snapshot_path)
        )
        self._store.load()

        self._client: UpstreamClient | None = None
        self._scheduler: PollingScheduler | None = None

    @property
    def config(self) -> PanelConfig:
        return self._config

    @property
    def store(self) -> SnapshotStore:
        return self._store

    def _get_scheduler(self) -> PollingScheduler:
        if self._scheduler is None:
            self._client = UpstreamClient(self._config.upstream)
            fetcher: FleetFetcher = FleetFetcher(
                self._client, self._store, self._config.polling
            )
            self._scheduler = PollingScheduler(fetcher, self._store, self._config.polling)
        return self._scheduler

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Run the startup sequence, then start the periodic cycles."""
        self._get_scheduler().start()

    def run_once(self) -> None:
        """Run the startup sequence only, then release the client."""
        try:
            self._get_scheduler().run_startup()
        finally:
            self._close_client()

    def shutdown(self) -> bool:
        """
        Stop polling, flush the snapshot and close the client.

        Returns:
            True if everything finished within shutdown_timeout_seconds.
        """
        timeout: float = self._config.polling.shutdown_timeout_seconds
        worker: threading.Thread = threading.Thread(
            target=self._shutdown_steps,
            name='fleet-panel-shutdown',
            daemon=True,
        )
        worker.start()
        worker.join(timeout)

        if worker.is_alive():
            logger.error('Shutdown did not finish within %.1fs', timeout)
            return False
        logger.info('Shutdown complete')
        return True

    def _shutdown_steps(self) -> None:
        try:
            if self._scheduler is not None:
                self._scheduler.stop()
            else:
                self._store.save()
        except Exception:
            logger.exception('Error while stopping polling')
        finally:
            self._close_client()

    def _close_client(self) -> None:
        if self._client is not None:
            self._client.close()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def fleet_view(self) -> FleetView:
        return build_fleet_view(self._store)

    def health(self) -> HealthReport:
        return build_health(self._store, self._started_at)

    def export(self, output_path: Path | None = None) -> Path:
        """
        Write the fleet view to Parquet.

        Args:
            output_path: Target file; defaults to storage.export_path.

        Returns:
            The path written.

        Raises:
            ServiceError: If no output path is given or configured.
            OSError: File system errors while writing.
        """
        target: Path | None = output_path or self._config.storage.export_path
        if target is None:
            raise ServiceError(
                'No export path: pass --output or set storage.export_path'
            )

        dataframe: pd.DataFrame = fleet_view_to_dataframe(self.fleet_view())
        handler: ParquetFileHandler = ParquetFileHandler(
            target, compression=self._config.storage.export_compression
        )
        handler.save(dataframe)
        return handler.path
