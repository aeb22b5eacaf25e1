# fleet_panel/__init__.py
"""
Fleet Panel - ingestion engine for a Trucks Control fleet dashboard.

The package polls the Trucks Control XML API (API v6.7), normalizes vehicles,
drivers, trailer links and position messages, reconciles them with the last
known state per vehicle, and serves an aggregated fleet view.

Quick Start - Service:
    >>> from fleet_panel import FleetPanelService
    >>>
    >>> service = FleetPanelService('config/fleet_panel.yaml')
    >>> service.start()
    >>> for vehicle in service.fleet_view().vehicles:
    ...     print(vehicle.plate, vehicle.status_label)

Quick Start - Direct upstream access:
    >>> from fleet_panel import UpstreamClient, UpstreamOperations
    >>> from fleet_panel.config import load_config
    >>>
    >>> config = load_config('config/fleet_panel.yaml')
    >>> with UpstreamClient(config.upstream) as client:
    ...     response = client.send(UpstreamOperations.DRIVERS)

Main Components:
    - UpstreamClient: XML over HTTP with ZIP/gzip payload decoding
    - SnapshotStore: in-memory state persisted as one JSON document
    - FleetFetcher / PollingScheduler: fetch operations and their schedule
    - build_fleet_view / build_health: read-only views for the HTTP layer
"""

from fleet_panel.client import APIError, TransientAPIError, UpstreamClient
from fleet_panel.fetchers import FleetFetcher
from fleet_panel.models import UpstreamOperations
from fleet_panel.scheduler import PollingScheduler
from fleet_panel.service import FleetPanelService
from fleet_panel.store import SnapshotStore
from fleet_panel.view import build_fleet_view, build_health

__version__: str = '0.1.0'

__all__: list[str] = [
    'APIError',
    'FleetFetcher',
    'FleetPanelService',
    'PollingScheduler',
    'SnapshotStore',
    'TransientAPIError',
    'UpstreamClient',
    'UpstreamOperations',
    'build_fleet_view',
    'build_health',
]
