"""
Shared pytest fixtures for fleet_panel tests.

This module provides reusable fixtures for common test scenarios across
all test modules. Fixtures are automatically discovered by pytest.
"""

from typing import TypeAlias
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
import httpx
import pytest

from fleet_panel.common import SnapshotFileHandler
from fleet_panel.config import (
    LoggingConfig,
    PanelConfig,
    PollingConfig,
    StorageConfig,
    UpstreamConfig,
)
from fleet_panel.models import Position, Vehicle
from fleet_panel.store import SnapshotStore

FIXED_NOW: datetime = datetime(2025, 1, 5, 17, 30, tzinfo=UTC)

ResponseFactory: TypeAlias = Callable[..., httpx.Response]


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    """Provide upstream settings pointing at a fake endpoint."""
    return UpstreamConfig.model_validate(
        {
            'url': 'https://tc.example.com/api/',
            'login': 'operador',
            'password': 's3cr&t<pw>',
        }
    )


@pytest.fixture
def polling_config() -> PollingConfig:
    """Provide polling settings with the default cadence."""
    return PollingConfig()


@pytest.fixture
def panel_config(tmp_path: Path, upstream_config: UpstreamConfig) -> PanelConfig:
    """Provide a full configuration writing into a temp directory."""
    return PanelConfig(
        upstream=upstream_config,
        polling=PollingConfig(),
        storage=StorageConfig(
            snapshot_path=tmp_path / 'cache' / 'frota.json',
            export_path=tmp_path / 'export' / 'fleet.parquet',
        ),
        logging=LoggingConfig(),
    )


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    """Provide path to a snapshot file (not created)."""
    return tmp_path / 'snapshot.json'


@pytest.fixture
def snapshot_handler(snapshot_path: Path) -> SnapshotFileHandler:
    return SnapshotFileHandler(snapshot_path)


@pytest.fixture
def store(snapshot_handler: SnapshotFileHandler) -> SnapshotStore:
    """Provide an empty store with a fixed clock."""
    return SnapshotStore(snapshot_handler, clock=lambda: FIXED_NOW)


# =============================================================================
# Entity Fixtures
# =============================================================================


@pytest.fixture
def sample_vehicle() -> Vehicle:
    return Vehicle(
        vehicle_id='1001',
        plate='ABC-1D23',
        equipment_code=8,
        equipment='Smart GSM',
        identification='Truck 01',
        driver_name='João Silva',
    )


@pytest.fixture
def make_position() -> Callable[..., Position]:
    """Provide a factory for positions with sensible defaults."""

    def _make(**overrides: object) -> Position:
        fields: dict[str, object] = {
            'message_id': '500',
            'vehicle_id': '1001',
            'plate': 'ABC-1D23',
            'timestamp': '05/01/2025 14:30:00',
            'latitude': -19.5,
            'longitude': -43.9,
            'municipality': 'Belo Horizonte',
            'state': 'MG',
        }
        fields.update(overrides)
        return Position.model_validate(fields)

    return _make


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest.fixture
def make_response() -> ResponseFactory:
    """Provide a factory for canned httpx responses with a raw body."""

    def _make(content: bytes | str, status_code: int = 200) -> httpx.Response:
        body: bytes = content.encode('utf-8') if isinstance(content, str) else content
        return httpx.Response(
            status_code,
            content=body,
            request=httpx.Request('POST', 'https://tc.example.com/api'),
        )

    return _make


VEHICLES_XML: str = """<?xml version="1.0" encoding="utf-8"?>
<ResponseVeiculo>
  <Veiculo>
    <veiID>1001</veiID>
    <placa>ABC-1D23</placa>
    <eqp>8</eqp>
    <ident>Truck 01</ident>
    <mot>João Silva</mot>
    <vManut>0</vManut>
    <st1>1</st1>
  </Veiculo>
  <Veiculo>
    <veiID>1002</veiID>
    <placa>XYZ9876</placa>
    <eqp>99</eqp>
  </Veiculo>
</ResponseVeiculo>
"""

MESSAGES_XML: str = """<ResponseMensagemCB>
  <MensagemCB>
    <mId>90071992547409931</mId>
    <veiID>1001</veiID>
    <placa>ABC-1D23</placa>
    <dt>05/01/2025 14:30:00</dt>
    <lat>-19,5</lat>
    <lon>-43,9</lon>
    <vel>45</vel>
    <evt4>1</evt4>
    <evt5>1</evt5>
    <carreta>CAR-0001</carreta>
  </MensagemCB>
</ResponseMensagemCB>
"""

ERROR_XML: str = """<ErrorRequest>
  <codigo>7</codigo>
  <erro>Intervalo minimo nao respeitado</erro>
</ErrorRequest>
"""


@pytest.fixture
def vehicles_xml() -> str:
    return VEHICLES_XML


@pytest.fixture
def messages_xml() -> str:
    return MESSAGES_XML


@pytest.fixture
def error_xml() -> str:
    return ERROR_XML
