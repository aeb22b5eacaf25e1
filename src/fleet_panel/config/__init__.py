"""
Configuration Package for the fleet panel service.

Exposes the main configuration models and the loader function.
"""

from fleet_panel.config.config_models import (
    CompressionType,
    LoggingConfig,
    PanelConfig,
    PollingConfig,
    StorageConfig,
    UpstreamConfig,
)
from fleet_panel.config.loader import load_config

__all__: list[str] = [
    'CompressionType',
    'LoggingConfig',
    'PanelConfig',
    'PollingConfig',
    'StorageConfig',
    'UpstreamConfig',
    'load_config',
]
