# fleet_panel/common/__init__.py

from fleet_panel.common.file_io import ParquetFileHandler, SnapshotFileHandler
from fleet_panel.common.logger import setup_logger
from fleet_panel.common.truststore_context import build_truststore_ssl_context

__all__: list[str] = [
    'ParquetFileHandler',
    'SnapshotFileHandler',
    'build_truststore_ssl_context',
    'setup_logger',
]
