# fleet_panel/common/logger.py
"""
Logging setup for the fleet_panel service.

All modules log through `logging.getLogger(__name__)`, so configuring the
package logger ('fleet_panel') configures the whole service. The chatty
third-party loggers used by the polling loop are capped at WARNING: the
scheduler would otherwise log two lines per job run (every 35 s) and httpx
one line per request.
"""

import logging
import sys
from pathlib import Path
from typing import Final

from fleet_panel.config import LoggingConfig

__all__: list[str] = ['setup_logger']

PACKAGE_LOGGER_NAME: Final[str] = 'fleet_panel'
LOG_FORMAT: Final[str] = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'
LOG_DATE_FORMAT: Final[str] = '%Y-%m-%d %H:%M:%S'

QUIET_LIBRARY_LOGGERS: Final[tuple[str, ...]] = (
    'apscheduler',
    'httpx',
    'httpcore',
)


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler: logging.Handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def _file_handler(
    log_file_path: Path,
    level: int,
    formatter: logging.Formatter,
) -> logging.Handler:
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    handler: logging.Handler = logging.FileHandler(
        filename=str(log_file_path),
        mode='a',
        encoding='utf-8',
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logger(
    logging_level: int | None = None,
    config: LoggingConfig | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Repeated calls replace the previous handlers instead of stacking them,
    so the service and the CLI can both call it.

    Args:
        logging_level: Console level used when no config is given
            (default INFO).
        config: Logging section of the panel configuration. When given, it
            decides the console level and whether a log file is written, and
            `logging_level` is ignored.

    Returns:
        The 'fleet_panel' logger.

    Example:
        >>> setup_logger(config=load_config().logging)
    """
    package_logger: logging.Logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for old_handler in list(package_logger.handlers):
        package_logger.removeHandler(old_handler)
        old_handler.close()

    formatter: logging.Formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_level: int = (
        config.get_console_level_int()
        if config is not None
        else (logging_level if logging_level is not None else logging.INFO)
    )
    package_logger.addHandler(_console_handler(console_level, formatter))
    lowest_level: int = console_level

    file_level: int | None = config.get_file_level_int() if config is not None else None
    if config is not None and config.file_path is not None and file_level is not None:
        package_logger.addHandler(_file_handler(config.file_path, file_level, formatter))
        lowest_level = min(lowest_level, file_level)

    # Handlers filter by their own level; the logger must pass the lowest one
    package_logger.setLevel(lowest_level)

    for library_name in QUIET_LIBRARY_LOGGERS:
        logging.getLogger(library_name).setLevel(logging.WARNING)

    return package_logger
