# fleet_panel/config/config_models.py
"""
Configuration management for the fleet panel ingestion service.

This module provides the Pydantic models for the master configuration file
that controls how the service talks to the Trucks Control upstream, how often
it polls, where the snapshot is persisted, and how logging is emitted.

Design Decisions:
-----------------
- All models use `extra='forbid'` to catch typos and invalid fields in YAML
  configuration files early, preventing silent misconfiguration.

- No logging occurs within this module because the logging configuration itself
  is defined here. Logging must be configured by the caller after loading config.

- Polling intervals are bounded below by the upstream's published minimums
  (30 seconds for incremental messages, 5 minutes for the vehicle list). A
  configuration that polls faster is rejected rather than silently clamped.

- SecretStr is used for the upstream password to prevent accidental exposure in
  logs, repr(), or error messages. Access it via `.get_secret_value()`.

Usage:
------
    import yaml
    from fleet_panel.config.config_models import PanelConfig

    with open('config.yaml', 'r') as config_file:
        raw_config = yaml.safe_load(config_file)

    config = PanelConfig.model_validate(raw_config)
"""

from pathlib import Path
from typing import Final, Literal, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

# =============================================================================
# Public API
# =============================================================================

__all__: list[str] = [
    'CompressionType',
    'LogLevelName',
    'LoggingConfig',
    'PanelConfig',
    'PollingConfig',
    'StorageConfig',
    'UpstreamConfig',
]

# =============================================================================
# Type Aliases and Constants
# =============================================================================

# Valid logging level names recognized by Python's logging module.
LogLevelName = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Numeric equivalents of log level names for validation purposes.
LOG_LEVEL_VALUES: frozenset[int] = frozenset({10, 20, 30, 40, 50})

# Mapping from level name to numeric value, avoiding import of logging module
# in the model layer.
LOG_LEVEL_NAME_TO_INT: dict[LogLevelName, int] = {
    'DEBUG': 10,
    'INFO': 20,
    'WARNING': 30,
    'ERROR': 40,
    'CRITICAL': 50,
}

# Compression codecs accepted by pandas.to_parquet() / pyarrow for the export.
CompressionType = Literal['snappy', 'gzip', 'brotli', 'lz4', 'zstd'] | None

# Upstream-imposed minimum polling intervals.
MIN_MESSAGES_INTERVAL_SECONDS: Final[int] = 30
MIN_ROSTER_INTERVAL_SECONDS: Final[int] = 300


# =============================================================================
# Upstream Configuration
# =============================================================================


class UpstreamConfig(BaseModel):
    """Connection settings for the Trucks Control XML endpoint.

    Every operation is POSTed to the same URL; the operation is selected by
    the root element of the request document, so only one URL is configured.

    Attributes:
        url: Endpoint URL. Must include scheme (http:// or https://). A
            trailing slash is stripped.
        login: Account login sent in every request document.
        password: Account password. Stored as SecretStr to prevent accidental
            logging. Access via password.get_secret_value().
        request_timeout_seconds: Hard deadline for one request, covering
            connect, upload and download. Past it the call is aborted.
        verify_ssl: SSL certificate verification mode. False disables
            (insecure), True uses the bundled CA store, or a path to a custom
            CA bundle.
        use_truststore: Build the SSL context from the operating system trust
            store (requires the optional `truststore` package).
    """

    model_config = ConfigDict(extra='forbid')

    url: str = Field(
        description='Upstream endpoint URL with scheme, without trailing slash',
    )
    login: str = Field(
        min_length=1,
        description='Account login sent in each request document',
    )
    password: SecretStr = Field(
        description='Account password (masked in logs and repr)',
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description='Per-request deadline in seconds',
    )
    verify_ssl: bool | str = Field(
        default=True,
        description='False to disable SSL, True for system CA, or path to CA bundle',
    )
    use_truststore: bool = Field(
        default=False,
        description='Use truststore library for OS system CA certificates',
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, url: str) -> str:
        """Validate and normalize the upstream URL.

        Args:
            url: The endpoint URL to validate.

        Returns:
            Normalized URL without trailing slash.

        Raises:
            ValueError: If URL is empty or missing http/https scheme.
        """
        if not url:
            raise ValueError('url cannot be empty')

        if not url.startswith(('http://', 'https://')):
            raise ValueError(
                f"url must start with 'http://' or 'https://', got: {url!r}"
            )

        return url.rstrip('/')

    @field_validator('password')
    @classmethod
    def validate_password_not_empty(cls, password: SecretStr) -> SecretStr:
        """Ensure the password is not empty or whitespace-only.

        Raises:
            ValueError: If password is empty or contains only whitespace.
        """
        secret_value: str = password.get_secret_value()
        if not secret_value or not secret_value.strip():
            raise ValueError('password cannot be empty or whitespace-only')
        return password

    @field_validator('verify_ssl')
    @classmethod
    def validate_ssl_configuration(cls, verify_ssl: bool | str) -> bool | str:
        """Validate SSL verification configuration.

        When a string path is provided (for custom CA bundles), verifies
        the file exists and is a regular file (not a directory).

        Raises:
            ValueError: If string path does not exist or is not a file.
        """
        if isinstance(verify_ssl, str):
            cert_path = Path(verify_ssl)

            if not cert_path.exists():
                raise ValueError(f'SSL certificate bundle file not found: {verify_ssl}')
            if not cert_path.is_file():
                raise ValueError(
                    f'SSL certificate path must be a file, not directory: {verify_ssl}'
                )

        return verify_ssl


# =============================================================================
# Polling Configuration
# =============================================================================


class PollingConfig(BaseModel):
    """Cadence and spacing of the polling scheduler.

    Two independent repeating cycles run after a one-time startup sequence:

    - Fast cycle: incremental messages every `messages_interval_seconds`.
    - Slow cycle: vehicles, drivers, then trailer roster every
      `roster_interval_seconds`.

    Related fetches inside one sequence are spaced by `step_pause_seconds`
    to stay under the upstream's rate limits.

    Attributes:
        messages_interval_seconds: Period of the fast cycle (>= 30).
        roster_interval_seconds: Period of the slow cycle (>= 300).
        step_pause_seconds: Pause between consecutive fetches of a sequence.
        startup_trailer_attempts: Attempts per request shape for the trailer
            roster during startup.
        cycle_trailer_attempts: Attempts per request shape for the trailer
            roster during the slow cycle.
        trailer_retry_delay_seconds: Fixed delay between trailer attempts.
        empty_vehicles_retry_seconds: Delay of the single extra vehicle fetch
            scheduled when startup ends with an empty vehicle table.
        shutdown_timeout_seconds: Bound on the orderly shutdown (final flush
            included) before the process hard-exits.
    """

    model_config = ConfigDict(extra='forbid')

    messages_interval_seconds: int = Field(
        default=35,
        ge=MIN_MESSAGES_INTERVAL_SECONDS,
        description='Incremental message fetch period (upstream minimum 30s)',
    )
    roster_interval_seconds: int = Field(
        default=300,
        ge=MIN_ROSTER_INTERVAL_SECONDS,
        description='Vehicle/driver/trailer refresh period (upstream minimum 300s)',
    )
    step_pause_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description='Pause between consecutive fetches of one sequence',
    )
    startup_trailer_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description='Trailer roster attempts per request shape at startup',
    )
    cycle_trailer_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description='Trailer roster attempts per request shape in the slow cycle',
    )
    trailer_retry_delay_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=120.0,
        description='Fixed delay between trailer roster attempts',
    )
    empty_vehicles_retry_seconds: float = Field(
        default=60.0,
        ge=0.0,
        le=3600.0,
        description='Delay of the one-off vehicle retry after an empty startup',
    )
    shutdown_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=120.0,
        description='Bound on orderly shutdown before hard exit',
    )


# =============================================================================
# Storage Configuration
# =============================================================================


class StorageConfig(BaseModel):
    """Configuration for snapshot persistence and the optional Parquet export.

    Attributes:
        snapshot_path: Path of the JSON snapshot document. Extension .json is
            appended automatically if missing.
        export_path: Path of the Parquet export written by the `export`
            command. Extension .parquet is appended automatically. None means
            the export path must be given on the command line.
        export_compression: Compression codec for the Parquet writer.
    """

    model_config = ConfigDict(extra='forbid')

    snapshot_path: Path = Field(
        default=Path('.cache-frota.json'),
        description='Snapshot document path (.json extension auto-added)',
    )
    export_path: Path | None = Field(
        default=None,
        description='Parquet export path (.parquet extension auto-added)',
    )
    export_compression: CompressionType = Field(
        default='snappy',
        description="Compression codec: 'snappy', 'gzip', 'brotli', 'lz4', 'zstd', or None",
    )

    @field_validator('snapshot_path', mode='before')
    @classmethod
    def normalize_snapshot_path(cls, path_value: str | Path) -> Path:
        """Normalize path and ensure .json extension."""
        path_string: str = str(path_value)

        if not path_string.lower().endswith('.json'):
            path_string = f'{path_string}.json'

        return Path(path_string)

    @field_validator('export_path', mode='before')
    @classmethod
    def normalize_export_path(cls, path_value: str | Path | None) -> Path | None:
        """Normalize path and ensure .parquet extension."""
        if path_value is None:
            return None

        path_string: str = str(path_value)

        if not path_string.lower().endswith('.parquet'):
            path_string = f'{path_string}.parquet'

        return Path(path_string)


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Configuration for application logging output.

    Supports dual-destination logging: console (always enabled) and optional
    file output. Console output is typically set to INFO for operational
    visibility, while file output captures DEBUG-level detail.

    Attributes:
        file_path: Path to log file. None disables file logging.
            Extension .log is appended automatically if missing.
        console_level: Minimum log level for console output.
            Accepts level name or numeric value.
        file_level: Minimum log level for file output. Defaults to DEBUG
            if file_path is provided.
    """

    model_config = ConfigDict(extra='forbid')

    file_path: Path | None = Field(
        default=None,
        description='Log file path (.log extension auto-added). None disables file logging.',
    )
    console_level: LogLevelName | int = Field(
        default='INFO',
        description="Console log level: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL', or int",
    )
    file_level: LogLevelName | int | None = Field(
        default=None,
        description='File log level. None disables file logging.',
    )

    @field_validator('file_path', mode='before')
    @classmethod
    def normalize_log_file_path(cls, path_value: str | Path | None) -> Path | None:
        """Normalize path and ensure .log extension."""
        if path_value is None:
            return None

        path_string: str = str(path_value)

        if not path_string.lower().endswith('.log'):
            path_string = f'{path_string}.log'

        return Path(path_string)

    @field_validator('console_level', 'file_level', mode='after')
    @classmethod
    def validate_numeric_log_level(
        cls, level_value: LogLevelName | int | None
    ) -> LogLevelName | int | None:
        """Validate numeric log levels are standard Python logging values.

        Raises:
            ValueError: If numeric level is not a standard logging value.
        """
        if level_value is None or isinstance(level_value, str):
            return level_value

        if level_value not in LOG_LEVEL_VALUES:
            raise ValueError(
                f'Numeric log level must be one of {sorted(LOG_LEVEL_VALUES)}, '
                f'got: {level_value}'
            )

        return level_value

    @model_validator(mode='after')
    def ensure_file_logging_configuration_consistency(self) -> Self:
        """Ensure file_path and file_level are consistently configured.

        If file_path is provided without file_level, defaults to DEBUG.
        If file_level is provided without file_path, raises an error since
        there's nowhere to write the logs.

        Raises:
            ValueError: If file_level is set but file_path is missing.
        """
        has_file_path: bool = self.file_path is not None
        has_file_level: bool = self.file_level is not None

        if has_file_path and not has_file_level:
            self.file_level = 'DEBUG'

        if has_file_level and not has_file_path:
            raise ValueError(
                'file_level is specified but file_path is missing. '
                'Provide file_path to enable file logging, or remove file_level.'
            )

        return self

    def get_console_level_int(self) -> int:
        """Convert console_level to numeric value for logging module."""
        if isinstance(self.console_level, int):
            return self.console_level
        return LOG_LEVEL_NAME_TO_INT[self.console_level]

    def get_file_level_int(self) -> int | None:
        """Convert file_level to numeric value, or None if file logging is off."""
        if self.file_level is None:
            return None
        if isinstance(self.file_level, int):
            return self.file_level
        return LOG_LEVEL_NAME_TO_INT[self.file_level]


# =============================================================================
# Root Configuration
# =============================================================================


class PanelConfig(BaseModel):
    """Root configuration model for the fleet panel service.

    Aggregates all configuration sections. Only the upstream section is
    mandatory; the others fall back to their defaults when omitted.

    Attributes:
        upstream: Connection settings for the Trucks Control endpoint.
        polling: Scheduler cadence and spacing.
        storage: Snapshot and export paths.
        logging: Console and file logging settings.
    """

    model_config = ConfigDict(extra='forbid')

    upstream: UpstreamConfig = Field(
        description='Upstream endpoint and credentials',
    )
    polling: PollingConfig = Field(
        default_factory=PollingConfig,
        description='Polling cadence and spacing',
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description='Snapshot persistence and export settings',
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description='Application logging configuration',
    )
