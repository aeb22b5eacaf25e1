# fleet_panel/config/loader.py
"""
Configuration loading.

Reads the YAML file, lets the environment override the upstream
credentials, and validates the result into a `PanelConfig`.

Environment overrides:
    TC_URL, TC_LOGIN and TC_SENHA replace `upstream.url`, `upstream.login`
    and `upstream.password`. Deployments keep the password out of the file
    this way; the file may then omit those keys (or the whole `upstream`
    section).

Every failure is logged with context before it is raised.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

import yaml

from fleet_panel.config.config_models import PanelConfig

__all__: list[str] = ['DEFAULT_CONFIG_PATH', 'ENVIRONMENT_OVERRIDES', 'load_config']

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Final[Path] = Path('config/fleet_panel.yaml')

# Environment variable -> key of the `upstream` section
ENVIRONMENT_OVERRIDES: Final[Mapping[str, str]] = {
    'TC_URL': 'url',
    'TC_LOGIN': 'login',
    'TC_SENHA': 'password',
}


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        error_message: str = f'Configuration file not found: {config_path}'
        logger.error(error_message)
        raise FileNotFoundError(error_message)

    try:
        with config_path.open(encoding='utf-8') as config_file:
            raw_document: Any = yaml.safe_load(config_file)
    except yaml.YAMLError as error:
        error_message = f'Failed to parse YAML configuration: {error}'
        logger.error(error_message)
        raise yaml.YAMLError(error_message) from error

    if raw_document is None:
        # An empty file is valid when the environment supplies the upstream
        return {}

    if not isinstance(raw_document, dict):
        error_message = (
            'Configuration validation failed: expected a mapping at the top level, '
            f'got {type(raw_document).__name__}'
        )
        logger.error(error_message)
        raise ValueError(error_message)

    return raw_document


def _apply_environment_overrides(
    raw_config: dict[str, Any],
    environ: Mapping[str, str],
) -> dict[str, Any]:
    upstream_section: Any = raw_config.get('upstream') or {}
    if not isinstance(upstream_section, dict):
        # Left for validation to reject
        return raw_config

    overridden: dict[str, Any] = dict(upstream_section)
    for variable, key in ENVIRONMENT_OVERRIDES.items():
        value: str | None = environ.get(variable)
        if value:
            overridden[key] = value
            logger.debug('upstream.%s taken from %s', key, variable)

    if not overridden:
        return raw_config
    return {**raw_config, 'upstream': overridden}


def load_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> PanelConfig:
    """
    Load and validate the panel configuration.

    Args:
        config_path: YAML file; defaults to 'config/fleet_panel.yaml'
            relative to the working directory.
        environ: Environment used for the overrides; defaults to os.environ.

    Returns:
        Validated PanelConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the document is not a mapping or fails validation.

    Example:
        >>> config = load_config('config/fleet_panel.yaml')
        >>> config.polling.messages_interval_seconds
        35
    """
    path: Path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    logger.info('Loading panel configuration from: %s', path)

    raw_config: dict[str, Any] = _apply_environment_overrides(
        _read_yaml(path),
        os.environ if environ is None else environ,
    )

    try:
        validated_config: PanelConfig = PanelConfig.model_validate(raw_config)
    except ValueError as error:
        error_message: str = f'Configuration validation failed: {error}'
        logger.error(error_message)
        raise ValueError(error_message) from error

    logger.info('Configuration loaded and validated successfully')
    return validated_config
