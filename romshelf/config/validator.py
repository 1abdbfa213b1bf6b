"""Configuration validation."""

import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Configuration validation errors."""
    pass


BOOLEAN_SETTINGS = [
    'offline_mode',
    'skip_existing_metadata',
    'lazy_download',
    'adaptive_rate',
    'validate_schema',
    'tag_generation',
]


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Credentials are only required when offline mode is disabled.

    Args:
        config: Configuration dictionary from loader

    Raises:
        ValidationError: If configuration is invalid
    """
    errors = []

    settings = config.get('settings', {})
    offline = settings.get('offline_mode', False) is True

    errors.extend(_validate_paths(config.get('paths', {})))
    errors.extend(_validate_igdb(config.get('igdb', {}), offline))
    errors.extend(_validate_settings(settings))
    errors.extend(_validate_api(config.get('api', {})))
    errors.extend(_validate_logging(config.get('logging', {})))

    if errors:
        raise ValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )


def _validate_paths(section: Dict[str, Any]) -> List[str]:
    """Validate paths section."""
    errors = []

    if not section.get('roms'):
        errors.append("paths.roms is required")

    for path_key in ['output', 'images', 'cores']:
        value = section.get(path_key)
        if value is not None and not isinstance(value, str):
            errors.append(f"paths.{path_key} must be a string")

    return errors


def _validate_igdb(section: Dict[str, Any], offline: bool) -> List[str]:
    """Validate IGDB credentials section."""
    errors = []

    if offline:
        return errors

    if not section.get('client_id'):
        errors.append("igdb.client_id is required unless settings.offline_mode is enabled")
    if not section.get('client_secret'):
        errors.append("igdb.client_secret is required unless settings.offline_mode is enabled")

    return errors


def _validate_settings(section: Dict[str, Any]) -> List[str]:
    """Validate pipeline toggles."""
    errors = []

    for key in BOOLEAN_SETTINGS:
        if key in section and not isinstance(section[key], bool):
            errors.append(f"settings.{key} must be a boolean")

    # Invalid concurrency is not fatal: the loader falls back to 2
    concurrency = section.get('concurrency', 2)
    if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
        logger.warning(f"Invalid settings.concurrency value: {concurrency!r}, using default: 2")
        section['concurrency'] = 2

    save_every = section.get('save_every', 20)
    if not isinstance(save_every, int) or isinstance(save_every, bool) or save_every < 1:
        errors.append("settings.save_every must be a positive integer")

    return errors


def _validate_api(section: Dict[str, Any]) -> List[str]:
    """Validate API options section."""
    errors = []

    timeout = section.get('request_timeout')
    if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
        errors.append("api.request_timeout must be a positive number")

    backoff = section.get('rate_limit_backoff_seconds', 2)
    if not isinstance(backoff, (int, float)) or backoff < 0:
        errors.append("api.rate_limit_backoff_seconds must be non-negative")

    return errors


def _validate_logging(section: Dict[str, Any]) -> List[str]:
    """Validate logging options section."""
    errors = []

    level = section.get('level', 'INFO')
    valid_levels = ['DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL']
    if not isinstance(level, str) or level.upper() not in valid_levels:
        errors.append(f"logging.level must be one of: {', '.join(valid_levels)}")

    console = section.get('console', True)
    if not isinstance(console, bool):
        errors.append("logging.console must be a boolean")

    if section.get('file') is not None and not isinstance(section['file'], str):
        errors.append("logging.file must be a string path or null")

    return errors
