"""YAML configuration loader with environment variable overrides.

Configuration is layered, later layers winning:

  1. ``config/config.yaml`` -- static defaults checked into the repo
  2. ``.env`` file           -- local overrides (not committed)
  3. Environment variables  -- set at deploy time

:func:`load_config` reads the YAML file and deep-merges the explicitly set
``Settings`` values on top; :func:`resolve_settings` turns the merged dict
back into the ``Settings`` the application is wired from.
:func:`load_fallback_data` reads the static provider list served when
every other source has failed.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from provider_directory.config.settings import Settings
from provider_directory.models.provider import ProviderRecord
from provider_directory.services.csv_parser import CsvParser
from provider_directory.utils.errors import ConfigurationError, DirectoryError


# Settings field -> (YAML section, key).  Both layers describe the same
# values; the YAML file supplies defaults and explicitly set environment
# values win.
_CONFIG_KEYS: dict[str, tuple[str, str]] = {
    "app_env": ("app", "env"),
    "source_url": ("source", "url"),
    "request_timeout_s": ("source", "request_timeout_s"),
    "cache_timeout_ms": ("cache", "timeout_ms"),
    "session_db_path": ("cache", "session_db_path"),
    "session_max_age_hours": ("cache", "session_max_age_hours"),
    "retry_attempts": ("retry", "attempts"),
    "retry_delay_ms": ("retry", "delay_ms"),
    "auto_refresh_interval_ms": ("auto_refresh", "interval_ms"),
    "fallback_data_path": ("fallback", "path"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge explicitly set Settings values over it.

    Only fields present in ``settings.model_fields_set`` (passed in, or
    read from the environment or ``.env``) override the YAML file, and
    empty strings never do.  Settings defaults never mask YAML values.

    Args:
        path: Path to the YAML configuration file. A missing file is
              treated as empty.
        settings: Pre-built settings; a fresh ``Settings()`` otherwise.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict[str, Any] = {}
    for field_name, (section, key) in _CONFIG_KEYS.items():
        if field_name not in settings.model_fields_set:
            continue
        value = getattr(settings, field_name)
        if value == "":
            continue
        env_overrides.setdefault(section, {})[key] = value

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def resolve_settings(config: dict, settings: Settings) -> Settings:
    """Return *settings* with every value taken from the merged *config*.

    Fields the config does not mention keep their current value.

    Raises:
        ConfigurationError: When a config value fails validation.
    """
    values = settings.model_dump()
    for field_name, (section, key) in _CONFIG_KEYS.items():
        section_config = config.get(section)
        if isinstance(section_config, dict) and section_config.get(key) is not None:
            values[field_name] = section_config[key]

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(
            message=f"Invalid configuration value: {exc}",
            source_name="config",
        ) from exc


def load_fallback_data(path: str | Path) -> list[ProviderRecord]:
    """Load the static fallback provider list from a CSV or JSON file.

    CSV files go through :class:`CsvParser` exactly like remote data.
    JSON files hold a list of objects keyed by CSV header names.

    Raises:
        ConfigurationError: When the file is missing or unreadable.
    """
    fallback_path = Path(path)
    try:
        text = fallback_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            message=f"Cannot read fallback data {fallback_path}: {exc}",
            source_name="fallback",
        ) from exc

    if fallback_path.suffix.lower() == ".json":
        try:
            rows = json.loads(text)
            if not isinstance(rows, list):
                raise ValueError("expected a JSON list of provider objects")
            return [ProviderRecord.from_row(row) for row in rows]
        except (ValueError, TypeError, ValidationError) as exc:
            raise ConfigurationError(
                message=f"Invalid fallback JSON in {fallback_path}: {exc}",
                source_name="fallback",
            ) from exc

    try:
        return CsvParser().parse(text)
    except DirectoryError as exc:
        raise ConfigurationError(
            message=f"Invalid fallback CSV in {fallback_path}: {exc.message}",
            source_name="fallback",
        ) from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
