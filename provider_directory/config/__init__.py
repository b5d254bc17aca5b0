"""Configuration module: exports Settings and the YAML/fallback loaders."""

from provider_directory.config.loader import load_config, load_fallback_data, resolve_settings
from provider_directory.config.settings import Settings

__all__ = ["Settings", "load_config", "load_fallback_data", "resolve_settings"]
