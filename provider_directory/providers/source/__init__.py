"""Remote text sources for the directory CSV."""

from provider_directory.providers.source.http_source import HttpTextSource

__all__ = ["HttpTextSource"]
