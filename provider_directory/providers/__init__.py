"""Concrete adapters for the interfaces in ``provider_directory.interfaces``."""
