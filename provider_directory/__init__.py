"""Service provider directory: CSV ingestion, tiered caching and filtering."""

__version__ = "0.1.0"
