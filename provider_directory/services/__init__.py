"""Directory services: parsing, export, the provider store, filtering and auto-refresh."""
