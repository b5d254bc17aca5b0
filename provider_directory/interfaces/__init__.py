"""Public interface definitions for the directory's external collaborators.

Business logic (the provider store) talks to the remote host and the
cache tiers only through these abstract base classes.  Concrete adapters
live in ``provider_directory/providers/`` and are wired together in
``provider_directory/context.py``.

    Interface        →  Concrete implementations
    ──────────────────────────────────────────────
    ITextSource      →  HttpTextSource
    ICacheProvider   →  MemoryCacheProvider, SQLiteSessionCache
"""

from provider_directory.interfaces.cache_provider import ICacheProvider
from provider_directory.interfaces.text_source import ITextSource

__all__ = ["ICacheProvider", "ITextSource"]
