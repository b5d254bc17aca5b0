"""Cache tiers for the provider store.

MemoryCacheProvider lives for the process; SQLiteSessionCache persists the
last good list per session id so a restarted process in the same session
can still serve data while the remote host is unreachable.
"""

from provider_directory.providers.cache.memory_cache import MemoryCacheProvider
from provider_directory.providers.cache.session_cache import SQLiteSessionCache

__all__ = ["MemoryCacheProvider", "SQLiteSessionCache"]
