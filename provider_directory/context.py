"""Application context: builds every collaborator once and hands them out.

Replaces module-level singletons.  Entry points (the CLI, an embedding
application, tests) construct one :class:`AppContext` and pass it to the
handlers that need the store, the filter engine or the scheduler.

The privileged-session flag lives here and is exposed to the scheduler
only through :meth:`AppContext.is_privileged_session_active`.
"""

from __future__ import annotations

import asyncio
import hmac
import time
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

import structlog
from pydantic import ValidationError

from provider_directory.config.loader import load_config, load_fallback_data, resolve_settings
from provider_directory.config.settings import Settings
from provider_directory.interfaces.text_source import ITextSource
from provider_directory.models.provider import ProviderRecord
from provider_directory.providers.cache.memory_cache import MemoryCacheProvider
from provider_directory.providers.cache.session_cache import SQLiteSessionCache
from provider_directory.providers.source.http_source import HttpTextSource
from provider_directory.services.auto_refresh import AutoRefreshScheduler
from provider_directory.services.csv_parser import CsvParser
from provider_directory.services.filter_engine import FilterEngine
from provider_directory.services.provider_store import ProviderStore
from provider_directory.utils.errors import CacheError, ConfigurationError
from provider_directory.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def _build_fallback(config: dict[str, Any]) -> list[ProviderRecord]:
    """Resolve the static fallback list from a file path or inline YAML rows."""
    fallback_cfg = config.get("fallback") or {}
    path = fallback_cfg.get("path")
    if path:
        return load_fallback_data(path)

    rows = fallback_cfg.get("providers") or []
    try:
        return [ProviderRecord.from_row(row) for row in rows]
    except (ValidationError, AttributeError) as exc:
        raise ConfigurationError(
            message=f"Invalid inline fallback providers: {exc}",
            source_name="fallback",
        ) from exc


def _build_session_cache(settings: Settings, session_id: str) -> SQLiteSessionCache | None:
    """Create and initialize the session tier; ``None`` if the database is unusable."""
    cache = SQLiteSessionCache(
        db_path=settings.session_db_path,
        session_id=session_id,
        ttl_ms=settings.cache_timeout_ms,
        max_age_hours=settings.session_max_age_hours,
    )
    try:
        cache.initialize()
    except CacheError as exc:
        _logger.warning("session_cache_disabled", error=str(exc))
        return None
    return cache


class AppContext:
    """Owns the directory's collaborators for one session.

    Use :meth:`build` to wire the production stack from settings, or pass
    pre-built collaborators directly (tests do).
    """

    def __init__(
        self,
        settings: Settings,
        source: ITextSource,
        store: ProviderStore,
        filter_engine: FilterEngine,
        refresh_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.source = source
        self.store = store
        self.filter_engine = filter_engine
        self._privileged = False
        self.scheduler = AutoRefreshScheduler(
            store=store,
            filter_engine=filter_engine,
            interval_ms=settings.auto_refresh_interval_ms,
            is_privileged_session_active=self.is_privileged_session_active,
            sleep=refresh_sleep,
        )

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        config_path: str = "config/config.yaml",
        source: ITextSource | None = None,
        clock: Callable[[], float] = time.time,
    ) -> AppContext:
        """Wire source, parser, cache tiers, store, filter engine and scheduler.

        Values come from the YAML file at *config_path* with explicitly set
        settings layered on top.

        Raises
        ------
        ConfigurationError
            If no source URL is configured, a config value is invalid or
            the fallback data is invalid.
        """
        settings = settings or Settings()
        config = load_config(config_path, settings)
        settings = resolve_settings(config, settings)
        if not settings.source_url:
            raise ConfigurationError(message="SOURCE_URL is not configured", source_name="config")

        fallback = _build_fallback(config)
        session_id = settings.session_id or uuid4().hex

        source = source or HttpTextSource(timeout=settings.request_timeout_s, clock=clock)
        store = ProviderStore(
            source=source,
            parser=CsvParser(),
            memory_cache=MemoryCacheProvider(ttl=settings.cache_timeout_seconds, timer=clock),
            session_cache=_build_session_cache(settings, session_id),
            source_url=settings.source_url,
            retry_attempts=settings.retry_attempts,
            retry_delay_ms=settings.retry_delay_ms,
            fallback_data=fallback,
            clock=clock,
        )

        _logger.info(
            "app_context_built",
            source_url=settings.source_url,
            session_id=session_id,
            fallback_records=len(fallback),
        )
        return cls(settings=settings, source=source, store=store, filter_engine=FilterEngine())

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def load(self, force_refresh: bool = False) -> list[ProviderRecord]:
        """Fetch through the store, hand the list to the filter engine, return the visible subset."""
        providers = await self.store.get_providers(force_refresh=force_refresh)
        self.filter_engine.set_providers(providers)
        return self.filter_engine.visible

    # ------------------------------------------------------------------
    # Privileged session
    # ------------------------------------------------------------------

    def is_privileged_session_active(self) -> bool:
        return self._privileged

    def enter_admin_mode(self, token: str) -> bool:
        """Activate the privileged session if *token* matches; pauses auto-refresh."""
        expected = self.settings.admin_token
        if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
            _logger.warning("admin_token_rejected")
            return False
        self._privileged = True
        self.scheduler.stop()
        _logger.info("admin_mode_entered")
        return True

    def exit_admin_mode(self) -> None:
        """Leave the privileged session and resume auto-refresh."""
        self._privileged = False
        self.scheduler.start()
        _logger.info("admin_mode_exited")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self.scheduler.aclose()
        await self.source.aclose()

    async def __aenter__(self) -> AppContext:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
