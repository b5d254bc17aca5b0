"""Periodic refresh of the provider list.

An asyncio task wakes every ``interval`` and, unless a privileged session
is active, forces a store refresh, hands the result to the filter engine
and notifies listeners (e.g. a presenter re-rendering the list).

The privileged-session gate is an injected query function rather than a
shared flag the scheduler reaches for, so the scheduler has no knowledge
of how admin mode is tracked.  Visibility works the original way: hiding
the view stops the timer, showing it starts the timer again.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import structlog

from provider_directory.models.provider import ProviderRecord
from provider_directory.services.filter_engine import FilterEngine
from provider_directory.services.provider_store import ProviderStore
from provider_directory.utils.logging import get_logger

RefreshListener = Callable[[list[ProviderRecord]], object]


class AutoRefreshScheduler:
    """Runs ``store.refresh()`` on a fixed interval.

    Parameters
    ----------
    store:
        Store to refresh.
    filter_engine:
        Receives every refreshed list via ``set_providers``.
    interval_ms:
        Default interval between refreshes.
    is_privileged_session_active:
        Queried on every tick; a ``True`` result skips that tick.
    sleep:
        Awaitable sleep in seconds; replaced in tests.
    """

    def __init__(
        self,
        store: ProviderStore,
        filter_engine: FilterEngine,
        interval_ms: int,
        is_privileged_session_active: Callable[[], bool] = lambda: False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._filter = filter_engine
        self._interval_ms = interval_ms
        self._is_privileged = is_privileged_session_active
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self._listeners: list[RefreshListener] = []
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def register_listener(self, callback: RefreshListener) -> None:
        """Register a sync or async callback receiving each refreshed list."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unregister_listener(self, callback: RefreshListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, interval_ms: int | None = None) -> None:
        """Start the timer; a no-op while already running.

        Must be called from within a running event loop.
        """
        if self.is_running:
            return
        if interval_ms is not None:
            self._interval_ms = interval_ms
        self._task = asyncio.create_task(self._run(self._interval_ms / 1000.0))
        self._logger.info("auto_refresh_started", interval_s=self._interval_ms / 1000.0)

    def stop(self) -> None:
        """Cancel the timer if running.  An in-progress refresh is cancelled too."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        self._logger.info("auto_refresh_stopped")

    def restart(self, interval_ms: int | None = None) -> None:
        self.stop()
        self.start(interval_ms)

    async def aclose(self) -> None:
        """Stop the timer and wait for the task to finish cancelling."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def set_visible(self, visible: bool) -> None:
        """Pause while the view is hidden, resume when shown."""
        if visible:
            self.start()
        else:
            self.stop()

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def tick(self) -> list[ProviderRecord] | None:
        """Run one refresh cycle; returns the list, or ``None`` if skipped."""
        if self._is_privileged():
            self._logger.debug("auto_refresh_skipped", reason="privileged_session")
            return None

        try:
            providers = await self._store.refresh()
        except Exception as exc:
            self._logger.warning("auto_refresh_failed", error=str(exc))
            return None

        self._filter.set_providers(providers)
        self._logger.info(
            "auto_refresh_completed",
            count=len(providers),
            source=self._store.last_source.value if self._store.last_source else None,
        )
        await self._notify_listeners(providers)
        return providers

    async def _run(self, interval_s: float) -> None:
        while True:
            await self._sleep(interval_s)
            try:
                await self.tick()
            except Exception as exc:
                self._logger.error(
                    "auto_refresh_tick_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    exc_info=True,
                )

    async def _notify_listeners(self, providers: list[ProviderRecord]) -> None:
        """Invoke every listener; a failing listener is logged and skipped."""
        for callback in list(self._listeners):
            try:
                result = callback(providers)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "refresh_listener_error",
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
