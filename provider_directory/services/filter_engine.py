"""Category and free-text filtering over the current provider list.

Pure and synchronous: the engine never fetches.  The orchestrating caller
hands it each new list via :meth:`FilterEngine.set_providers`; every setter
recomputes the visible subset immediately, preserving base-list order.
"""

from __future__ import annotations

from collections.abc import Sequence

from provider_directory.models.provider import (
    ALL_CATEGORIES,
    SEARCH_FIELDS,
    FilterState,
    ProviderRecord,
)


def _search_text(provider: ProviderRecord) -> str:
    return " ".join(provider.get(field) for field in SEARCH_FIELDS).lower()


class FilterEngine:
    """Holds the base list, the active filters and the visible subset."""

    def __init__(self) -> None:
        self._providers: list[ProviderRecord] = []
        self._state = FilterState()
        self._visible: list[ProviderRecord] = []

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_providers(self, providers: Sequence[ProviderRecord]) -> None:
        self._providers = list(providers)
        self._apply()

    def set_category(self, category: str) -> None:
        """Filter to *category*; ``"all"`` (or empty) disables the category filter."""
        self._state = self._state.model_copy(update={"category": category or ALL_CATEGORIES})
        self._apply()

    def set_search_term(self, term: str) -> None:
        self._state = self._state.model_copy(update={"search_term": term.lower().strip()})
        self._apply()

    def reset(self) -> None:
        self._state = FilterState()
        self._apply()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def providers(self) -> list[ProviderRecord]:
        return list(self._providers)

    @property
    def visible(self) -> list[ProviderRecord]:
        return list(self._visible)

    def categories(self) -> list[str]:
        """Distinct categories of the base list in first-seen order."""
        return list(dict.fromkeys(provider.category for provider in self._providers))

    # ------------------------------------------------------------------
    # Recomputation
    # ------------------------------------------------------------------

    def _apply(self) -> None:
        category = self._state.category
        term = self._state.search_term

        filtered = self._providers
        if category != ALL_CATEGORIES:
            filtered = [p for p in filtered if p.category == category]
        if term:
            filtered = [p for p in filtered if term in _search_text(p)]

        self._visible = list(filtered)
