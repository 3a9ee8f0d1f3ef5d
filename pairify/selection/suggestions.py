"""
Debounced, categorised search suggestions for free text typed into a slot.
"""
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from pairify.api.exception import APIError, AuthError
from pairify.catalog.gateway import CatalogGateway, SearchResults
from pairify.catalog.types import SearchCategory
from pairify.log.logger import PairifyLogger
from pairify.selection.exception import SelectionError
from pairify.selection.timer import DebounceTimer

#: The default time in seconds to wait after the last keystroke before searching
DEBOUNCE_DELAY = 0.275


@dataclass(frozen=True)
class SuggestionSet:
    """The suggestions for the latest search query, bound to the slot the query was typed into"""
    #: The index of the slot these suggestions were searched for
    for_slot: int
    #: The category currently being shown
    selected_category: SearchCategory
    playlists: tuple[dict[str, Any], ...] = ()
    albums: tuple[dict[str, Any], ...] = ()
    artists: tuple[dict[str, Any], ...] = ()

    @property
    def items(self) -> tuple[dict[str, Any], ...]:
        """The suggestions for the selected category"""
        return self[self.selected_category]

    @classmethod
    def from_results(cls, for_slot: int, selected_category: SearchCategory, results: SearchResults):
        """Create a new :py:class:`SuggestionSet` from the given search ``results``"""
        return cls(
            for_slot=for_slot,
            selected_category=selected_category,
            playlists=tuple(results.playlists),
            albums=tuple(results.albums),
            artists=tuple(results.artists),
        )

    def __getitem__(self, category: SearchCategory) -> tuple[dict[str, Any], ...]:
        return getattr(self, category.key)


class SearchSuggestionEngine:
    """
    Searches the catalog for the text typed into a slot once the user has stopped typing.

    Only one search is active at any time, regardless of which slot the text was typed into.
    Results from searches which have since been superseded are discarded.

    :param catalog: The :py:class:`CatalogGateway` to search.
    :param delay: The time in seconds to wait after the last change before searching.
    :param on_error: Called with any error raised when searching.
        When not given, errors are logged and :py:class:`AuthError` is raised.
    """

    __slots__ = ("logger", "catalog", "timer", "on_error", "suggestions")

    def __init__(
            self,
            catalog: CatalogGateway,
            delay: float = DEBOUNCE_DELAY,
            on_error: Callable[[Exception], None] | None = None,
    ):
        # noinspection PyTypeChecker
        #: The :py:class:`PairifyLogger` for this  object
        self.logger: PairifyLogger = logging.getLogger(__name__)

        self.catalog = catalog
        self.timer = DebounceTimer(delay=delay)
        self.on_error = on_error

        #: The currently active suggestions, if any
        self.suggestions: SuggestionSet | None = None

    def on_query_changed(self, slot: int, text: str) -> None:
        """
        Handle a change to the text of a slot.
        Clears suggestions immediately when ``text`` is empty, otherwise searches for ``text`` after the delay.
        Must be called from within a running event loop.
        """
        if not text:
            self.clear()
            return

        async def _search(generation: int) -> None:
            await self._search(slot=slot, text=text, generation=generation)

        self.timer.schedule(_search)

    async def _search(self, slot: int, text: str, generation: int) -> None:
        try:
            results = await self.catalog.search(text)
        except APIError as ex:
            if isinstance(ex, AuthError) or self.timer.is_current(generation):
                self._handle_error(ex)
            return

        if not self.timer.is_current(generation):
            self.logger.debug(f"Discarding suggestions for superseded query: {text!r}")
            return

        category = self.suggestions.selected_category if self.suggestions else SearchCategory.PLAYLISTS
        self.suggestions = SuggestionSet.from_results(for_slot=slot, selected_category=category, results=results)
        self.logger.debug(
            f"Suggestions updated for slot {slot} | {text!r} | "
            + " | ".join(f"{len(self.suggestions[cat])} {cat.key}" for cat in SearchCategory.all())
        )

    def _handle_error(self, ex: Exception) -> None:
        if self.on_error is not None:
            self.on_error(ex)
            return

        if isinstance(ex, AuthError):
            raise ex
        self.logger.warning(f"Could not get suggestions: {ex}")

    def select_category(self, category: SearchCategory) -> SuggestionSet:
        """
        Show the suggestions for the given ``category``.

        :raise SelectionError: When there are no active suggestions.
        """
        if self.suggestions is None:
            raise SelectionError("No suggestions to select a category for")

        self.suggestions = replace(self.suggestions, selected_category=category)
        return self.suggestions

    def pick(self, entry: Mapping[str, Any]) -> int:
        """
        Pick the given suggestion ``entry``, clearing all suggestions.

        :return: The index of the slot the suggestions were bound to.
        :raise SelectionError: When there are no active suggestions.
        """
        if self.suggestions is None:
            raise SelectionError(f"No suggestions to pick from: {entry.get('name')}")

        slot = self.suggestions.for_slot
        self.clear()
        return slot

    def clear(self) -> None:
        """Cancel any pending search and remove the active suggestions"""
        self.timer.cancel()
        self.suggestions = None

    async def wait(self) -> None:
        """Wait for any pending search to complete"""
        await self.timer.wait()

    async def close(self) -> None:
        """Cancel all pending and running searches"""
        self.clear()
        await self.timer.close()
