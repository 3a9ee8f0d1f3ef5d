"""
The two-slot selection state machine which gates when a comparison may proceed.
"""
import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from dataclasses import dataclass
from typing import Any, Self, TypeAlias

from pairify.api.exception import AuthError, NotFoundError
from pairify.catalog.collection import Collection, normalize
from pairify.catalog.gateway import CatalogGateway
from pairify.catalog.link import ResourceLink, classify
from pairify.catalog.types import ResourceType, SearchCategory
from pairify.exception import PairifyEnumError, PairifyError
from pairify.log.logger import PairifyLogger
from pairify.selection.exception import SelectionError
from pairify.selection.slot import Slot, SlotState, SLOT_LABELS
from pairify.selection.suggestions import DEBOUNCE_DELAY, SearchSuggestionEngine, SuggestionSet

#: The warning shown when a comparison is requested before both slots are resolved
COMPARE_WARNING = "Choose two collections before clicking Compare"


@dataclass(frozen=True)
class ComparisonRequest:
    """The pair of collections handed to the comparison collaborator"""
    collection_a: Collection
    collection_b: Collection


Comparator: TypeAlias = Callable[[ComparisonRequest], Any | Awaitable[Any]]


class SlotSelectionController:
    """
    Owns the two comparison slots and the suggestions shown while typing into them.

    Text typed or pasted into a slot is either resolved straight away when it is a link to a collection,
    or searched for once the user stops typing.
    Each slot tracks only its latest resolution request,
    so a slow response can never overwrite the result of a newer one.

    :param catalog: The :py:class:`CatalogGateway` to resolve collections and search with.
    :param comparator: Called with a :py:class:`ComparisonRequest` when a comparison is requested
        and both slots are resolved. May be a coroutine function.
    :param notify: Called with user-facing notices e.g. failed resolutions.
        When not given, notices are logged as warnings.
    :param delay: The time in seconds to wait after the last keystroke before searching.
    """

    __slots__ = ("logger", "catalog", "comparator", "notify", "slots", "engine", "fatal_error", "_tasks")

    @property
    def suggestions(self) -> SuggestionSet | None:
        """The currently active suggestions, if any"""
        return self.engine.suggestions

    def __init__(
            self,
            catalog: CatalogGateway,
            comparator: Comparator | None = None,
            notify: Callable[[str], None] | None = None,
            delay: float = DEBOUNCE_DELAY,
    ):
        # noinspection PyTypeChecker
        #: The :py:class:`PairifyLogger` for this  object
        self.logger: PairifyLogger = logging.getLogger(__name__)

        self.catalog = catalog
        self.comparator = comparator
        self.notify: Callable[[str], None] = notify if notify is not None else self.logger.warning

        self.slots: tuple[Slot, ...] = tuple(Slot(index=i) for i in range(len(SLOT_LABELS)))
        self.engine = SearchSuggestionEngine(catalog=catalog, delay=delay, on_error=self._handle_search_error)

        #: Set when the catalog could not be authorised. All operations fail until :py:meth:`resume` is called.
        self.fatal_error: AuthError | None = None
        self._tasks: set[asyncio.Task] = set()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_slot(self, index: int) -> Slot:
        if not 0 <= index < len(self.slots):
            raise SelectionError(f"Invalid slot index: {index}")
        return self.slots[index]

    def _check_session(self) -> None:
        if self.fatal_error is not None:
            raise self.fatal_error

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    ###########################################################################
    ## Input
    ###########################################################################
    def set_query(self, index: int, text: str) -> Slot:
        """
        Set the text of the slot at ``index``, clearing any collection it holds.

        Links to a collection are resolved in the background.
        Any other text is searched for once the user stops typing.
        Must be called from within a running event loop.

        :return: The updated :py:class:`Slot`.
        """
        self._check_session()
        slot = self._get_slot(index)
        token = slot.edit(text)

        link = classify(text)
        if link is not None:
            self.engine.clear()
            self._resolve(slot=slot, token=token, link=link)
        else:
            slot.state = SlotState.SEARCHING if text else SlotState.EMPTY
            self.engine.on_query_changed(index, text)

        self.logger.debug(f"Side {slot.label} | {slot.state.name} | {text!r}")
        return slot

    def pick_from_library(self, index: int, external_url: str) -> Slot:
        """Choose a collection from the user's library by its link, exactly as if it were pasted"""
        return self.set_query(index, external_url)

    def pick_suggestion(self, entry: Mapping[str, Any]) -> Slot:
        """
        Choose the given suggestion ``entry`` for the slot the active suggestions are bound to.

        Only playlists and albums are resolved. Picking any other type of entry, such as an artist,
        only sets the text of the slot to the name of the entry.

        :return: The updated :py:class:`Slot`.
        :raise SelectionError: When there are no active suggestions.
        """
        self._check_session()
        slot = self._get_slot(self.engine.pick(entry))
        token = slot.edit(entry.get("name", ""))

        try:
            kind = ResourceType.from_name(entry.get("type", ""))[0]
        except PairifyEnumError:
            slot.state = SlotState.EMPTY
            self.logger.debug(f"Side {slot.label} | Not a collection type, skipping: {entry.get('type')}")
            return slot

        self._resolve(slot=slot, token=token, link=ResourceLink(kind=kind, id=entry["id"]))
        return slot

    def select_category(self, category: SearchCategory) -> SuggestionSet:
        """Show the suggestions for the given ``category``"""
        self._check_session()
        return self.engine.select_category(category)

    ###########################################################################
    ## Resolution
    ###########################################################################
    def _resolve(self, slot: Slot, token: int, link: ResourceLink) -> None:
        slot.state = SlotState.RESOLVING
        self._spawn(self._fetch(slot=slot, token=token, link=link))

    async def _fetch(self, slot: Slot, token: int, link: ResourceLink) -> None:
        kind = link.kind.key
        try:
            collection = normalize(await self.catalog.fetch_by_id(link.kind, link.id), link.kind)
        except AuthError as ex:
            if token == slot.token:
                slot.state = SlotState.EMPTY
                slot.error = ex
            self._set_fatal(ex)
            return
        except PairifyError as ex:
            if token != slot.token:
                self.logger.debug(f"Side {slot.label} | Ignoring failure for superseded {kind}: {link.id}")
                return

            slot.state = SlotState.EMPTY
            slot.error = ex
            if isinstance(ex, NotFoundError):
                self.notify(f"Could not find {kind} for side {slot.label}: {link.id}")
            else:
                self.notify(f"Could not load {kind} for side {slot.label}, try again: {ex}")
            return

        if token != slot.token:
            self.logger.debug(f"Side {slot.label} | Discarding superseded {kind}: {collection.name!r}")
            return

        slot.collection = collection
        slot.query = collection.name
        slot.state = SlotState.RESOLVED
        self.logger.info_extra(
            f"Side {slot.label} | Resolved {kind}: {collection.name!r} with {len(collection):>4} tracks"
        )

    ###########################################################################
    ## Errors
    ###########################################################################
    def _handle_search_error(self, ex: Exception) -> None:
        if isinstance(ex, AuthError):
            self._set_fatal(ex)
            return
        self.notify(f"Could not get suggestions, try again: {ex}")

    def _set_fatal(self, ex: AuthError) -> None:
        self.logger.error(f"Catalog authorisation failed. Re-authorise to continue: {ex}")
        self.fatal_error = ex
        self.engine.clear()

    def resume(self) -> None:
        """Allow operations to continue after the catalog has been re-authorised"""
        self.fatal_error = None

    ###########################################################################
    ## Compare
    ###########################################################################
    def is_ready_to_compare(self) -> bool:
        """Do both slots hold a resolved collection"""
        return all(slot.resolved for slot in self.slots)

    def is_selected(self, index: int, external_url: str) -> bool:
        """Is the collection at the given ``external_url`` currently resolved in the slot at ``index``"""
        collection = self._get_slot(index).collection
        return collection is not None and collection.external_url == external_url

    async def request_compare(self) -> Any:
        """
        Hand both resolved collections to the comparator.
        When either slot is not yet resolved, notify the user instead.

        :return: The result of the comparator, the :py:class:`ComparisonRequest` if no comparator is set,
            or None when not ready to compare.
        """
        self._check_session()
        if not self.is_ready_to_compare():
            self.notify(COMPARE_WARNING)
            return

        request = ComparisonRequest(collection_a=self.slots[0].collection, collection_b=self.slots[1].collection)
        self.logger.debug(f"Comparing {request.collection_a.name!r} with {request.collection_b.name!r}")
        if self.comparator is None:
            return request

        result = self.comparator(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    ###########################################################################
    ## Lifecycle
    ###########################################################################
    async def wait(self) -> None:
        """
        Wait for all pending searches and resolutions to finish.

        :raise Exception: The first unexpected exception raised by a search or resolution, if any.
        """
        while self._tasks or self.engine.timer.running:
            await self.engine.wait()
            if self._tasks:
                await asyncio.gather(*self._tasks)

    async def close(self) -> None:
        """Cancel all pending searches and resolutions"""
        await self.engine.close()
        for task in self._tasks:
            task.cancel()
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
