import asyncio

import pytest
from faker import Faker

from pairify.api.exception import AuthError, NetworkError
from pairify.catalog.types import SearchCategory
from pairify.selection.exception import SelectionError
from pairify.selection.suggestions import DEBOUNCE_DELAY, SearchSuggestionEngine, SuggestionSet
from tests.utils import FakeCatalog, random_results

DELAY = 0.05


class TestSearchSuggestionEngine:

    @pytest.fixture
    async def engine(self, catalog: FakeCatalog) -> SearchSuggestionEngine:
        """Yield a :py:class:`SearchSuggestionEngine` with a short delay, closing it after the test"""
        engine = SearchSuggestionEngine(catalog=catalog, delay=DELAY)
        yield engine
        await engine.close()

    def test_default_delay(self, catalog: FakeCatalog):
        assert SearchSuggestionEngine(catalog=catalog).timer.delay == DEBOUNCE_DELAY == 0.275

    async def test_search(self, engine: SearchSuggestionEngine, catalog: FakeCatalog, faker: Faker):
        catalog.results["chill"] = random_results(faker)

        engine.on_query_changed(0, "chill")
        assert engine.suggestions is None
        assert not catalog.search_calls

        await engine.wait()
        assert catalog.search_calls == ["chill"]

        suggestions = engine.suggestions
        assert isinstance(suggestions, SuggestionSet)
        assert suggestions.for_slot == 0
        assert suggestions.selected_category == SearchCategory.PLAYLISTS
        assert list(suggestions.items) == catalog.results["chill"].playlists
        assert list(suggestions[SearchCategory.ALBUMS]) == catalog.results["chill"].albums
        assert list(suggestions[SearchCategory.ARTISTS]) == catalog.results["chill"].artists

    async def test_debounce(self, engine: SearchSuggestionEngine, catalog: FakeCatalog):
        for text in ("d", "da", "daf"):
            engine.on_query_changed(1, text)
            await asyncio.sleep(DELAY / 5)

        await engine.wait()
        assert catalog.search_calls == ["daf"]
        assert engine.suggestions.for_slot == 1

    async def test_debounce_default_delay(self, catalog: FakeCatalog):
        engine = SearchSuggestionEngine(catalog=catalog)
        try:
            for text in ("c", "ch", "chill"):
                engine.on_query_changed(0, text)
                await asyncio.sleep(0.1)
            assert not catalog.search_calls

            await engine.wait()
            assert catalog.search_calls == ["chill"]
        finally:
            await engine.close()

    async def test_empty_text_clears(self, engine: SearchSuggestionEngine, catalog: FakeCatalog, faker: Faker):
        catalog.results["chill"] = random_results(faker)
        engine.on_query_changed(0, "chill")
        await engine.wait()
        assert engine.suggestions is not None

        engine.on_query_changed(0, "ch")
        engine.on_query_changed(0, "")
        assert engine.suggestions is None

        await engine.wait()
        assert engine.suggestions is None
        assert catalog.search_calls == ["chill"]

    async def test_category_is_preserved(self, engine: SearchSuggestionEngine, catalog: FakeCatalog, faker: Faker):
        catalog.results["first"] = random_results(faker)
        catalog.results["second"] = random_results(faker)

        engine.on_query_changed(0, "first")
        await engine.wait()

        suggestions = engine.select_category(SearchCategory.ALBUMS)
        assert suggestions.selected_category == SearchCategory.ALBUMS
        assert list(suggestions.items) == catalog.results["first"].albums
        assert catalog.search_calls == ["first"]

        engine.on_query_changed(1, "second")
        await engine.wait()
        assert engine.suggestions.selected_category == SearchCategory.ALBUMS
        assert engine.suggestions.for_slot == 1
        assert list(engine.suggestions.items) == catalog.results["second"].albums

    async def test_stale_results_discarded(self, engine: SearchSuggestionEngine, catalog: FakeCatalog, faker: Faker):
        catalog.results["old"] = random_results(faker)
        catalog.results["new"] = random_results(faker)
        gate = catalog.hold("old")

        engine.on_query_changed(0, "old")
        while not catalog.search_calls:  # wait for the search to start
            await asyncio.sleep(DELAY / 5)

        engine.on_query_changed(0, "new")
        gate.set()

        await engine.wait()
        assert catalog.search_calls == ["old", "new"]
        assert list(engine.suggestions.playlists) == catalog.results["new"].playlists

    async def test_clear_discards_running_search(
            self, engine: SearchSuggestionEngine, catalog: FakeCatalog, faker: Faker
    ):
        catalog.results["old"] = random_results(faker)
        gate = catalog.hold("old")

        engine.on_query_changed(0, "old")
        while not catalog.search_calls:
            await asyncio.sleep(DELAY / 5)

        engine.clear()
        gate.set()

        await engine.wait()
        assert engine.suggestions is None

    async def test_select_category_without_suggestions(self, engine: SearchSuggestionEngine):
        with pytest.raises(SelectionError):
            engine.select_category(SearchCategory.ARTISTS)

    async def test_pick(self, engine: SearchSuggestionEngine, catalog: FakeCatalog, faker: Faker):
        with pytest.raises(SelectionError):
            engine.pick({"name": "nothing"})

        catalog.results["chill"] = random_results(faker)
        engine.on_query_changed(1, "chill")
        await engine.wait()

        assert engine.pick(engine.suggestions.items[0]) == 1
        assert engine.suggestions is None

    async def test_network_error_keeps_suggestions(self, catalog: FakeCatalog, faker: Faker):
        errors: list[Exception] = []
        engine = SearchSuggestionEngine(catalog=catalog, delay=DELAY, on_error=errors.append)

        catalog.results["chill"] = random_results(faker)
        engine.on_query_changed(0, "chill")
        await engine.wait()
        suggestions = engine.suggestions

        catalog.errors["broken"] = NetworkError("connection lost")
        engine.on_query_changed(0, "broken")
        await engine.wait()

        assert engine.suggestions == suggestions
        assert len(errors) == 1
        assert isinstance(errors[0], NetworkError)
        await engine.close()

    async def test_stale_network_error_ignored(self, catalog: FakeCatalog, faker: Faker):
        errors: list[Exception] = []
        engine = SearchSuggestionEngine(catalog=catalog, delay=DELAY, on_error=errors.append)

        catalog.errors["broken"] = NetworkError("connection lost")
        gate = catalog.hold("broken")
        engine.on_query_changed(0, "broken")
        while not catalog.search_calls:
            await asyncio.sleep(DELAY / 5)

        engine.on_query_changed(0, "fixed")
        gate.set()
        await engine.wait()

        assert not errors
        await engine.close()

    async def test_auth_error(self, engine: SearchSuggestionEngine, catalog: FakeCatalog):
        catalog.errors["chill"] = AuthError("token revoked")
        engine.on_query_changed(0, "chill")

        with pytest.raises(AuthError):
            await engine.wait()
