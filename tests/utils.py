import asyncio
import string
from collections.abc import Mapping
from copy import deepcopy
from pathlib import Path
from random import choice, randrange
from typing import Any

from faker import Faker

from pairify.api.exception import NotFoundError
from pairify.catalog.gateway import CatalogGateway, SearchResults
from pairify.catalog.types import ResourceType
from pairify.types import PairifyEnum

path_tests = Path(__file__).parent
path_root = path_tests.parent

ID_LENGTH = 22
URL_EXT = "https://open.spotify.com"


# noinspection SpellCheckingInspection
def idfn(value: Any) -> str | None:
    """Generate test ID for parametrised tests"""
    if isinstance(value, PairifyEnum):
        return value.name
    return value


def random_str(start: int = 30, stop: int = 50) -> str:
    """Generates a random string of upper and lower case characters with a random length between the values given."""
    range_ = randrange(start=start, stop=stop) if start < stop else start
    return "".join(choice(string.ascii_letters) for _ in range(range_))


def random_id() -> str:
    """Generates a valid looking base 62 ID"""
    return "".join(choice(string.ascii_letters + string.digits) for _ in range(ID_LENGTH))


def random_track(faker: Faker) -> dict[str, Any]:
    """Generates a minimal track response"""
    id_ = random_id()
    return {
        "id": id_,
        "name": faker.sentence(nb_words=3),
        "type": "track",
        "duration_ms": faker.random_int(60000, 600000),
        "external_urls": {"spotify": f"{URL_EXT}/track/{id_}"},
    }


def random_collection(
        faker: Faker, kind: ResourceType, count: int | None = None, id_: str | None = None
) -> dict[str, Any]:
    """
    Generates a minimal collection response of the given ``kind`` with ``count`` tracks.
    All tracks are included on a single page.
    """
    id_ = id_ or random_id()
    count = count if count is not None else faker.random_int(1, 20)
    tracks = [random_track(faker) for _ in range(count)]
    if kind == ResourceType.PLAYLIST:
        tracks = [{"added_at": faker.iso8601(), "track": track} for track in tracks]

    response = {
        "id": id_,
        "name": faker.sentence(nb_words=2),
        "type": kind.key,
        "external_urls": {"spotify": f"{URL_EXT}/{kind.key}/{id_}"},
        "images": [{"url": faker.image_url(), "height": 640, "width": 640}],
        "tracks": {"items": tracks, "total": count, "next": None},
    }
    if kind == ResourceType.ALBUM:
        response["artists"] = [{"id": random_id(), "name": faker.name(), "type": "artist"}]
        response["release_date"] = faker.date()
    return response


def random_entry(faker: Faker, kind: str) -> dict[str, Any]:
    """Generates a lightweight search result entry of the given ``kind``"""
    id_ = random_id()
    return {
        "id": id_,
        "name": faker.sentence(nb_words=2),
        "type": kind,
        "external_urls": {"spotify": f"{URL_EXT}/{kind}/{id_}"},
    }


def random_results(faker: Faker, count: int = 3) -> SearchResults:
    """Generates :py:class:`SearchResults` with ``count`` entries in each category"""
    return SearchResults(
        playlists=[random_entry(faker, "playlist") for _ in range(count)],
        albums=[random_entry(faker, "album") for _ in range(count)],
        artists=[random_entry(faker, "artist") for _ in range(count)],
    )


class FakeCatalog(CatalogGateway):
    """
    An in-memory :py:class:`CatalogGateway` for testing.

    Requests for a key in ``gates`` are held until the matching event is set.
    Requests for a key in ``errors`` raise the matching error once released.
    """

    source = "Fake"

    def __init__(self):
        self.collections: dict[tuple[ResourceType, str], dict[str, Any]] = {}
        self.results: dict[str, SearchResults] = {}
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.playlists: list[dict[str, Any]] = []

        self.fetch_calls: list[tuple[ResourceType, str]] = []
        self.search_calls: list[str] = []

    def add(self, response: Mapping[str, Any]) -> dict[str, Any]:
        """Store the given collection ``response`` and return it"""
        kind = ResourceType.from_name(response["type"])[0]
        self.collections[(kind, response["id"])] = deepcopy(dict(response))
        return dict(response)

    def hold(self, key: str) -> asyncio.Event:
        """Hold all requests for the given ``key`` until the returned event is set"""
        self.gates[key] = asyncio.Event()
        return self.gates[key]

    async def _release(self, key: str) -> None:
        if key in self.gates:
            await self.gates[key].wait()
        if key in self.errors:
            raise self.errors[key]

    async def fetch_by_id(self, kind: ResourceType, id_: str) -> dict[str, Any]:
        self.fetch_calls.append((kind, id_))
        await self._release(id_)

        if (kind, id_) not in self.collections:
            raise NotFoundError(f"Could not find {kind.key}: {id_}")
        return deepcopy(self.collections[(kind, id_)])

    async def search(self, query: str) -> SearchResults:
        self.search_calls.append(query)
        await self._release(query)
        return self.results.get(query, SearchResults())

    async def get_self(self) -> dict[str, Any]:
        return {"id": "user", "display_name": "User"}

    async def get_user_playlists(self) -> list[dict[str, Any]]:
        return deepcopy(self.playlists)
