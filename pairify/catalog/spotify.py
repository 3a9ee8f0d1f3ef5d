"""
Implements the :py:class:`CatalogGateway` for the Spotify Web API.
"""
import logging
from collections.abc import MutableMapping
from typing import Any, Self

from yarl import URL

from pairify.api.authorise import APIAuthoriser
from pairify.api.request import RequestHandler
from pairify.catalog.gateway import CatalogGateway, SearchResults
from pairify.catalog.types import ResourceType, SearchCategory
from pairify.log.logger import PairifyLogger
from pairify.utils import limit_value

SOURCE_NAME = "Spotify"


class SpotifyCatalog(CatalogGateway):
    """
    Collection of the Spotify API endpoints needed to resolve and search for collections.

    :param handler: The :py:class:`RequestHandler` to send authorised requests with.
    :param search_limit: The maximum number of results to get for each category when searching.
        This value will be limited to be between ``1`` and ``50``.
    :param market: Optionally, an ISO 3166-1 alpha-2 country code to apply track relinking for.
    """

    __slots__ = ("logger", "handler", "search_limit", "market")

    source = SOURCE_NAME
    url_api = URL("https://api.spotify.com/v1")
    url_auth = URL("https://accounts.spotify.com/api/token")

    #: The key to reference when extracting items from a collection
    items_key = "items"
    #: The maximum number of items to get on each page when extending collections
    page_limit = 50
    #: Queries longer than this will be rejected by the API
    max_query_length = 150

    @classmethod
    def create(
            cls,
            client_id: str | None = None,
            client_secret: str | None = None,
            token: dict[str, Any] | None = None,
            token_file_path: str | None = None,
            **kwargs
    ) -> "SpotifyCatalog":
        """
        Create a new :py:class:`SpotifyCatalog` with an appropriately configured authoriser.

        When client credentials are given, tokens are generated through the client credentials flow.
        Otherwise, the given ``token`` or the token stored at ``token_file_path`` is used as-is.
        """
        if client_id and client_secret:
            authoriser = APIAuthoriser.with_client_credentials(
                name=SOURCE_NAME,
                token_url=str(cls.url_auth),
                client_id=client_id,
                client_secret=client_secret,
                token=token,
                token_file_path=token_file_path,
                test_expiry=60,
            )
        else:
            authoriser = APIAuthoriser(name=SOURCE_NAME, token=token, token_file_path=token_file_path)

        handler = RequestHandler.create(
            authoriser=authoriser, headers={"Accept": "application/json", "Content-Type": "application/json"}
        )
        return cls(handler=handler, **kwargs)

    def __init__(self, handler: RequestHandler, search_limit: int = 10, market: str | None = None):
        # noinspection PyTypeChecker
        #: The :py:class:`PairifyLogger` for this  object
        self.logger: PairifyLogger = logging.getLogger(__name__)

        #: The :py:class:`RequestHandler` for handling authorised requests to the API
        self.handler = handler
        self.search_limit = limit_value(search_limit, floor=1, ceil=50)
        self.market = market

    async def __aenter__(self) -> Self:
        await self.handler.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.handler.__aexit__(exc_type, exc_val, exc_tb)

    def _params(self, **params) -> dict[str, Any]:
        if self.market:
            params["market"] = self.market
        return params

    ###########################################################################
    ## Collections
    ###########################################################################
    async def fetch_by_id(self, kind: ResourceType, id_: str) -> dict[str, Any]:
        """
        ``GET: /{kind}s/{id}`` - Get the response for a collection and extend it to include all of its tracks.
        """
        url = self.url_api.joinpath(f"{kind.key}s", id_)
        response = await self.handler.get(url, params=self._params())
        tracks = await self.extend_items(response.get("tracks", {}), kind=kind)

        self.handler.log("DONE", url, message=f"Retrieved {len(tracks):>6} tracks for {kind.key}")
        return response

    async def extend_items(self, response: MutableMapping[str, Any], kind: ResourceType | str) -> list[dict]:
        """
        Extend the items for a given paged API ``response``.
        Requests each remaining page of the collection in order, following the ``next`` URL of each page.

        Updates the value of the ``items`` key in-place by extending it with the new results.

        :param response: A paged API response. Must include the keys ``total`` and ``next``.
        :param kind: The type of response being extended. Used for logging only.
        :return: API JSON responses for each item.
        """
        if not response:
            return []
        if self.items_key not in response:
            response[self.items_key] = []

        kind_name = kind.key if isinstance(kind, ResourceType) else kind
        total = response.get("total", len(response[self.items_key]))

        while response.get("next"):
            url = URL(response["next"])
            count = min(int(url.query.get("offset", 0)) + int(url.query.get("limit", self.page_limit)), total)
            page = await self.handler.get(url, log_message=f"{count:>6}/{total:<6} {kind_name} items")

            response[self.items_key].extend(page.get(self.items_key, []))
            response["next"] = page.get("next")

        return response[self.items_key]

    ###########################################################################
    ## Search
    ###########################################################################
    async def search(self, query: str) -> SearchResults:
        """``GET: /search`` - Query for playlists, albums, and artists."""
        url = self.url_api.joinpath("search")
        if not query or len(query) > self.max_query_length:  # query is too short or too long, skip
            self.handler.log("SKIP", url, message=f"Invalid query: {query!r}")
            return SearchResults()

        categories = SearchCategory.all()
        params = self._params(
            q=query,
            type=",".join(category.key.rstrip("s") for category in categories),
            limit=self.search_limit,
        )
        response = await self.handler.get(url, params=params)

        # results for deleted or unavailable items are returned as null values
        results = {
            category.key: [item for item in response.get(category.key, {}).get(self.items_key, []) if item]
            for category in categories
        }
        self.handler.log(
            "DONE", url, message=[f"{len(items):>3} {key}" for key, items in results.items()]
        )
        return SearchResults(**results)

    ###########################################################################
    ## User
    ###########################################################################
    async def get_self(self) -> dict[str, Any]:
        """``GET: /me`` - Get API response for information on current user."""
        return await self.handler.get(self.url_api.joinpath("me"))

    async def get_user_playlists(self) -> list[dict[str, Any]]:
        """``GET: /me/playlists`` - Get all playlists for the current user."""
        url = self.url_api.joinpath("me", "playlists")
        response = await self.handler.get(url, params={"limit": self.page_limit})
        results = await self.extend_items(response, kind="user playlist")

        self.handler.log("DONE", url, message=f"Retrieved {len(results):>6} playlists")
        return results
