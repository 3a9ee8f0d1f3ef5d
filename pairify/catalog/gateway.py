"""
The framework for interacting with a remote music catalog.

All methods that interact with the catalog should return raw, unprocessed responses.
"""
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Self

from pairify.catalog.types import ResourceType, SearchCategory


@dataclass(frozen=True)
class SearchResults:
    """The lightweight catalog entries returned for a search query, grouped by category"""
    playlists: list[dict[str, Any]] = field(default_factory=list)
    albums: list[dict[str, Any]] = field(default_factory=list)
    artists: list[dict[str, Any]] = field(default_factory=list)

    def __getitem__(self, category: SearchCategory) -> list[dict[str, Any]]:
        return getattr(self, category.key)

    def __len__(self):
        return len(self.playlists) + len(self.albums) + len(self.artists)


class CatalogGateway(metaclass=ABCMeta):
    """
    The boundary to a remote music catalog.

    Every operation may fail with one of the typed API errors:
    :py:class:`NotFoundError`, :py:class:`NetworkError`, or :py:class:`AuthError`.
    No retries are expected of callers; any retry policy belongs to the implementation.
    """

    __slots__ = ()

    @property
    @abstractmethod
    def source(self) -> str:
        """The name of the catalog service"""
        raise NotImplementedError

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    @abstractmethod
    async def fetch_by_id(self, kind: ResourceType, id_: str) -> dict[str, Any]:
        """
        Get the raw response for a collection including all of its tracks.

        :param kind: The type of collection to get.
        :param id_: The ID of the collection.
        :return: The raw API response for the collection.
        """
        raise NotImplementedError

    @abstractmethod
    async def search(self, query: str) -> SearchResults:
        """
        Query the catalog for playlists, albums, and artists.

        :param query: The free text to search for.
        :return: The categorised :py:class:`SearchResults`.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_self(self) -> dict[str, Any]:
        """Get the raw response for the currently authenticated user"""
        raise NotImplementedError

    @abstractmethod
    async def get_user_playlists(self) -> list[dict[str, Any]]:
        """Get the raw responses for all playlists in the library of the currently authenticated user"""
        raise NotImplementedError
