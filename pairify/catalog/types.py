"""
All enums and type hints relating to catalog resources.
"""
from pairify.types import PairifyEnum


class ResourceType(PairifyEnum):
    """The types of catalog collections which can be resolved into a :py:class:`Collection`"""

    PLAYLIST = 1
    ALBUM = 2

    @property
    def key(self) -> str:
        """The key used for this type in links and API responses"""
        return self.name.lower()


class SearchCategory(PairifyEnum):
    """The categories of suggestions returned when searching the catalog"""

    PLAYLISTS = 1
    ALBUMS = 2
    ARTISTS = 3

    @property
    def key(self) -> str:
        """The key used for this category in API search responses"""
        return self.name.lower()
