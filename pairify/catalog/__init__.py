"""
Resolve links to catalog collections and normalise the responses for each collection type.

Defines the framework for interacting with a remote music catalog along with
the Spotify implementation of this framework.
"""
from .collection import Collection, Image, normalize
from .gateway import CatalogGateway, SearchResults
from .link import ResourceLink, classify
from .types import ResourceType, SearchCategory
