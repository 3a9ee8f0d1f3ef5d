"""
Exceptions relating to catalog operations.
"""
from typing import Any

from pairify.catalog.types import ResourceType
from pairify.exception import PairifyError


class CatalogError(PairifyError):
    """Exception raised for catalog errors"""


class CollectionError(CatalogError):
    """
    Exception raised for errors when processing a catalog collection.

    :param message: Explanation of the error.
    :param kind: The collection type related to the error.
    :param value: The value that caused the error.
    """

    def __init__(self, message: str | None = None, kind: ResourceType | None = None, value: Any = None):
        self.kind = kind.name if kind else None
        formatted = f"{self.kind} | {message}" if self.kind else message
        formatted += f": {value}" if value else ""
        super().__init__(formatted)
