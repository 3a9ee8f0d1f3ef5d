"""
The two comparison slots and the state each slot may be in.
"""
from dataclasses import dataclass

from pairify.catalog.collection import Collection
from pairify.exception import PairifyError
from pairify.types import PairifyEnum

#: The labels shown for each slot, by index
SLOT_LABELS = ("A", "B")


class SlotState(PairifyEnum):
    """The resolution state of a slot"""

    #: Nothing has been chosen, or the latest resolution failed
    EMPTY = 0
    #: Free text has been typed and suggestions are being searched for or shown
    SEARCHING = 1
    #: A collection is being fetched from the catalog
    RESOLVING = 2
    #: A collection has been fetched and stored
    RESOLVED = 3


@dataclass
class Slot:
    """One of the two endpoints of a comparison"""
    index: int
    query: str = ""
    collection: Collection | None = None
    state: SlotState = SlotState.EMPTY
    #: Incremented on every change to this slot. Only the latest resolution may be stored.
    token: int = 0
    #: The error from the latest resolution attempt, if it failed
    error: PairifyError | None = None

    @property
    def label(self) -> str:
        """The user-facing label of this slot"""
        return SLOT_LABELS[self.index]

    @property
    def resolved(self) -> bool:
        """Does this slot hold a resolved collection"""
        return self.state == SlotState.RESOLVED and self.collection is not None

    def edit(self, text: str) -> int:
        """
        Set the ``query`` for this slot, clearing any previous collection.

        :return: The new token for this slot.
        """
        self.query = text
        self.collection = None
        self.error = None
        self.token += 1
        return self.token
