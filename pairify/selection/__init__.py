"""
Choose the two collections to compare, either by pasting links or by searching for them as you type.
"""
from .controller import ComparisonRequest, SlotSelectionController, COMPARE_WARNING
from .slot import Slot, SlotState
from .suggestions import SearchSuggestionEngine, SuggestionSet, DEBOUNCE_DELAY
from .timer import DebounceTimer
