"""
Exceptions relating to selection operations.
"""
from pairify.exception import PairifyError


class SelectionError(PairifyError):
    """Exception raised for invalid operations on the selection state"""
