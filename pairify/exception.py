"""
Core exceptions for the entire package.
"""
from typing import Any


class PairifyError(Exception):
    """Generic base class for all Pairify-related errors"""


class PairifyTypeError(PairifyError, TypeError):
    """Exception raised for invalid types."""
    def __init__(self, kind: Any, message: str = "Invalid item type given"):
        self.message = message
        super().__init__(f"{self.message}: {kind}")


###########################################################################
## Enum errors
###########################################################################
class PairifyEnumError(PairifyError):
    """
    Exception raised for errors related to :py:class:`PairifyEnum` implementations.

    :param value: The value that caused the error.
    :param message: Explanation of the error.
    """

    def __init__(self, value: Any, message: str = "Could not find enum"):
        self.message = message
        super().__init__(f"{self.message}: {value}")


###########################################################################
## Config errors
###########################################################################
class ConfigError(PairifyError):
    """
    Exception raised for errors in the config file.

    :param message: Explanation of the error.
    :param key: The config key that caused the error.
    :param value: The value of the config key that caused the error.
    """

    def __init__(self, message: str = "Could not process config", key: Any | None = None, value: Any | None = None):
        self.message = message
        self.key = key
        self.value = value
        super().__init__(message.format(key=key, value=value))
