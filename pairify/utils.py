"""
Generic utility functions and classes which can be used throughout the entire package.
"""
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pairify.exception import PairifyTypeError

Number = int | float
T = TypeVar("T", list, set, tuple)


def limit_value(value: Number, floor: Number = 1, ceil: Number = 50) -> Number:
    """Limit a given ``value`` to always be between some ``floor`` and ``ceil``"""
    return max(min(value, ceil), floor)


def to_collection(data: Any, cls: type[T] = tuple) -> T | None:
    """
    Safely turn any object into a collection of a given type ``T``.

    Strings are converted to collections of size 1 where the first element is the string.
    Returns None if value is None.
    """
    if data is None or isinstance(data, cls):
        return data
    elif isinstance(data, Iterable) and not isinstance(data, str) and not isinstance(data, Mapping):
        return cls(data)
    elif cls is tuple:
        return (data,)
    elif cls is set:
        return {data}
    elif cls is list:
        return [data]
    raise PairifyTypeError(f"Unable to convert data to {cls.__name__} (data={data})")


def obfuscate(value: str | None, visible: int = 5) -> str | None:
    """Hide all but the first ``visible`` characters of a sensitive ``value`` so it is safe to log"""
    if not value:
        return value
    return f"{value[:visible]}..."
