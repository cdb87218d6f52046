"""Enumerations shared by the BLAS binding and the harness."""

from __future__ import annotations

import enum
from typing import Union


class Status(enum.IntEnum):
    """Return codes of the BLAS routines."""

    SUCCESS = 0
    INVALID_HANDLE = 1
    NOT_IMPLEMENTED = 2
    INVALID_POINTER = 3
    INVALID_SIZE = 4
    MEMORY_ERROR = 5
    INTERNAL_ERROR = 6
    INVALID_VALUE = 11

    def __str__(self) -> str:
        return status_to_string(self)


class Fill(enum.Enum):
    """Which triangle of a symmetric matrix is referenced."""

    UPPER = "U"
    LOWER = "L"
    FULL = "F"


class PointerMode(enum.Enum):
    """Where a scalar operand is read from at call time."""

    HOST = "host"
    DEVICE = "device"


def status_to_string(status: Union[Status, int]) -> str:
    """Render a status code as ``blascheck_status_<name>``."""
    try:
        return f"blascheck_status_{Status(status).name.lower()}"
    except ValueError:
        return f"blascheck_status_unknown({int(status)})"


def char2fill(value: Union[str, Fill]) -> Fill:
    """Convert a fill character (``U``, ``L``, ``F``, any case) to :class:`Fill`."""
    if isinstance(value, Fill):
        return value
    try:
        return Fill(value.upper())
    except (AttributeError, ValueError):
        raise ValueError(f"invalid fill character {value!r}; expected U, L or F") from None
