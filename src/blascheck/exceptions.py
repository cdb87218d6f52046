"""Public exception hierarchy for blascheck.

All blascheck exceptions inherit from :class:`BlasCheckError`, so callers can
``except BlasCheckError`` to catch any harness failure, or be specific with a
subclass.

Example::

    from blascheck.exceptions import BlasCheckError, DeviceAllocationError

    try:
        testing_spr2(arg)
    except DeviceAllocationError:
        print("not enough device memory for this case")
    except BlasCheckError as e:
        print(f"spr2 case failed: {e}")
"""

from blascheck._exceptions import (  # noqa: F401
    BlasCheckError,
    BlasStatusError,
    ConfigError,
    DeviceAllocationError,
    GuardCorruptionError,
    HostAllocationError,
    NumericalMismatchError,
    StatusMismatchError,
    TransferError,
)

__all__ = [
    "BlasCheckError",
    "BlasStatusError",
    "ConfigError",
    "DeviceAllocationError",
    "GuardCorruptionError",
    "HostAllocationError",
    "NumericalMismatchError",
    "StatusMismatchError",
    "TransferError",
]
