"""Exception hierarchy for blascheck.

Three families, matching how a failure should be read:

- **Infrastructure** (:class:`HostAllocationError`,
  :class:`DeviceAllocationError`, :class:`TransferError`,
  :class:`GuardCorruptionError`, :class:`BlasStatusError`): the harness
  could not stage or run the case.  Always fatal to the case.
- **Expected-status mismatch** (:class:`StatusMismatchError`): a deliberately
  malformed call returned a status other than the one asserted.
- **Numerical mismatch** (:class:`NumericalMismatchError`): accelerator output
  deviates from the host reference beyond the configured bound.

The last two also derive from :class:`AssertionError`, so pytest reports them
as failed assertions rather than errors.

Usage::

    from blascheck._exceptions import NumericalMismatchError

    try:
        testing_spr2(arg)
    except NumericalMismatchError as e:
        print(f"{e.pointer_mode} pointer mode failed: {e}")
"""

from __future__ import annotations

from typing import Any, Optional


class BlasCheckError(Exception):
    """Base exception for all blascheck errors."""


class ConfigError(BlasCheckError):
    """Raised when a test case description is malformed."""


class HostAllocationError(BlasCheckError):
    """Raised when a host buffer cannot be allocated."""


class DeviceAllocationError(BlasCheckError):
    """Raised when a device buffer cannot be allocated.

    In the invalid-argument driver this is an infrastructure problem, not one
    of the outcomes under test.
    """


class TransferError(BlasCheckError):
    """Raised when a host <-> device copy fails or the sizes disagree."""


class GuardCorruptionError(BlasCheckError):
    """Raised when a device buffer's guard region was written to.

    This means the routine under test wrote outside the buffer it was given.
    """


class BlasStatusError(BlasCheckError):
    """Raised when a call that must succeed returned a non-success status."""

    def __init__(self, status: Any, call: str = "") -> None:
        self.status = status
        self.call = call
        where = f" in {call}" if call else ""
        super().__init__(f"unexpected status {status!s}{where}")


class StatusMismatchError(BlasCheckError, AssertionError):
    """Raised when a call returns a status other than the expected one."""

    def __init__(self, actual: Any, expected: Any, call: str = "") -> None:
        self.actual = actual
        self.expected = expected
        self.call = call
        where = f"{call}: " if call else ""
        super().__init__(f"{where}expected {expected!s}, got {actual!s}")


class NumericalMismatchError(BlasCheckError, AssertionError):
    """Raised when a result deviates from the reference beyond tolerance.

    Attributes:
        pointer_mode: Calling convention that produced the bad result
            (``"host"`` or ``"device"``), or None when not attributable.
    """

    def __init__(self, message: str, pointer_mode: Optional[str] = None) -> None:
        self.pointer_mode = pointer_mode
        prefix = f"[{pointer_mode} pointer mode] " if pointer_mode else ""
        super().__init__(prefix + message)
