"""Accelerated BLAS binding exercised by the harness.

The routines run as PyTorch tensor operations on the handle's device and
report errors through :class:`Status` codes, like the vendor library they
stand in for.

Usage::

    from blascheck.blas import Fill, PointerMode, Status, local_handle, spr2

    with local_handle() as handle:
        status = spr2(handle, Fill.UPPER, n, 0.6, dx, 1, dy, 1, dA)
        assert status is Status.SUCCESS
"""

from blascheck.blas.handle import Handle, create_handle, destroy_handle, local_handle
from blascheck.blas.level2 import spr2
from blascheck.blas.types import Fill, PointerMode, Status, char2fill, status_to_string

__all__ = [
    "Fill",
    "Handle",
    "PointerMode",
    "Status",
    "char2fill",
    "create_handle",
    "destroy_handle",
    "local_handle",
    "spr2",
    "status_to_string",
]
