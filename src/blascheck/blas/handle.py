"""Library handle: the device a routine runs on and the stream it launches to.

A handle is created per test case and destroyed when the case ends.  Use
:func:`local_handle` so destruction happens on every exit path::

    with local_handle("cuda") as handle:
        status = spr2(handle, Fill.UPPER, n, alpha, dx, 1, dy, 1, dA)
"""

from __future__ import annotations

import contextlib
from typing import Any, Dict, Iterator, Optional

from blascheck import streams
from blascheck._backend import get_torch, resolve_device
from blascheck._logging import get_logger

logger = get_logger(__name__)


class Handle:
    """Execution context for BLAS calls.

    Attributes:
        device: The ``torch.device`` every operand must live on.
        stream: Stream kernels are launched to (None on the CPU).
        workspace: Device-side tables routines build once and reuse across
            calls (packed index maps).  Dropped when the handle is destroyed.
    """

    def __init__(self, device: Optional[str] = None) -> None:
        torch = get_torch()
        self.device = torch.device(resolve_device(device))
        if self.device.type == "cuda" and self.device.index is None:
            self.device = torch.device("cuda", torch.cuda.current_device())
        self.stream = streams.current_stream(self.device)
        self.workspace: Dict[Any, Any] = {}
        self._valid = True

    @property
    def is_valid(self) -> bool:
        return self._valid

    def get_stream(self) -> Optional[Any]:
        """Return the stream this handle launches work to."""
        return self.stream

    def synchronize(self) -> None:
        """Wait for all work launched through this handle."""
        streams.synchronize(self.stream)

    def destroy(self) -> None:
        if self._valid:
            self._valid = False
            self.workspace.clear()
            logger.debug("Destroyed handle on %s", self.device)

    def __repr__(self) -> str:
        state = "valid" if self._valid else "destroyed"
        return f"Handle(device={str(self.device)!r}, {state})"


def create_handle(device: Optional[str] = None) -> Handle:
    """Create a handle bound to ``device`` (resolved via backend detection)."""
    handle = Handle(device)
    logger.debug("Created %r", handle)
    return handle


def destroy_handle(handle: Handle) -> None:
    """Release a handle; later calls through it fail with INVALID_HANDLE."""
    handle.destroy()


@contextlib.contextmanager
def local_handle(device: Optional[str] = None) -> Iterator[Handle]:
    """Create a handle for the duration of the ``with`` block."""
    handle = create_handle(device)
    try:
        yield handle
    finally:
        destroy_handle(handle)
