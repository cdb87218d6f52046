"""Stream and synchronization helpers.

Kernel launches return before the device finishes.  Timing and downloads
must synchronize on the stream the kernel was issued to; these helpers do
that uniformly for GPU streams and for the CPU, which has no stream
(``None``) and is always synchronous.

Usage::

    import blascheck.streams as streams

    stream = streams.current_stream("cuda:0")
    with streams.use_stream(stream):
        ...  # launches go to ``stream``
    streams.synchronize(stream)
"""

from __future__ import annotations

import contextlib
from typing import Any, Iterator, Optional

from blascheck._backend import get_torch
from blascheck._logging import get_logger

logger = get_logger(__name__)


def current_stream(device: Any) -> Optional[Any]:
    """Return the current stream of ``device``, or None for the CPU."""
    torch = get_torch()
    dev = torch.device(device)
    if dev.type == "cuda":
        return torch.cuda.current_stream(dev)
    return None


def synchronize(stream: Optional[Any] = None) -> None:
    """Block until all work queued on ``stream`` has completed."""
    if stream is not None:
        stream.synchronize()


@contextlib.contextmanager
def use_stream(stream: Optional[Any]) -> Iterator[None]:
    """Issue launches inside the block onto ``stream``."""
    if stream is None:
        yield
        return
    torch = get_torch()
    with torch.cuda.stream(stream):
        yield
