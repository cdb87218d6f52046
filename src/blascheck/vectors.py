"""Host and device buffers used to stage test data.

Both wrap a 1-D torch tensor.  Allocation failures are turned into
:class:`HostAllocationError` / :class:`DeviceAllocationError` at construction
time, so a driver never sees a half-built buffer.

Device buffers carry a guard region of :data:`PAD` elements on each side,
filled with NaN.  The routine under test only ever sees the interior
(:attr:`DeviceVector.data`); :meth:`DeviceVector.check_guards` detects writes
that strayed outside it.
"""

from __future__ import annotations

from typing import Any, Optional

from blascheck._backend import get_torch, resolve_device
from blascheck._exceptions import (
    DeviceAllocationError,
    GuardCorruptionError,
    HostAllocationError,
    TransferError,
)
from blascheck._logging import get_logger

logger = get_logger(__name__)

# Guard elements on each side of a device buffer
PAD = 4096


def _is_oom(exc: BaseException) -> bool:
    torch = get_torch()
    if isinstance(exc, torch.cuda.OutOfMemoryError):
        return True
    return isinstance(exc, RuntimeError) and "memory" in str(exc).lower()


class HostVector:
    """A host-resident buffer of ``size`` elements."""

    def __init__(self, size: int, dtype: Any) -> None:
        torch = get_torch()
        self.size = int(size)
        self.dtype = dtype
        try:
            self.data = torch.zeros(self.size, dtype=dtype, device="cpu")
        except (RuntimeError, MemoryError) as exc:
            raise HostAllocationError(
                f"Cannot allocate {self.size} host elements of {dtype}: {exc}"
            ) from exc

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, idx: Any) -> Any:
        return self.data[idx]

    def __setitem__(self, idx: Any, value: Any) -> None:
        self.data[idx] = value

    def copy_from(self, other: "HostVector") -> None:
        """Copy the contents of another host vector of the same size."""
        if len(other) != self.size:
            raise TransferError(f"host copy size mismatch: {len(other)} -> {self.size}")
        self.data.copy_(other.data)

    def transfer_from(self, src: "DeviceVector") -> None:
        """Download a device vector.  Synchronizes with the device."""
        if len(src) != self.size:
            raise TransferError(f"download size mismatch: {len(src)} -> {self.size}")
        try:
            self.data.copy_(src.data)
        except RuntimeError as exc:
            raise TransferError(f"device -> host copy failed: {exc}") from exc


class DeviceVector:
    """A device-resident buffer of ``size`` elements with NaN guard regions."""

    def __init__(self, size: int, dtype: Any, device: Optional[Any] = None, pad: int = PAD) -> None:
        torch = get_torch()
        self.size = int(size)
        self.dtype = dtype
        self.pad = pad
        if not isinstance(device, torch.device):
            device = torch.device(resolve_device(device))
        self.device = device
        try:
            self._storage = torch.empty(self.size + 2 * pad, dtype=dtype, device=self.device)
        except (RuntimeError, MemoryError) as exc:
            if isinstance(exc, MemoryError) or _is_oom(exc):
                raise DeviceAllocationError(
                    f"Cannot allocate {self.size} elements of {dtype} on {self.device}: {exc}"
                ) from exc
            raise
        self._storage.fill_(float("nan"))
        self.data = self._storage[pad : pad + self.size]

    def __len__(self) -> int:
        return self.size

    def transfer_from(self, src: HostVector) -> None:
        """Upload a host vector of the same size."""
        if len(src) != self.size:
            raise TransferError(f"upload size mismatch: {len(src)} -> {self.size}")
        try:
            self.data.copy_(src.data)
        except RuntimeError as exc:
            raise TransferError(f"host -> device copy failed: {exc}") from exc

    def check_guards(self, name: str = "buffer") -> None:
        """Raise :class:`GuardCorruptionError` if a guard element was written."""
        if self.pad == 0:
            return
        torch = get_torch()
        guards = torch.cat([self._storage[: self.pad], self._storage[self.pad + self.size :]])
        if not bool(torch.isnan(guards).all()):
            bad = int((~torch.isnan(guards)).sum())
            raise GuardCorruptionError(
                f"{name}: {bad} guard element(s) overwritten around a {self.size}-element buffer"
            )
