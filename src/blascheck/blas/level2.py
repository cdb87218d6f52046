"""Level-2 BLAS routines on the handle's device.

Only SPR2 is provided:

    A := alpha * x * y**T + alpha * y * x**T + A

where ``A`` is an ``n x n`` symmetric matrix in packed storage (column-major,
``n*(n+1)/2`` elements) and ``x``/``y`` are strided vectors.

The routine follows the vendor-library calling convention: arguments are
validated in a fixed order and problems are reported as a :class:`Status`
rather than raised.  ``None`` plays the role of a null pointer.  The scalar
is read according to the explicit ``pointer_mode`` argument: a host value
for :attr:`PointerMode.HOST`, a one-element tensor on the handle's device
for :attr:`PointerMode.DEVICE`.

The kernel is queued on the handle's stream and the call returns without
synchronizing.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple, Union

from blascheck import streams
from blascheck._backend import get_torch
from blascheck._logging import get_logger
from blascheck.blas.handle import Handle
from blascheck.blas.types import Fill, PointerMode, Status

logger = get_logger(__name__)


def _as_fill(uplo: Union[str, Fill]) -> Optional[Fill]:
    if isinstance(uplo, Fill):
        return uplo
    try:
        return Fill(str(uplo).upper())
    except ValueError:
        return None


def _is_tensor(obj: Any) -> bool:
    return isinstance(obj, get_torch().Tensor)


def _on_device(buf: Any, device: Any) -> bool:
    if not _is_tensor(buf) or buf.dim() != 1:
        return False
    if buf.device.type != device.type:
        return False
    return device.type == "cpu" or buf.device.index == device.index


def _host_scalar(alpha: Any) -> Optional[float]:
    """Read a host-mode scalar; None if it actually lives on a device."""
    if _is_tensor(alpha):
        if alpha.device.type != "cpu" or alpha.numel() < 1:
            return None
        return alpha.reshape(-1)[0].item()
    try:
        return float(alpha)
    except (TypeError, ValueError):
        return None


def _logical_vector(buf: Any, n: int, inc: int) -> Any:
    """View of the ``n`` logical elements of a strided vector.

    With a negative increment element ``i`` lives at ``(n - 1 - i) * |inc|``.
    """
    step = abs(inc)
    view = buf[: (n - 1) * step + 1 : step]
    return view.flip(0) if inc < 0 else view


def _packed_indices(handle: Handle, fill: Fill, n: int) -> Tuple[Any, Any]:
    """Row and column of every packed element, in storage order.

    Built on the handle's device on first use and kept in
    ``handle.workspace`` until the handle is destroyed.

    ``tril_indices`` walks the lower triangle row by row; read transposed
    that is the upper triangle column by column, which is exactly upper
    packed order.  ``triu_indices`` transposed gives lower packed order.
    """
    key = ("spr2_packed_indices", fill, n)
    cached = handle.workspace.get(key)
    if cached is not None:
        return cached

    torch = get_torch()
    if fill is Fill.UPPER:
        cols, rows = torch.tril_indices(n, n, device=handle.device)
    else:
        cols, rows = torch.triu_indices(n, n, device=handle.device)
    handle.workspace[key] = (rows, cols)
    return rows, cols


def _spr2_kernel(
    handle: Handle, fill: Fill, n: int, alpha: Any, x: Any, incx: int, y: Any, incy: int, ap: Any
) -> None:
    xs = _logical_vector(x, n, incx)
    ys = _logical_vector(y, n, incy)
    rows, cols = _packed_indices(handle, fill, n)

    # same operation order as the reference: x_i*(alpha*y_j) + y_i*(alpha*x_j)
    update = xs[rows] * (alpha * ys[cols]) + ys[rows] * (alpha * xs[cols])
    ap[: n * (n + 1) // 2].add_(update)


def spr2(
    handle: Optional[Handle],
    uplo: Union[str, Fill],
    n: int,
    alpha: Any,
    x: Any,
    incx: int,
    y: Any,
    incy: int,
    ap: Any,
    pointer_mode: PointerMode = PointerMode.HOST,
) -> Status:
    """Symmetric packed rank-2 update.

    Args:
        handle: Handle from :func:`blascheck.blas.create_handle`.
        uplo: :class:`Fill` or fill character; must be upper or lower.
        n: Order of ``A``.
        alpha: Scalar, placed according to ``pointer_mode``.
        x: Vector of at least ``1 + (n-1)*|incx|`` elements.
        incx: Non-zero stride of ``x``.
        y: Vector of at least ``1 + (n-1)*|incy|`` elements.
        incy: Non-zero stride of ``y``.
        ap: Packed matrix of at least ``n*(n+1)/2`` elements, updated in place.
        pointer_mode: Where ``alpha`` is read from.

    Returns:
        :attr:`Status.SUCCESS` or the status describing the first invalid
        argument.
    """
    if handle is None or not handle.is_valid:
        return Status.INVALID_HANDLE

    fill = _as_fill(uplo)
    if fill is not Fill.UPPER and fill is not Fill.LOWER:
        return Status.INVALID_VALUE

    if n < 0 or not incx or not incy:
        return Status.INVALID_SIZE

    if n == 0:
        return Status.SUCCESS

    if alpha is None:
        return Status.INVALID_POINTER

    if pointer_mode is PointerMode.HOST:
        alpha_value = _host_scalar(alpha)
        if alpha_value is None:
            return Status.INVALID_POINTER
        if alpha_value == 0:
            return Status.SUCCESS
    else:
        if not _is_tensor(alpha) or alpha.numel() < 1:
            return Status.INVALID_POINTER
        if not _on_device(alpha.reshape(-1), handle.device):
            return Status.INVALID_POINTER

    if x is None or y is None or ap is None:
        return Status.INVALID_POINTER

    for buf in (x, y, ap):
        if not _on_device(buf, handle.device):
            return Status.INVALID_POINTER

    torch = get_torch()
    if not (x.dtype == y.dtype == ap.dtype) or ap.dtype not in (torch.float32, torch.float64):
        return Status.INVALID_VALUE

    if (
        x.numel() < 1 + (n - 1) * abs(incx)
        or y.numel() < 1 + (n - 1) * abs(incy)
        or ap.numel() < n * (n + 1) // 2
    ):
        return Status.INVALID_SIZE

    if pointer_mode is PointerMode.HOST:
        scalar = alpha_value
    else:
        scalar = alpha.reshape(-1)[0].to(ap.dtype)

    try:
        with streams.use_stream(handle.stream):
            _spr2_kernel(handle, fill, n, scalar, x, incx, y, incy, ap)
    except torch.cuda.OutOfMemoryError as exc:
        logger.error("spr2 ran out of device memory (n=%d): %s", n, exc)
        return Status.MEMORY_ERROR
    except RuntimeError as exc:
        logger.error("spr2 kernel failed (n=%d): %s", n, exc)
        return Status.INTERNAL_ERROR

    return Status.SUCCESS
