"""Host reference implementation of SPR2 and packed-storage helpers.

``ref_spr2`` is the ground truth the accelerator results are checked
against.  It walks the packed matrix one column at a time in the classic
reference-BLAS order::

    temp1 = alpha * y[j]
    temp2 = alpha * x[j]
    A[i, j] += x[i] * temp1 + y[i] * temp2

on plain CPU tensors.  Unlike the BLAS binding it raises ``ValueError`` on
bad arguments; it is never the subject of a status-code test.
"""

from __future__ import annotations

from typing import Any, List, Union

from blascheck._backend import get_torch
from blascheck._logging import get_logger
from blascheck.arguments import format_value
from blascheck.blas.types import Fill, char2fill

logger = get_logger(__name__)


def packed_size(n: int) -> int:
    """Number of elements of an ``n x n`` packed triangle."""
    return max(n, 0) * (max(n, 0) + 1) // 2


def packed_index(uplo: Union[str, Fill], n: int, i: int, j: int) -> int:
    """Storage offset of element ``(i, j)`` of a packed symmetric matrix.

    ``(i, j)`` may name either triangle; it is mirrored into the stored one.
    """
    fill = char2fill(uplo)
    if not (0 <= i < n and 0 <= j < n):
        raise IndexError(f"({i}, {j}) outside a {n}x{n} matrix")
    if fill is Fill.UPPER:
        i, j = min(i, j), max(i, j)
        return i + j * (j + 1) // 2
    if fill is Fill.LOWER:
        i, j = max(i, j), min(i, j)
        return i + j * (2 * n - j - 1) // 2
    raise ValueError("packed storage needs an upper or lower fill")


def _logical(v: Any, n: int, inc: int) -> Any:
    torch = get_torch()
    start = 0 if inc > 0 else (1 - n) * inc
    return v[start + torch.arange(n) * inc]


def ref_spr2(
    uplo: Union[str, Fill],
    n: int,
    alpha: float,
    x: Any,
    incx: int,
    y: Any,
    incy: int,
    ap: Any,
) -> None:
    """Apply ``A += alpha*x*y**T + alpha*y*x**T`` to packed ``ap`` in place."""
    fill = char2fill(uplo)
    if fill is Fill.FULL:
        raise ValueError("spr2 needs an upper or lower fill")
    if n < 0 or incx == 0 or incy == 0:
        raise ValueError(f"invalid spr2 shape: n={n}, incx={incx}, incy={incy}")
    if n == 0 or alpha == 0:
        return

    xl = _logical(x, n, incx)
    yl = _logical(y, n, incy)

    k = 0
    for j in range(n):
        temp1 = alpha * yl[j]
        temp2 = alpha * xl[j]
        if fill is Fill.UPPER:
            ap[k : k + j + 1] += xl[: j + 1] * temp1 + yl[: j + 1] * temp2
            k += j + 1
        else:
            ap[k : k + n - j] += xl[j:] * temp1 + yl[j:] * temp2
            k += n - j


def unpack(uplo: Union[str, Fill], n: int, ap: Any) -> Any:
    """Expand packed storage to a dense symmetric ``n x n`` tensor."""
    fill = char2fill(uplo)
    if fill is Fill.FULL:
        raise ValueError("packed storage needs an upper or lower fill")
    torch = get_torch()
    dense = torch.zeros(n, n, dtype=ap.dtype)
    k = 0
    for j in range(n):
        rows = range(j + 1) if fill is Fill.UPPER else range(j, n)
        for i in rows:
            dense[i, j] = ap[k]
            dense[j, i] = ap[k]
            k += 1
    return dense


def format_matrix(name: str, a: Any, m: int, n: int, lda: int) -> str:
    """Render a column-major ``m x n`` matrix stored with leading dimension ``lda``."""
    lines: List[str] = [f"---------- {name} ----------"]
    for i in range(m):
        row = [format_value(float(a[i + j * lda])) for j in range(n)]
        lines.append(" ".join(row))
    return "\n".join(lines)
