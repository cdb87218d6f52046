"""Acceptance checks comparing accelerator output with the host reference.

Two strategies:

- **Unit check**: element-wise, every element within ``ulp_tolerance`` units
  in the last place of the reference (NaN matches NaN).  With integer test
  data the accelerator and the reference normally agree bit for bit; the
  tolerance absorbs fused multiply-add contraction on some devices.
- **Norm check**: ``||ref - result|| / ||ref||`` under a matrix norm
  (``'O'`` one, ``'I'`` infinity, ``'F'`` Frobenius, ``'M'`` max-abs),
  accepted when below a fixed bound.  Scaling both operands by the same
  non-zero constant leaves the error unchanged.

Matrices are described the BLAS way, ``m x n`` column-major with leading
dimension ``lda``; a packed triangle is checked as ``1 x size``.

The ``*_general`` functions raise on failure, for use inside drivers.  The
:class:`UnitCheck` and :class:`NormCheck` strategy objects return a
:class:`CheckResult` instead, for reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from blascheck._backend import get_torch
from blascheck._exceptions import NumericalMismatchError
from blascheck._logging import get_logger

logger = get_logger(__name__)

# Relative-norm bound in units of machine epsilon
DEFAULT_NORM_FACTOR = 100

_NORM_TYPES = ("O", "I", "F", "M")


@dataclass
class CheckResult:
    """Outcome of one acceptance check on one result buffer."""

    check: str
    passed: bool
    error: float = 0.0
    tolerance: float = 0.0
    pointer_mode: Optional[str] = None
    message: str = ""

    def raise_for_failure(self) -> None:
        """Raise :class:`NumericalMismatchError` if the check failed."""
        if not self.passed:
            raise NumericalMismatchError(self.message, pointer_mode=self.pointer_mode)


def _values(buf: Any) -> Any:
    """Accept a tensor or anything with a ``.data`` tensor (HostVector)."""
    torch = get_torch()
    if not isinstance(buf, torch.Tensor):
        buf = buf.data
    return buf.detach().to("cpu").reshape(-1)


def _as_matrix(buf: Any, m: int, n: int, lda: int) -> Any:
    flat = _values(buf).contiguous()
    if m == 0 or n == 0:
        return flat[:0].reshape(m, n)
    needed = (n - 1) * lda + m
    if lda < m or flat.numel() < needed:
        raise ValueError(f"buffer of {flat.numel()} elements too small for {m}x{n}, lda={lda}")
    return flat.as_strided((m, n), (1, lda))


def _ordered_bits(values: Any) -> Any:
    """Map floats to integers that are monotone in the float ordering."""
    torch = get_torch()
    if values.dtype == torch.float64:
        bits = values.view(torch.int64)
        magnitude = bits & 0x7FFFFFFFFFFFFFFF
    else:
        bits = values.to(torch.float32).view(torch.int32).to(torch.int64)
        magnitude = bits & 0x7FFFFFFF
    return torch.where(bits < 0, -magnitude, magnitude)


def ulp_distance(expected: Any, actual: Any) -> Any:
    """Element-wise distance in units in the last place, as float64.

    NaN against NaN is 0; NaN against a number is infinite.
    """
    torch = get_torch()
    e = _values(expected)
    a = _values(actual).to(e.dtype)
    oe = _ordered_bits(e)
    oa = _ordered_bits(a)

    same_sign = (oe < 0) == (oa < 0)
    dist = torch.where(
        same_sign,
        (oe - oa).abs().to(torch.float64),
        oe.abs().to(torch.float64) + oa.abs().to(torch.float64),
    )

    e_nan = torch.isnan(e)
    a_nan = torch.isnan(a)
    dist = torch.where(e_nan & a_nan, torch.zeros_like(dist), dist)
    dist = torch.where(e_nan ^ a_nan, torch.full_like(dist, float("inf")), dist)
    return dist


def _unit_report(m: int, n: int, lda: int, expected: Any, actual: Any) -> Tuple[float, Optional[Tuple[int, int]]]:
    """Largest ULP distance and the first (i, j) reaching it."""
    e = _as_matrix(expected, m, n, lda)
    a = _as_matrix(actual, m, n, lda)
    if e.numel() == 0:
        return 0.0, None
    dist = ulp_distance(e.t().reshape(-1), a.t().reshape(-1))  # column-major walk
    worst = float(dist.max())
    flat = int(dist.argmax())
    return worst, (flat % m, flat // m)


def unit_check_general(
    m: int,
    n: int,
    lda: int,
    expected: Any,
    actual: Any,
    ulp_tolerance: int = 4,
    pointer_mode: Optional[str] = None,
) -> None:
    """Assert every element of ``actual`` is within ``ulp_tolerance`` ULPs of ``expected``."""
    worst, where = _unit_report(m, n, lda, expected, actual)
    if worst > ulp_tolerance:
        i, j = where
        e = _as_matrix(expected, m, n, lda)[i, j].item()
        a = _as_matrix(actual, m, n, lda)[i, j].item()
        raise NumericalMismatchError(
            f"element ({i}, {j}): expected {e!r}, got {a!r} "
            f"({worst:g} ULP > {ulp_tolerance})",
            pointer_mode=pointer_mode,
        )


def _matrix_norm(norm_type: str, mat: Any) -> float:
    if mat.numel() == 0:
        return 0.0
    absm = mat.abs()
    if norm_type == "O":
        return float(absm.sum(dim=0).max())
    if norm_type == "I":
        return float(absm.sum(dim=1).max())
    if norm_type == "F":
        return float(get_torch().linalg.vector_norm(mat))
    return float(absm.max())


def norm_check_general(
    norm_type: str,
    m: int,
    n: int,
    lda: int,
    expected: Any,
    actual: Any,
) -> float:
    """Relative error ``||expected - actual|| / ||expected||``.

    Computed in double precision.  When ``||expected||`` is zero the absolute
    error is returned.
    """
    norm_type = norm_type.upper()
    if norm_type not in _NORM_TYPES:
        raise ValueError(f"Unknown norm type '{norm_type}'. Supported: {list(_NORM_TYPES)}")
    torch = get_torch()
    e = _as_matrix(expected, m, n, lda).to(torch.float64)
    a = _as_matrix(actual, m, n, lda).to(torch.float64)
    diff_norm = _matrix_norm(norm_type, e - a)
    ref_norm = _matrix_norm(norm_type, e)
    return diff_norm / ref_norm if ref_norm > 0 else diff_norm


def machine_epsilon(dtype: Any) -> float:
    return float(get_torch().finfo(dtype).eps)


def norm_tolerance(dtype: Any, factor: float = DEFAULT_NORM_FACTOR) -> float:
    """Default relative-norm bound for ``dtype``: ``factor`` machine epsilons."""
    return factor * machine_epsilon(dtype)


def assert_norm_within(
    error: float, bound: float, label: str = "", pointer_mode: Optional[str] = None
) -> None:
    """Raise :class:`NumericalMismatchError` unless ``error <= bound`` (NaN fails)."""
    if not error <= bound:
        what = f"{label} " if label else ""
        raise NumericalMismatchError(
            f"{what}relative norm error {error:.6e} exceeds bound {bound:.6e}",
            pointer_mode=pointer_mode,
        )


# ---------------------------------------------------------------------------
# Strategy objects
# ---------------------------------------------------------------------------


class UnitCheck:
    """ULP-bounded element-wise acceptance."""

    name = "unit"

    def __init__(self, ulp_tolerance: int = 4) -> None:
        self.ulp_tolerance = ulp_tolerance

    def check(
        self, expected: Any, actual: Any, pointer_mode: Optional[str] = None,
        m: int = 1, n: Optional[int] = None, lda: int = 1,
    ) -> CheckResult:
        n = _values(expected).numel() if n is None else n
        worst, where = _unit_report(m, n, lda, expected, actual)
        passed = worst <= self.ulp_tolerance
        message = "" if passed else (
            f"element {where}: {worst:g} ULP > {self.ulp_tolerance}"
        )
        return CheckResult(
            check=self.name, passed=passed, error=worst,
            tolerance=float(self.ulp_tolerance), pointer_mode=pointer_mode,
            message=message,
        )


class NormCheck:
    """Relative-norm-bounded acceptance."""

    name = "norm"

    def __init__(self, bound: float, norm_type: str = "F") -> None:
        self.bound = bound
        self.norm_type = norm_type

    def check(
        self, expected: Any, actual: Any, pointer_mode: Optional[str] = None,
        m: int = 1, n: Optional[int] = None, lda: int = 1,
    ) -> CheckResult:
        n = _values(expected).numel() if n is None else n
        error = norm_check_general(self.norm_type, m, n, lda, expected, actual)
        passed = error <= self.bound
        message = "" if passed else (
            f"relative {self.norm_type}-norm error {error:.6e} exceeds bound {self.bound:.6e}"
        )
        return CheckResult(
            check=self.name, passed=passed, error=error, tolerance=self.bound,
            pointer_mode=pointer_mode, message=message,
        )
