"""Per-case argument record and the structured timing log line.

An :class:`Arguments` instance describes one SPR2 test case: problem shape,
scalar, fill mode, precision, which checks to run, and how many cold/hot
iterations to time.  Cases can be built in code, from dicts, or loaded from
a JSON file::

    [
        {"N": 100, "incx": 1, "incy": 1, "alpha": 0.6, "uplo": "U"},
        {"N": -1}
    ]

or, with shared defaults::

    {"defaults": {"dtype": "float64", "norm_check": true},
     "cases": [{"N": 10}, {"N": 500, "incx": -2}]}
"""

from __future__ import annotations

import dataclasses
import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from blascheck._backend import get_torch
from blascheck._exceptions import ConfigError
from blascheck._logging import get_logger
from blascheck.flops import per_second
from blascheck.blas.types import Fill

logger = get_logger(__name__)

# Accepted spellings of each precision
_DTYPE_ALIASES = {
    "float32": "float32", "f32": "float32", "s": "float32", "single": "float32",
    "float64": "float64", "f64": "float64", "d": "float64", "double": "float64",
}

# Default generator seed of the harness
DEFAULT_SEED = 69069

# Drivers an Arguments record can select
FUNCTIONS = ("spr2", "spr2_bad_arg")


@dataclass
class Arguments:
    """Configuration of a single SPR2 test case.

    Attributes:
        N: Order of the packed matrix.  Negative values are a test subject
           (the routine must report an invalid size).
        incx: Stride of ``x``; zero is a test subject.
        incy: Stride of ``y``; zero is a test subject.
        alpha: Scalar multiplier.
        uplo: Fill character.  ``F`` (full) is accepted here because the
              invalid-fill path is itself tested.
        dtype: ``float32`` or ``float64`` (aliases ``s``/``d`` accepted).
        cold_iters: Untimed warm-up calls before the timed loop.
        iters: Timed calls.
        unit_check: Run the ULP-bounded element check.
        norm_check: Run the relative-norm check.
        timing: Run the timing phase.
        device: torch device string; None lets backend detection decide.
        seed: Seed of the random initialiser.
        ulp_tolerance: Largest ULP distance the unit check accepts.
        norm_tolerance: Relative-norm bound; None means 100 x machine epsilon.
        function: Driver to run, ``spr2`` or ``spr2_bad_arg``.
    """

    N: int = 100
    incx: int = 1
    incy: int = 1
    alpha: float = 0.6
    uplo: str = "U"
    dtype: str = "float32"
    cold_iters: int = 2
    iters: int = 10
    unit_check: bool = True
    norm_check: bool = False
    timing: bool = False
    device: Optional[str] = None
    seed: int = DEFAULT_SEED
    ulp_tolerance: int = 4
    norm_tolerance: Optional[float] = None
    function: str = "spr2"

    def __post_init__(self) -> None:
        canonical = _DTYPE_ALIASES.get(str(self.dtype).lower())
        if canonical is None:
            raise ConfigError(
                f"Unsupported dtype '{self.dtype}'. "
                f"Supported: {sorted(set(_DTYPE_ALIASES.values()))}"
            )
        self.dtype = canonical

        if not isinstance(self.uplo, str) or len(self.uplo) != 1:
            raise ConfigError(f"uplo must be a single character, got {self.uplo!r}")
        self.uplo = self.uplo.upper()

        if self.function not in FUNCTIONS:
            raise ConfigError(
                f"Unknown function '{self.function}'. Supported: {list(FUNCTIONS)}"
            )

        if self.cold_iters < 0 or self.iters < 0:
            raise ConfigError(
                f"Iteration counts must be non-negative, got "
                f"cold_iters={self.cold_iters}, iters={self.iters}"
            )
        if self.timing and self.iters == 0:
            raise ConfigError("timing needs at least one timed call (iters >= 1)")
        if self.ulp_tolerance < 0:
            raise ConfigError(f"ulp_tolerance must be non-negative, got {self.ulp_tolerance}")
        if self.norm_tolerance is not None and self.norm_tolerance <= 0:
            raise ConfigError(f"norm_tolerance must be positive, got {self.norm_tolerance}")

    # -- derived values ------------------------------------------------------

    def torch_dtype(self) -> Any:
        """Return the ``torch.dtype`` of this case."""
        return getattr(get_torch(), self.dtype)

    def get_alpha(self) -> float:
        """Return alpha rounded to the case's precision."""
        if self.dtype == "float32":
            torch = get_torch()
            return torch.tensor(self.alpha, dtype=torch.float32).item()
        return float(self.alpha)

    def fill(self) -> Union[Fill, str]:
        """Return the :class:`Fill` for ``uplo``, or the raw character if unknown."""
        try:
            return Fill(self.uplo)
        except ValueError:
            return self.uplo

    def label(self) -> str:
        """Short description used in reports."""
        if self.function == "spr2_bad_arg":
            return f"spr2_bad_arg {self.dtype}"
        return (
            f"spr2 {self.uplo} N={self.N} incx={self.incx} incy={self.incy} "
            f"alpha={self.alpha:g} {self.dtype}"
        )

    @property
    def is_invalid_size(self) -> bool:
        """True when the shape must be rejected before any buffer is touched."""
        return self.N < 0 or not self.incx or not self.incy

    # -- (de)serialisation ---------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Arguments":
        """Build from a dict, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown argument field(s): {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def replace(self, **changes: Any) -> "Arguments":
        """Return a copy with some fields changed."""
        return dataclasses.replace(self, **changes)


def load_cases(path: Union[str, Path]) -> List[Arguments]:
    """Load test cases from a JSON file.

    The file holds either a list of case dicts, or a dict with a ``cases``
    list and an optional ``defaults`` dict merged under every case.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read cases from {path}: {exc}") from exc

    defaults: Dict[str, Any] = {}
    if isinstance(raw, dict):
        defaults = raw.get("defaults", {})
        raw = raw.get("cases")
    if not isinstance(raw, list) or not all(isinstance(c, dict) for c in raw):
        raise ConfigError(f"{path}: expected a list of case objects")

    cases = [Arguments.from_dict({**defaults, **case}) for case in raw]
    logger.debug("Loaded %d case(s) from %s", len(cases), path)
    return cases


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def format_value(value: Any) -> str:
    """Format a value for a log line.

    Floats are printed with full precision (``%.17g``); NaN and infinities
    as ``.nan``, ``.inf`` and ``-.inf``; a ``.0`` is appended when the
    number would otherwise read as an integer.
    """
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if math.isnan(value):
            return ".nan"
        if math.isinf(value):
            return "-.inf" if value < 0 else ".inf"
        text = "%.17g" % value
        if not any(c in text for c in ".eE"):
            text += ".0"
        return text
    return str(value)


# ---------------------------------------------------------------------------
# Timing log line
# ---------------------------------------------------------------------------


class ArgumentModel:
    """Formats the timing log line for a chosen set of argument fields.

    Example::

        model = ArgumentModel("uplo", "N", "alpha", "incx", "incy")
        line = model.log_args(arg, gpu_time_us=12.5, gflop=..., gbyte=...)
    """

    def __init__(self, *fields: str) -> None:
        known = {f.name for f in dataclasses.fields(Arguments)}
        for name in fields:
            if name not in known:
                raise ValueError(f"Unknown argument field '{name}'")
        self.fields: Sequence[str] = fields

    def log_args(
        self,
        arg: Arguments,
        gpu_time_us: float,
        gflop: float,
        gbyte: float,
        cpu_time_us: Optional[float] = None,
        norm_error_1: Optional[float] = None,
        norm_error_2: Optional[float] = None,
    ) -> str:
        """Return the header and value lines; also log them at INFO.

        Args:
            arg: The case being reported.
            gpu_time_us: Per-call device time in microseconds.
            gflop: Floating-point work of one call, in GFLOP.
            gbyte: Memory traffic of one call, in GB.
            cpu_time_us: Reference time in microseconds, if a reference ran.
            norm_error_1: Norm error of the host-pointer result.
            norm_error_2: Norm error of the device-pointer result.
        """
        names: List[str] = list(self.fields)
        values: List[str] = [format_value(getattr(arg, f)) for f in self.fields]

        names += ["blascheck-Gflops", "blascheck-GB/s", "us"]
        values += [
            format_value(per_second(gflop, gpu_time_us)),
            format_value(per_second(gbyte, gpu_time_us)),
            format_value(float(gpu_time_us)),
        ]

        if cpu_time_us is not None:
            names += ["CPU-Gflops", "us"]
            values += [format_value(per_second(gflop, cpu_time_us)), format_value(float(cpu_time_us))]

        if arg.norm_check and norm_error_1 is not None and norm_error_2 is not None:
            names += ["norm_error_host_ptr", "norm_error_device_ptr"]
            values += [format_value(float(norm_error_1)), format_value(float(norm_error_2))]

        line = ",".join(names) + "\n" + ",".join(values)
        logger.info("%s", line)
        return line
