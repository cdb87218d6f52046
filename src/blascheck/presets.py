"""Named SPR2 case lists.

==============  =============================================================
``bad_arg``     the invalid-argument driver, once per precision
``quick``       small shapes, every stride sign, zero/negative sizes and zero
                increments; unit check only
``pre_checkin`` medium shapes with unit and norm checks
``nightly``     large shapes with norm checks and timing
==============  =============================================================

Usage::

    from blascheck.presets import get_preset
    cases = get_preset("quick", device="cuda")
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, List, Sequence, Tuple

from blascheck._exceptions import ConfigError
from blascheck.arguments import Arguments

_DTYPES = ("float32", "float64")
_FILLS = ("U", "L")


def _product(
    sizes: Sequence[int],
    increments: Sequence[Tuple[int, int]],
    alphas: Sequence[float],
    **common: Any,
) -> List[Arguments]:
    return [
        Arguments(N=n, incx=incx, incy=incy, alpha=alpha, uplo=uplo, dtype=dtype, **common)
        for dtype, uplo, n, (incx, incy), alpha in itertools.product(
            _DTYPES, _FILLS, sizes, increments, alphas
        )
    ]


def _bad_arg() -> List[Arguments]:
    return [Arguments(function="spr2_bad_arg", dtype=dtype) for dtype in _DTYPES]


def _quick() -> List[Arguments]:
    return _product(
        sizes=(-1, 0, 1, 10, 100),
        increments=((1, 1), (-2, 1), (2, -1), (1, 3), (0, 1), (1, 0)),
        alphas=(-0.5, 0.0, 0.6),
    )


def _pre_checkin() -> List[Arguments]:
    return _product(
        sizes=(500, 1000),
        increments=((1, 1), (-3, 2)),
        alphas=(0.6, 2.0),
        norm_check=True,
    )


def _nightly() -> List[Arguments]:
    return _product(
        sizes=(2011, 4011),
        increments=((1, 1), (2, -2)),
        alphas=(0.6,),
        norm_check=True,
        timing=True,
    )


PRESETS: Dict[str, Callable[[], List[Arguments]]] = {
    "bad_arg": _bad_arg,
    "quick": _quick,
    "pre_checkin": _pre_checkin,
    "nightly": _nightly,
}


def get_preset(name: str, **overrides: Any) -> List[Arguments]:
    """Return the cases of preset ``name`` with ``overrides`` applied to each."""
    try:
        builder = PRESETS[name]
    except KeyError:
        raise ConfigError(f"Unknown preset '{name}'. Available: {sorted(PRESETS)}") from None
    cases = builder()
    if overrides:
        cases = [case.replace(**overrides) for case in cases]
    return cases
