"""Work and traffic estimates used for throughput reporting."""

from __future__ import annotations


def spr2_gflop_count(n: int) -> float:
    """GFLOP of one SPR2 call.

    Each of the ``n(n+1)/2`` stored elements takes two multiplies and two
    adds; scaling ``x`` and ``y`` by alpha takes another ``2n``.
    """
    return (2.0 * n * (n + 1) + 2.0 * n) / 1e9


def spr2_gbyte_count(n: int, itemsize: int = 4) -> float:
    """GB moved by one SPR2 call: the packed triangle read and written, x and y read."""
    return itemsize * (n * (n + 1) + 2.0 * n) / 1e9


def per_second(amount: float, time_us: float) -> float:
    """Throughput of ``amount`` done in ``time_us`` microseconds; 0.0 if no time was measured."""
    return amount * 1e6 / time_us if time_us > 0 else 0.0
