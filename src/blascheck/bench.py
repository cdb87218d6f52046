"""Timing primitives and benchmark reporting.

Timing methodology
------------------

Launches are asynchronous, so a device measurement is only meaningful
between two synchronization points:

1. ``cold_iters`` untimed calls prime lazy initialisation (index tables,
   allocator pools, kernel caches).
2. Synchronize the stream, take a timestamp.
3. ``iters`` calls back to back, with *no* synchronization in between, so
   launch overhead overlaps with execution.
4. Synchronize the stream, take a second timestamp.

The per-call time is the hot-phase delta divided by ``iters``.  Host-side
work (the reference) is timed with :func:`get_time_us_no_sync`.

Usage::

    from blascheck.bench import BenchReport, time_hot_calls

    total_us = time_hot_calls(lambda: spr2(...), cold_iters=2, hot_iters=10,
                              stream=handle.get_stream())
"""

from __future__ import annotations

import csv
import io
import platform
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from blascheck import streams
from blascheck._logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "BenchResult",
    "BenchReport",
    "get_system_fingerprint",
    "get_time_us_no_sync",
    "get_time_us_sync",
    "time_hot_calls",
]


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------


def get_time_us_no_sync() -> float:
    """Wall-clock time in microseconds, without touching the device."""
    return time.perf_counter() * 1e6


def get_time_us_sync(stream: Optional[Any] = None) -> float:
    """Synchronize ``stream``, then return wall-clock time in microseconds."""
    streams.synchronize(stream)
    return time.perf_counter() * 1e6


def time_hot_calls(
    fn: Callable[[], Any],
    cold_iters: int,
    hot_iters: int,
    stream: Optional[Any] = None,
) -> float:
    """Total microseconds of ``hot_iters`` calls after ``cold_iters`` warm-up calls."""
    for _ in range(cold_iters):
        fn()

    start = get_time_us_sync(stream)
    for _ in range(hot_iters):
        fn()
    return get_time_us_sync(stream) - start


# ---------------------------------------------------------------------------
# System fingerprint (for reproducible benchmark comparison)
# ---------------------------------------------------------------------------


def get_system_fingerprint() -> Dict[str, Any]:
    """Return the hardware and software identity of this machine.

    Results from different machines can then be compared meaningfully.
    """
    import torch
    from blascheck import __version__

    fp: Dict[str, Any] = {
        "blascheck_version": __version__,
        "torch_version": torch.__version__,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "os": platform.platform(),
        "cpu": platform.processor() or platform.machine(),
        "hip_version": getattr(torch.version, "hip", None),
        "cuda_version": torch.version.cuda,
    }

    if torch.cuda.is_available():
        fp["gpu_device"] = torch.cuda.get_device_name(0)
        fp["gpu_count"] = torch.cuda.device_count()
    else:
        fp["gpu_device"] = None
        fp["gpu_count"] = 0

    return fp


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class BenchResult:
    """Result of a single timed case."""
    name: str
    iterations: int
    total_seconds: float
    per_call_us: float  # microseconds per call
    device: str = "cpu"
    gflops: float = 0.0  # achieved GFLOP/s
    gbytes_per_s: float = 0.0

    @property
    def calls_per_second(self) -> float:
        return self.iterations / self.total_seconds if self.total_seconds > 0 else 0


@dataclass
class BenchReport:
    """Collection of benchmark results."""
    title: str
    results: List[BenchResult] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    def report(self) -> str:
        """Human-readable benchmark report."""
        lines = [
            f"{'=' * 89}",
            f"  {self.title}",
            f"{'=' * 89}",
        ]

        for k, v in self.metadata.items():
            lines.append(f"  {k}: {v}")
        lines.append("")

        lines.append(
            f"  {'Case':<35} {'per-call (us)':>13} {'GFLOP/s':>10} {'GB/s':>9} {'iters':>6} {'calls/s':>10}"
        )
        lines.append(f"  {'-' * 35} {'-' * 13} {'-' * 10} {'-' * 9} {'-' * 6} {'-' * 10}")

        for r in self.results:
            lines.append(
                f"  {r.name:<35} {r.per_call_us:>13.2f} {r.gflops:>10.3f} "
                f"{r.gbytes_per_s:>9.3f} {r.iterations:>6} {r.calls_per_second:>10.1f}"
            )

        lines.append(f"{'=' * 89}")
        return "\n".join(lines)

    def to_csv(self, include_fingerprint: bool = True) -> str:
        """Export results as CSV string.

        Args:
            include_fingerprint: If True, prepend a comment header with
                the system fingerprint for reproducibility.
        """
        output = io.StringIO()

        if include_fingerprint:
            fp = get_system_fingerprint()
            for k, v in fp.items():
                output.write(f"# {k}: {v}\n")
            for k, v in self.metadata.items():
                output.write(f"# {k}: {v}\n")
            output.write("#\n")

        writer = csv.writer(output)
        writer.writerow(["case", "device", "per_call_us", "gflops", "gbytes_per_s", "iterations",
                         "calls_per_second"])
        for r in self.results:
            writer.writerow([r.name, r.device, f"{r.per_call_us:.2f}", f"{r.gflops:.3f}",
                             f"{r.gbytes_per_s:.3f}", r.iterations, f"{r.calls_per_second:.1f}"])
        return output.getvalue()
