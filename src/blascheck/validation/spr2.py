"""SPR2 test drivers.

Two drivers, each covering one half of the routine's contract:

- :func:`testing_spr2_bad_arg`: feeds deliberately malformed arguments one
  at a time and asserts the exact status returned for each.
- :func:`testing_spr2`: the correctness and performance path: stage random
  data, run SPR2 once per pointer mode, compare both results independently
  against the host reference, then optionally time hot calls.

Both own every buffer and the handle for exactly one case; the handle is
released on every exit path, including assertion failures.

:class:`Spr2Verifier` runs lists of cases and formats a PASS/FAIL report.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

from blascheck._exceptions import BlasCheckError, BlasStatusError, StatusMismatchError
from blascheck._logging import get_logger
from blascheck.arguments import ArgumentModel, Arguments
from blascheck.bench import BenchResult, get_time_us_no_sync, time_hot_calls
from blascheck.blas import Fill, PointerMode, Status, local_handle, spr2
from blascheck.flops import per_second, spr2_gbyte_count, spr2_gflop_count
from blascheck.init import RandomGenerator, blas_init
from blascheck.reference import packed_size, ref_spr2
from blascheck.validation.checks import (
    assert_norm_within,
    norm_check_general,
    norm_tolerance,
    unit_check_general,
)
from blascheck.vectors import DeviceVector, HostVector

logger = get_logger(__name__)

# Fields reported on the timing line
SPR2_MODEL = ArgumentModel("uplo", "N", "alpha", "incx", "incy")


def expect_status(actual: Status, expected: Status, call: str = "") -> None:
    """Assert that a call returned exactly ``expected``."""
    if actual != expected:
        raise StatusMismatchError(actual, expected, call)


def check_status(status: Status, call: str = "") -> None:
    """Abort the case unless a required call succeeded."""
    if status != Status.SUCCESS:
        raise BlasStatusError(status, call)


@dataclass
class Spr2Result:
    """What one :func:`testing_spr2` run measured."""

    arguments: Arguments
    early_return: bool = False
    norm_error_host_ptr: Optional[float] = None
    norm_error_device_ptr: Optional[float] = None
    gpu_time_us: Optional[float] = None
    cpu_time_us: Optional[float] = None
    gflops: Optional[float] = None
    gbytes_per_s: Optional[float] = None
    log_line: str = ""
    device: str = "cpu"

    def to_bench_result(self) -> BenchResult:
        """Convert a timed run to a :class:`BenchResult`."""
        if self.gpu_time_us is None:
            raise ValueError("case was not timed")
        iters = self.arguments.iters
        return BenchResult(
            name=self.arguments.label(),
            iterations=iters,
            total_seconds=self.gpu_time_us * iters / 1e6,
            per_call_us=self.gpu_time_us,
            device=self.device,
            gflops=self.gflops or 0.0,
            gbytes_per_s=self.gbytes_per_s or 0.0,
        )


# ---------------------------------------------------------------------------
# Invalid-argument driver
# ---------------------------------------------------------------------------


def testing_spr2_bad_arg(arg: Optional[Arguments] = None) -> None:
    """Assert the status of every malformed-argument call.

    Shape is fixed (N=100, unit strides, alpha=0.6, upper) so only the
    argument under test is wrong in each call.  Buffers are really allocated
    and filled so pointer checks see valid memory for the other operands;
    afterwards they must still hold exactly what was uploaded.
    """
    arg = arg or Arguments(function="spr2_bad_arg")
    dtype = arg.torch_dtype()

    uplo = Fill.UPPER
    N = 100
    incx = 1
    incy = 1
    alpha = arg.replace(alpha=0.6).get_alpha()

    size_A = packed_size(N)
    size_x = N * abs(incx)
    size_y = N * abs(incy)

    with local_handle(arg.device) as handle:
        dA_1 = DeviceVector(size_A, dtype, handle.device)
        dx = DeviceVector(size_x, dtype, handle.device)
        dy = DeviceVector(size_y, dtype, handle.device)

        hA = HostVector(size_A, dtype)
        hx = HostVector(size_x, dtype)
        hy = HostVector(size_y, dtype)
        rng = RandomGenerator(arg.seed)
        blas_init(hA, rng, seed_reset=True)
        blas_init(hx, rng)
        blas_init(hy, rng)
        dA_1.transfer_from(hA)
        dx.transfer_from(hx)
        dy.transfer_from(hy)

        expect_status(
            spr2(handle, Fill.FULL, N, alpha, dx.data, incx, dy.data, incy, dA_1.data),
            Status.INVALID_VALUE, "spr2(uplo=full)",
        )
        expect_status(
            spr2(handle, uplo, N, alpha, None, incx, dy.data, incy, dA_1.data),
            Status.INVALID_POINTER, "spr2(x=None)",
        )
        expect_status(
            spr2(handle, uplo, N, alpha, dx.data, incx, None, incy, dA_1.data),
            Status.INVALID_POINTER, "spr2(y=None)",
        )
        expect_status(
            spr2(handle, uplo, N, alpha, dx.data, incx, dy.data, incy, None),
            Status.INVALID_POINTER, "spr2(AP=None)",
        )
        expect_status(
            spr2(None, uplo, N, alpha, dx.data, incx, dy.data, incy, dA_1.data),
            Status.INVALID_HANDLE, "spr2(handle=None)",
        )

        # rejected calls must not have computed anything
        for name, dev, host in (("dA_1", dA_1, hA), ("dx", dx, hx), ("dy", dy, hy)):
            after = HostVector(len(host), dtype)
            after.transfer_from(dev)
            unit_check_general(1, len(host), 1, host, after, ulp_tolerance=0)
            dev.check_guards(name)

    logger.debug("spr2_bad_arg passed (%s)", arg.dtype)


# ---------------------------------------------------------------------------
# Correctness / performance driver
# ---------------------------------------------------------------------------


def testing_spr2(arg: Arguments) -> Spr2Result:
    """Run one SPR2 case: invalid-size fast path, or check and/or time it."""
    N = arg.N
    incx = arg.incx
    incy = arg.incy
    h_alpha = arg.get_alpha()
    uplo = arg.fill()
    dtype = arg.torch_dtype()

    with local_handle(arg.device) as handle:
        result = Spr2Result(arguments=arg, device=str(handle.device))

        # argument check before allocating invalid memory
        if arg.is_invalid_size:
            expect_status(
                spr2(handle, uplo, N, None, None, incx, None, incy, None),
                Status.INVALID_SIZE, f"spr2(N={N}, incx={incx}, incy={incy})",
            )
            result.early_return = True
            return result

        abs_incx = abs(incx)
        abs_incy = abs(incy)
        size_A = packed_size(N)
        size_x = N * abs_incx
        size_y = N * abs_incy

        # Naming: dK lives on the device, hK on the host
        hA_1 = HostVector(size_A, dtype)
        hA_2 = HostVector(size_A, dtype)
        hA_gold = HostVector(size_A, dtype)
        hx = HostVector(size_x, dtype)
        hy = HostVector(size_y, dtype)
        halpha = HostVector(1, dtype)
        halpha[0] = h_alpha

        dA_1 = DeviceVector(size_A, dtype, handle.device)
        dA_2 = DeviceVector(size_A, dtype, handle.device)
        dx = DeviceVector(size_x, dtype, handle.device)
        dy = DeviceVector(size_y, dtype, handle.device)
        d_alpha = DeviceVector(1, dtype, handle.device)

        rng = RandomGenerator(arg.seed)
        blas_init(hA_1, rng, seed_reset=True)
        blas_init(hx, rng)
        blas_init(hy, rng)

        # hA_gold receives the reference result; all three start identical
        hA_gold.copy_from(hA_1)
        hA_2.copy_from(hA_1)

        dA_1.transfer_from(hA_1)
        dA_2.transfer_from(hA_1)
        dx.transfer_from(hx)
        dy.transfer_from(hy)
        d_alpha.transfer_from(halpha)
        logger.debug("Staged %s on %s", arg.label(), handle.device)

        if arg.unit_check or arg.norm_check:
            check_status(
                spr2(handle, uplo, N, h_alpha, dx.data, incx, dy.data, incy, dA_1.data,
                     pointer_mode=PointerMode.HOST),
                "spr2 (host pointer mode)",
            )
            check_status(
                spr2(handle, uplo, N, d_alpha.data, dx.data, incx, dy.data, incy, dA_2.data,
                     pointer_mode=PointerMode.DEVICE),
                "spr2 (device pointer mode)",
            )

            cpu_start = get_time_us_no_sync()
            ref_spr2(uplo, N, h_alpha, hx.data, incx, hy.data, incy, hA_gold.data)
            result.cpu_time_us = get_time_us_no_sync() - cpu_start

            hA_1.transfer_from(dA_1)
            hA_2.transfer_from(dA_2)

            if arg.unit_check:
                unit_check_general(1, size_A, 1, hA_gold, hA_1, arg.ulp_tolerance, "host")
                unit_check_general(1, size_A, 1, hA_gold, hA_2, arg.ulp_tolerance, "device")

            if arg.norm_check:
                bound = arg.norm_tolerance or norm_tolerance(dtype)
                result.norm_error_host_ptr = norm_check_general("F", 1, size_A, 1, hA_gold, hA_1)
                result.norm_error_device_ptr = norm_check_general("F", 1, size_A, 1, hA_gold, hA_2)
                assert_norm_within(result.norm_error_host_ptr, bound, "spr2", "host")
                assert_norm_within(result.norm_error_device_ptr, bound, "spr2", "device")

        if arg.timing:
            statuses: List[Status] = []

            def _call() -> None:
                statuses.append(
                    spr2(handle, uplo, N, h_alpha, dx.data, incx, dy.data, incy, dA_1.data)
                )

            total_us = time_hot_calls(_call, arg.cold_iters, arg.iters, handle.get_stream())
            for status in set(statuses):
                check_status(status, "spr2 (timing loop)")

            gpu_time_us = total_us / arg.iters
            gflop = spr2_gflop_count(N)
            gbyte = spr2_gbyte_count(N, hA_1.data.element_size())
            result.gpu_time_us = gpu_time_us
            result.gflops = per_second(gflop, gpu_time_us)
            result.gbytes_per_s = per_second(gbyte, gpu_time_us)
            result.log_line = SPR2_MODEL.log_args(
                arg, gpu_time_us, gflop, gbyte,
                result.cpu_time_us,
                result.norm_error_host_ptr,
                result.norm_error_device_ptr,
            )

        for name, buf in (("dA_1", dA_1), ("dA_2", dA_2), ("dx", dx), ("dy", dy), ("d_alpha", d_alpha)):
            buf.check_guards(name)

    return result


# ---------------------------------------------------------------------------
# Suite runner
# ---------------------------------------------------------------------------


@dataclass
class CaseOutcome:
    """Result of running one case through :class:`Spr2Verifier`."""

    arguments: Arguments
    passed: bool
    result: Optional[Spr2Result] = None
    error_type: str = ""
    error_message: str = ""
    elapsed_ms: float = 0.0

    @property
    def name(self) -> str:
        return self.arguments.label()


class Spr2Verifier:
    """Run SPR2 cases and collect their outcomes.

    Args:
        device: Overrides the ``device`` of every case when given.

    Example::

        verifier = Spr2Verifier(device="cuda")
        outcomes = verifier.run(get_preset("quick"))
        print(verifier.format_report(outcomes))
    """

    def __init__(self, device: Optional[str] = None) -> None:
        self.device = device

    def run_case(self, arg: Arguments) -> CaseOutcome:
        if self.device is not None:
            arg = arg.replace(device=self.device)

        start = time.perf_counter()
        try:
            if arg.function == "spr2_bad_arg":
                testing_spr2_bad_arg(arg)
                result = None
            else:
                result = testing_spr2(arg)
        except (BlasCheckError, AssertionError) as exc:
            elapsed = (time.perf_counter() - start) * 1000
            logger.info("  [FAIL] %s: %s", arg.label(), exc)
            return CaseOutcome(
                arguments=arg, passed=False, error_type=type(exc).__name__,
                error_message=str(exc), elapsed_ms=elapsed,
            )
        elapsed = (time.perf_counter() - start) * 1000
        logger.info("  [PASS] %s (%.1f ms)", arg.label(), elapsed)
        return CaseOutcome(arguments=arg, passed=True, result=result, elapsed_ms=elapsed)

    def run(self, cases: Iterable[Arguments]) -> List[CaseOutcome]:
        """Run every case, continuing past failures."""
        return [self.run_case(arg) for arg in cases]

    @staticmethod
    def format_report(outcomes: List[CaseOutcome]) -> str:
        """Format outcomes as a human-readable report."""
        lines = [
            "SPR2 Verification Report",
            "=" * 78,
            f"{'Case':<52} {'Status':<8} {'Time':>10}",
            "-" * 78,
        ]

        for o in outcomes:
            status = "PASS" if o.passed else "FAIL"
            note = ""
            if o.result is not None and o.result.early_return:
                note = "  (invalid size rejected)"
            lines.append(f"{o.name:<52} {status:<8} {o.elapsed_ms:>8.1f}ms{note}")

        lines.append("-" * 78)
        passed = sum(1 for o in outcomes if o.passed)
        failed = len(outcomes) - passed
        lines.append(f"Total: {len(outcomes)} | Passed: {passed} | Failed: {failed}")

        if failed:
            lines.append("")
            lines.append("FAILED cases:")
            for o in outcomes:
                if not o.passed:
                    lines.append(f"  - {o.name}: {o.error_type}: {o.error_message}")

        lines.append("=" * 78)
        return "\n".join(lines)
