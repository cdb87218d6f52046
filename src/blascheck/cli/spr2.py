"""``blascheck spr2`` and ``blascheck bad-arg``: run a single case."""

from __future__ import annotations

import sys
from typing import Optional

import click


@click.command()
@click.option("--n", "N", type=int, default=100, show_default=True, help="Matrix order")
@click.option("--incx", type=int, default=1, show_default=True, help="Stride of x")
@click.option("--incy", type=int, default=1, show_default=True, help="Stride of y")
@click.option("--alpha", type=float, default=0.6, show_default=True, help="Scalar multiplier")
@click.option("--uplo", default="U", show_default=True, help="Fill: U, L (or F to test rejection)")
@click.option("--dtype", default="float32", show_default=True, help="float32 or float64")
@click.option("--cold-iters", type=int, default=2, show_default=True, help="Untimed warm-up calls")
@click.option("--iters", type=int, default=10, show_default=True, help="Timed calls")
@click.option("--unit-check/--no-unit-check", default=True, help="ULP-bounded element check")
@click.option("--norm-check", is_flag=True, help="Relative Frobenius-norm check")
@click.option("--timing", is_flag=True, help="Time hot calls and print the log line")
@click.option("--device", default=None, help="Device, e.g. cpu, cuda, cuda:1")
def spr2(
    N: int,
    incx: int,
    incy: int,
    alpha: float,
    uplo: str,
    dtype: str,
    cold_iters: int,
    iters: int,
    unit_check: bool,
    norm_check: bool,
    timing: bool,
    device: Optional[str],
) -> None:
    """Check and optionally time one SPR2 case."""
    from blascheck.arguments import Arguments
    from blascheck.exceptions import BlasCheckError, ConfigError
    from blascheck.validation import testing_spr2

    try:
        arg = Arguments(
            N=N, incx=incx, incy=incy, alpha=alpha, uplo=uplo, dtype=dtype,
            cold_iters=cold_iters, iters=iters, unit_check=unit_check,
            norm_check=norm_check, timing=timing, device=device,
        )
    except ConfigError as exc:
        raise click.BadParameter(str(exc)) from exc

    try:
        result = testing_spr2(arg)
    except (BlasCheckError, AssertionError) as exc:
        click.echo(f"FAIL {arg.label()}: {exc}", err=True)
        sys.exit(1)

    if result.early_return:
        click.echo(f"PASS {arg.label()} (invalid size rejected)")
        return
    click.echo(f"PASS {arg.label()} on {result.device}")
    if result.log_line:
        click.echo(result.log_line)


@click.command()
@click.option("--dtype", default="float32", show_default=True, help="float32 or float64")
@click.option("--device", default=None, help="Device, e.g. cpu, cuda, cuda:1")
def bad_arg(dtype: str, device: Optional[str]) -> None:
    """Check the status returned for each malformed argument."""
    from blascheck.arguments import Arguments
    from blascheck.exceptions import BlasCheckError, ConfigError
    from blascheck.validation import testing_spr2_bad_arg

    try:
        arg = Arguments(function="spr2_bad_arg", dtype=dtype, device=device)
    except ConfigError as exc:
        raise click.BadParameter(str(exc)) from exc

    try:
        testing_spr2_bad_arg(arg)
    except (BlasCheckError, AssertionError) as exc:
        click.echo(f"FAIL {arg.label()}: {exc}", err=True)
        sys.exit(1)
    click.echo(f"PASS {arg.label()}")
