"""``blascheck suite``: run a named preset or a JSON case file."""

from __future__ import annotations

import sys
from typing import Optional

import click


@click.command()
@click.argument("name", required=False, default="quick")
@click.option("--file", "case_file", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Load cases from a JSON file instead of a preset")
@click.option("--device", default=None, help="Run every case on this device")
@click.option("--csv", "csv_file", default=None, help="Export timing results to CSV file")
def suite(name: str, case_file: Optional[str], device: Optional[str], csv_file: Optional[str]) -> None:
    """Run a case list (bad_arg, quick, pre_checkin, nightly) and report."""
    from blascheck.arguments import load_cases
    from blascheck.bench import BenchReport
    from blascheck.exceptions import ConfigError
    from blascheck.presets import get_preset
    from blascheck.validation import Spr2Verifier

    try:
        if case_file:
            cases = load_cases(case_file)
            title = case_file
        else:
            cases = get_preset(name)
            title = name
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc

    verifier = Spr2Verifier(device=device)
    click.echo(f"Running {len(cases)} SPR2 case(s) from {title}...\n")
    outcomes = verifier.run(cases)
    click.echo(verifier.format_report(outcomes))

    timed = [o.result for o in outcomes
             if o.passed and o.result is not None and o.result.gpu_time_us is not None]
    if timed:
        report = BenchReport(title=f"SPR2 timing: {title}",
                             results=[r.to_bench_result() for r in timed])
        click.echo("")
        click.echo(report.report())
        if csv_file:
            with open(csv_file, "w", newline="") as f:
                f.write(report.to_csv())
            click.echo(f"\nResults exported to {csv_file}")
    elif csv_file:
        click.echo("\nNo timed cases; nothing exported.")

    if any(not o.passed for o in outcomes):
        sys.exit(1)
