"""CLI package for blascheck.

Subcommands are registered from separate modules.

Usage::

    blascheck spr2 --n 100 --incx -2 --uplo L --norm-check --timing
    blascheck bad-arg --dtype float64
    blascheck suite quick --device cuda
    blascheck suite nightly --csv nightly.csv
    blascheck info
    blascheck status 3
"""

from __future__ import annotations

import click

from blascheck._logging import get_logger, set_log_level

logger = get_logger(__name__)


@click.group()
@click.version_option(package_name="blascheck")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Override BLASCHECK_LOG_LEVEL")
def main(log_level: str) -> None:
    """blascheck: verify and time an accelerated SPR2."""
    if log_level:
        set_log_level(log_level)


# Register subcommands from separate modules
from blascheck.cli.spr2 import bad_arg, spr2  # noqa: E402
from blascheck.cli.suite import suite  # noqa: E402
from blascheck.cli.info import info  # noqa: E402
from blascheck.cli.status import status  # noqa: E402

main.add_command(spr2)
main.add_command(bad_arg, name="bad-arg")
main.add_command(suite)
main.add_command(info)
main.add_command(status)
