"""``blascheck status``: translate a numeric status code."""

from __future__ import annotations

import click


@click.command()
@click.argument("code", type=int)
def status(code: int) -> None:
    """Print the name of a status code."""
    from blascheck.blas.types import status_to_string
    click.echo(status_to_string(code))
