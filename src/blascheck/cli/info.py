"""``blascheck info``: show backends and devices."""

from __future__ import annotations

import click


@click.command()
def info() -> None:
    """Show detected backends and device properties."""
    from blascheck.cli._info import show_info
    click.echo(show_info())
