"""Support ``python -m blascheck``.

Usage::

    python -m blascheck spr2 --n 100 --norm-check --timing
    python -m blascheck suite quick
    python -m blascheck status 3
"""

from __future__ import annotations


def main() -> None:
    from blascheck.cli import main as cli_main
    cli_main()


if __name__ == "__main__":
    main()
