"""Logging for blascheck.

All modules log under the ``blascheck`` logger, which gets a single stderr
handler the first time any module asks for a logger.  What shows at each
level:

=========  ==============================================================
DEBUG      every driver step: staging, both SPR2 calls, downloads, checks
INFO       backend detection, device properties, timing log lines, suite
           PASS/FAIL lines
WARNING    requested GPU missing, running on the CPU instead (default)
ERROR      kernel failures mapped to a non-success status
=========  ==============================================================

``BLASCHECK_LOG_LEVEL`` picks the level at startup, ``BLASCHECK_LOG_VERBOSE=1``
adds timestamps and source locations.  :func:`set_log_level` (or
``blascheck --log-level``) changes it afterwards.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_ROOT = "blascheck"

_LOG_FORMAT = "[blascheck] %(levelname)s %(name)s: %(message)s"
_LOG_FORMAT_VERBOSE = (
    "[blascheck %(asctime)s] %(levelname)s %(name)s (%(filename)s:%(lineno)d): %(message)s"
)

_ENV_LOG_LEVEL = "BLASCHECK_LOG_LEVEL"
_ENV_LOG_VERBOSE = "BLASCHECK_LOG_VERBOSE"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_configured = False


def _env_level() -> int:
    # Unknown values fall back to WARNING rather than breaking import
    value = os.environ.get(_ENV_LOG_LEVEL, "").strip().upper()
    return _LEVELS.get(value, logging.WARNING)


def _make_handler() -> logging.Handler:
    verbose = os.environ.get(_ENV_LOG_VERBOSE, "0").strip() == "1"
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT_VERBOSE if verbose else _LOG_FORMAT))
    return handler


def _configure() -> logging.Logger:
    global _configured  # noqa: PLW0603
    root = logging.getLogger(_ROOT)
    if not _configured:
        root.setLevel(_env_level())
        # keep a handler a test fixture or the application installed
        if not root.handlers:
            root.addHandler(_make_handler())
        _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (normally ``__name__``)."""
    _configure()
    return logging.getLogger(name)


def set_log_level(level: Optional[str] = None) -> None:
    """Set the ``blascheck`` log level by name; None restores the env default.

    Raises:
        ValueError: ``level`` is not a standard level name.
    """
    root = _configure()
    if level is None:
        root.setLevel(_env_level())
        return
    try:
        root.setLevel(_LEVELS[level.upper()])
    except KeyError:
        raise ValueError(
            f"Unknown log level '{level}'. Supported: {list(_LEVELS)}"
        ) from None
