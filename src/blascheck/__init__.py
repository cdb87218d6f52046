"""blascheck: correctness and performance harness for an accelerated SPR2.

SPR2 is the symmetric packed rank-2 update

    A := alpha * x * y**T + alpha * y * x**T + A

The harness stages reproducible inputs, runs the routine on the accelerator
under both scalar calling conventions (alpha read from host memory and alpha
read from device memory), checks each result against an independent host
reference, and times hot calls between two stream synchronizations.

Layout
------

``blascheck.blas``
    The routine under test, a PyTorch binding with vendor-style status codes.
``blascheck.validation``
    Drivers (:func:`testing_spr2`, :func:`testing_spr2_bad_arg`), comparators
    and the suite runner.
``blascheck.reference``
    Host reference implementation.
``blascheck.presets``
    Named case lists (``quick``, ``pre_checkin``, ``nightly``, ``bad_arg``).

Quick start::

    from blascheck import Arguments, testing_spr2

    result = testing_spr2(Arguments(N=100, norm_check=True, timing=True))
    print(result.log_line)

Environment Variables
---------------------
``BLASCHECK_DEVICE``
    Force a device, e.g. ``cpu`` or ``cuda:1``.
``BLASCHECK_LOG_LEVEL``
    ``INFO`` shows timing lines, ``DEBUG`` every driver step.  Default:
    ``WARNING``.
``BLASCHECK_LOG_VERBOSE``
    Set to ``1`` for timestamps and source locations in log lines.
"""

from __future__ import annotations

__version__ = "0.3.0"

from blascheck._backend import Backend, detect_backends, has_cuda, has_gpu, has_rocm, preferred_backend
from blascheck._logging import set_log_level
from blascheck.arguments import ArgumentModel, Arguments, load_cases
from blascheck.validation import Spr2Verifier, testing_spr2, testing_spr2_bad_arg

__all__ = [
    "ArgumentModel",
    "Arguments",
    "Backend",
    "Spr2Verifier",
    "__version__",
    "detect_backends",
    "has_cuda",
    "has_gpu",
    "has_rocm",
    "load_cases",
    "preferred_backend",
    "set_log_level",
    "testing_spr2",
    "testing_spr2_bad_arg",
]
