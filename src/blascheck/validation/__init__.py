"""Correctness verification of the SPR2 routine.

Every check compares accelerator output against the host reference in
:mod:`blascheck.reference`; nothing here trusts the device result on its own.

Usage::

    from blascheck.validation import Spr2Verifier
    from blascheck.presets import get_preset

    verifier = Spr2Verifier(device="cuda")
    outcomes = verifier.run(get_preset("quick"))
    print(verifier.format_report(outcomes))
"""

from blascheck.validation.checks import (
    CheckResult,
    NormCheck,
    UnitCheck,
    norm_check_general,
    unit_check_general,
)
from blascheck.validation.spr2 import (
    CaseOutcome,
    Spr2Result,
    Spr2Verifier,
    testing_spr2,
    testing_spr2_bad_arg,
)

__all__ = [
    "CaseOutcome",
    "CheckResult",
    "NormCheck",
    "Spr2Result",
    "Spr2Verifier",
    "UnitCheck",
    "norm_check_general",
    "testing_spr2",
    "testing_spr2_bad_arg",
    "unit_check_general",
]
