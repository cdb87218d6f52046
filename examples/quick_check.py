#!/usr/bin/env python3
"""Demo: check and time SPR2 on whatever accelerator is present.

Runs on any machine; without a GPU the routine runs on the CPU:

    pip install -e .  # from the blascheck repo root
    python examples/quick_check.py

You'll see:
1. The detected backends and the device the cases run on
2. The invalid-argument checks
3. One checked case per fill mode, with its timing log line
4. A short suite report
"""

from __future__ import annotations

import sys

import blascheck
from blascheck import Arguments, Spr2Verifier, testing_spr2, testing_spr2_bad_arg
from blascheck.presets import get_preset

print(f"blascheck v{blascheck.__version__}")
print(f"Detected backends: {[b.value for b in blascheck.detect_backends()]}")
print()

# Step 1: malformed calls must be rejected with the right status
testing_spr2_bad_arg(Arguments(function="spr2_bad_arg"))
print("Invalid-argument statuses: OK\n")

# Step 2: both fills, both pointer modes, checked and timed
for uplo in ("U", "L"):
    result = testing_spr2(Arguments(N=1000, uplo=uplo, norm_check=True, timing=True))
    print(f"spr2 uplo={uplo} on {result.device}")
    print(result.log_line)
    print()

# Step 3: the quick preset
verifier = Spr2Verifier()
outcomes = verifier.run(get_preset("quick"))
print(verifier.format_report(outcomes))
sys.exit(0 if all(o.passed for o in outcomes) else 1)
