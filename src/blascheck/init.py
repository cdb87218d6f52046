"""Reproducible test data.

Matrices and vectors are filled with integers drawn uniformly from [1, 10].
Small integers are exact in every supported precision, so the only rounding
in a correctness run comes from alpha and the accumulation itself.

The generator is explicit rather than global: a driver creates one
:class:`RandomGenerator`, resets it before the first buffer and lets it run
on for the rest, so every case sees the same data regardless of what ran
before it.
"""

from __future__ import annotations

from typing import Any

from blascheck._backend import get_torch
from blascheck.arguments import DEFAULT_SEED

# Range of generated values, inclusive
RANDOM_LOW = 1
RANDOM_HIGH = 10


class RandomGenerator:
    """Seeded CPU generator for test data."""

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        self.seed = seed
        self.generator = get_torch().Generator(device="cpu")
        self.reset()

    def reset(self) -> None:
        """Restart the sequence from the seed."""
        self.generator.manual_seed(self.seed)

    def integers(self, size: int, dtype: Any) -> Any:
        torch = get_torch()
        values = torch.randint(
            RANDOM_LOW, RANDOM_HIGH + 1, (size,), generator=self.generator, dtype=torch.int64
        )
        return values.to(dtype)


def blas_init(vector: Any, rng: RandomGenerator, seed_reset: bool = False) -> None:
    """Fill a host vector with random integers in [1, 10].

    Args:
        vector: :class:`blascheck.vectors.HostVector` to fill.
        rng: Generator to draw from.
        seed_reset: Restart ``rng`` from its seed first.
    """
    if seed_reset:
        rng.reset()
    vector.data.copy_(rng.integers(len(vector), vector.dtype))


def blas_init_nan(vector: Any) -> None:
    """Fill a host vector with NaN."""
    vector.data.fill_(float("nan"))
