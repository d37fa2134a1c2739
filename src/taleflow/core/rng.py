"""Deterministic RNG used by story scripts."""
from __future__ import annotations

from random import Random


class RNG:
    """Wrapper around random.Random backing ``Math.random`` in scripts.

    Passing a seed makes a playthrough reproducible; ``None`` seeds from the OS.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._seed = seed
        self._random = Random(seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def random(self) -> float:
        """Return the next random floating point number in the range [0.0, 1.0)."""
        return self._random.random()
