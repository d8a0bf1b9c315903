"""
Seeded random source shared by the match simulator, stat generation and demo seeding.
Every draw a simulation makes goes through one of the named methods below, so the
draw order (and therefore the result for a given seed) is fixed by the call sites.
"""
from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """Deterministic draws for one simulation run. Same seed, same sequence."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def chance(self, p: float) -> bool:
        """True with probability p (one uniform draw)."""
        return self._rng.random() < p

    def pick(self, options: Sequence[T]) -> T:
        return self._rng.choices(options)[0]

    def weighted_pick(self, options: Sequence[T], weights: Sequence[float]) -> T:
        return self._rng.choices(options, weights=weights)[0]

    def between(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends included."""
        return self._rng.randint(low, high)

    def distinct_indices(self, n: int, k: int) -> set[int]:
        """k different indices out of range(n), e.g. which sets the losing side takes."""
        return set(self._rng.sample(range(n), k))

    def normal(self, sigma: float = 1.0) -> float:
        """Zero-centred gaussian noise."""
        return self._rng.gauss(0.0, sigma)
