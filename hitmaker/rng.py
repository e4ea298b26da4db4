# hitmaker/rng.py
from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")

# Spreads consecutive months apart in seed space.
MONTH_STRIDE = 10007


class TurnRng:
    """
    Explicit randomness handle for one game's turn.

    Seeded from (game seed, month) and counting every draw, so two games
    processed side by side never share or perturb each other's stream and a
    replay of the same turn sees the same numbers in the same order.
    """

    def __init__(self, seed: int, month: int):
        self.seed = int(seed)
        self.month = int(month)
        self.counter = 0
        self._rng = random.Random(self.seed + self.month * MONTH_STRIDE)

    def random(self) -> float:
        self.counter += 1
        return self._rng.random()

    def uniform(self, lo: float, hi: float) -> float:
        return lo + (hi - lo) * self.random()

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("cannot pick from an empty sequence")
        if len(items) == 1:
            return items[0]
        idx = int(self.random() * len(items))
        return items[min(idx, len(items) - 1)]

    def __repr__(self) -> str:
        return f"TurnRng(seed={self.seed}, month={self.month}, counter={self.counter})"
