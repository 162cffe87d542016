"""Deterministic random number generator shared by generation and spawning.

Every random decision in the project goes through a :class:`GameRNG` instance
that is passed explicitly to the code that needs it.  Seeding the instance makes
dungeon layouts and monster rosters fully reproducible.
"""

from __future__ import annotations

import random
from typing import Literal

import numpy as np

CoinSide = Literal["heads", "tails"]


class GameRNG:
    def __init__(self, seed: int | None = None) -> None:
        self.initial_seed: int = (
            seed if seed is not None else random.randint(0, 2**32 - 1)
        )
        self.rng = np.random.default_rng(self.initial_seed)

    def get_int(self, low: int, high: int) -> int:
        """Return an integer in the inclusive range ``[low, high]``."""
        if low > high:
            raise ValueError(f"Empty range [{low}, {high}]")
        return int(self.rng.integers(low, high, endpoint=True))

    def coin_flip(self) -> CoinSide:
        """Fair flip; picks corridor orientation and monster kind."""
        return "heads" if self.rng.random() < 0.5 else "tails"


__all__ = ["GameRNG"]
