"""
Deterministic uniform generator for FireSim.

Mathematical Model
------------------
Mulberry32: a 32-bit state advanced by an additive increment, followed by
an XOR-shift / multiply mix of the new state:

    s   <- (s + 0x6D2B79F5)                        mod 2^32
    t   <- (s ^ (s >> 15)) * (s | 1)               mod 2^32
    t   <- (t + (t ^ (t >> 7)) * (t | 61)) ^ t     mod 2^32
    u   <- (t ^ (t >> 14)) / 2^32                  in [0, 1)

All arithmetic is done on Python integers masked to 32 bits, so the
sequence for a given seed is identical on every platform. This is what
makes a Monte Carlo run shareable through its seed alone.

Design principles
-----------------
- One generator per path: instances are stateful and must not be shared
  between concurrently running paths.
- Explicit seeds only: the generator never reads the clock.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from .constants import MULBERRY32_INCREMENT, UINT32_MASK, UINT32_RANGE
from .utils import check_integer

__all__ = ["RandomSource", "SeededRandom"]


@runtime_checkable
class RandomSource(Protocol):
    """Anything producing uniforms in [0, 1) through ``random()``."""

    def random(self) -> float:
        ...


class SeededRandom:
    """
    Reproducible uniform [0, 1) generator seeded by an integer.

    Parameters
    ----------
    seed : int
        Any Python integer; reduced modulo 2^32 (negative seeds wrap as
        two's complement).

    Examples
    --------
    >>> a, b = SeededRandom(42), SeededRandom(42)
    >>> [a.random() for _ in range(3)] == [b.random() for _ in range(3)]
    True
    >>> 0.0 <= SeededRandom(7)() < 1.0
    True
    """

    __slots__ = ("_seed", "_state")

    def __init__(self, seed: int):
        self._seed = check_integer("seed", seed)
        self._state = self._seed & UINT32_MASK

    @property
    def seed(self) -> int:
        """Seed the generator was constructed with."""
        return self._seed

    @property
    def state(self) -> int:
        """Current 32-bit internal state."""
        return self._state

    def random(self) -> float:
        """Advance the state and return the next uniform in [0, 1)."""
        self._state = (self._state + MULBERRY32_INCREMENT) & UINT32_MASK
        s = self._state
        t = ((s ^ (s >> 15)) * (s | 1)) & UINT32_MASK
        t = ((t + (((t ^ (t >> 7)) * (t | 61)) & UINT32_MASK)) & UINT32_MASK) ^ t
        return ((t ^ (t >> 14)) & UINT32_MASK) / UINT32_RANGE

    __call__ = random

    def uniforms(self, n: int) -> np.ndarray:
        """Next *n* draws as a float array, in draw order."""
        return np.fromiter((self.random() for _ in range(int(n))), dtype=float, count=int(n))

    def __repr__(self) -> str:
        return f"SeededRandom(seed={self._seed}, state=0x{self._state:08X})"
