"""
Constrained stochastic rate generation for FireSim.

Mathematical Model
------------------
Yearly rates are log-normal around a target compound rate:

    L_i = ln(1 + target) + σ · z_i,      z_i ~ N(0, 1)   (Box-Muller)

then shifted by a common adjustment so that their sum is exact:

    adj = (n · ln(1 + target) - Σ L_i) / n
    r_i = exp(L_i + adj) - 1

Hence ∏(1 + r_i) = (1 + target)^n: every path realizes exactly the
requested geometric mean, while individual years keep their dispersion.

Inflation variant
-----------------
Sampled inflation rates are floored at zero. The floor is a known source
of upward bias: when any adjusted rate was negative, the realized
compound inflation exceeds the target and the exact-product property no
longer holds. The bias is kept on purpose; downstream diagnostics expect
it. A zero inflation target short-circuits to exact zeros.

Design principles
-----------------
- Two uniforms per period, drawn u1 then u2, so a sampler always consumes
  exactly 2n draws (or none for the zero-inflation shortcut).
- Order is significant: index 0 is the first period.
- Lognormal guarantee: r_i > -1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .constants import (
    DEFAULT_INFLATION_VOLATILITY,
    DEFAULT_RETURN_VOLATILITY,
    UNIFORM_FLOOR,
)
from .exceptions import InvalidParameterError
from .rng import RandomSource
from .utils import check_finite, check_non_negative

__all__ = [
    "ConstrainedSampler",
    "standard_normal",
    "randomized_returns",
    "randomized_inflation",
]


def standard_normal(rng: RandomSource) -> float:
    """
    One N(0, 1) variate from two uniforms (Box-Muller, cosine branch).

    ``u1`` is floored at UNIFORM_FLOOR before the logarithm, so a draw of
    exactly 0.0 yields a large but finite variate instead of an error.
    """
    u1 = max(rng.random(), UNIFORM_FLOOR)
    u2 = rng.random()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


@dataclass(frozen=True)
class ConstrainedSampler:
    """
    Log-normal rate sampler constrained to an exact compound target.

    Parameters
    ----------
    volatility : float
        Standard deviation σ of the log-rates (>= 0).
    floor_at_zero : bool, default False
        Clamp sampled rates at 0 (inflation). Breaks the exact-product
        guarantee whenever a clamp actually happens.
    zero_target_shortcut : bool, default False
        Return exact zeros, without drawing, when the target is 0.

    Examples
    --------
    >>> from firesim.rng import SeededRandom
    >>> sampler = ConstrainedSampler.for_returns()
    >>> r = sampler.sample(0.07, 30, SeededRandom(42))
    >>> round(float(np.prod(1 + r)) ** (1 / 30) - 1, 10)
    0.07
    """

    volatility: float
    floor_at_zero: bool = False
    zero_target_shortcut: bool = False

    def __post_init__(self):
        check_non_negative("volatility", self.volatility)

    @classmethod
    def for_returns(cls, volatility: float = DEFAULT_RETURN_VOLATILITY) -> "ConstrainedSampler":
        """Sampler for market returns: negative years allowed."""
        return cls(volatility=volatility)

    @classmethod
    def for_inflation(cls, volatility: float = DEFAULT_INFLATION_VOLATILITY) -> "ConstrainedSampler":
        """Sampler for inflation: floored at 0, zero target short-circuits."""
        return cls(volatility=volatility, floor_at_zero=True, zero_target_shortcut=True)

    def raw_log_rates(self, target: float, n: int, rng: RandomSource) -> np.ndarray:
        """Unadjusted log-rates L_i = ln(1 + target) + σ·z_i (2n draws)."""
        target_log = math.log1p(target)
        z = np.array([standard_normal(rng) for _ in range(n)], dtype=float)
        return target_log + self.volatility * z

    def sample(self, target: float, n: int, rng: RandomSource) -> np.ndarray:
        """
        Draw *n* period rates whose compounded product is (1 + target)^n.

        Parameters
        ----------
        target : float
            Target compound rate per period (> -1).
        n : int
            Number of periods (>= 1).
        rng : RandomSource
            Generator consumed sequentially (u1, u2 per period).

        Returns
        -------
        np.ndarray, shape (n,)
            Period rates in period order.
        """
        if n < 1:
            raise InvalidParameterError(f"n must be >= 1, got {n}")
        check_finite("target", target)
        if target <= -1.0:
            raise InvalidParameterError(
                f"target must be > -1 (a -100% rate has no logarithm), got {target}"
            )

        if self.zero_target_shortcut and target == 0:
            return np.zeros(n, dtype=float)

        target_log = math.log1p(target)
        log_rates = self.raw_log_rates(target, n, rng)
        adjustment = (n * target_log - log_rates.sum()) / n
        rates = np.expm1(log_rates + adjustment)

        if self.floor_at_zero:
            rates = np.maximum(rates, 0.0)
        return rates


def randomized_returns(
    target: float,
    n: int,
    rng: RandomSource,
    volatility: float = DEFAULT_RETURN_VOLATILITY,
) -> np.ndarray:
    """Yearly returns compounding exactly to *target* (never floored)."""
    return ConstrainedSampler.for_returns(volatility).sample(target, n, rng)


def randomized_inflation(
    target: float,
    n: int,
    rng: RandomSource,
    volatility: float = DEFAULT_INFLATION_VOLATILITY,
) -> np.ndarray:
    """Yearly inflation rates around *target*, floored at 0 (see module notes)."""
    return ConstrainedSampler.for_inflation(volatility).sample(target, n, rng)
