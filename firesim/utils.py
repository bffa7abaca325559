"""General utilities for FireSim

Contents
--------
- Validation helpers (raise InvalidParameterError)
- Rate helpers (geometric mean of a rate path)
- Index helpers (period index for DataFrames)
- Display formatters (currency, percent)
- Matplotlib formatters (currency_axis_formatter)
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .exceptions import InvalidParameterError

__all__ = [
    # Validation
    "check_finite",
    "check_non_negative",
    "check_range",
    "check_integer",
    # Rates
    "geometric_mean",
    # Index
    "period_index",
    # Display
    "format_currency",
    "format_percent",
    # Matplotlib formatters
    "currency_axis_formatter",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_finite(name: str, value: float) -> None:
    """Raise if *value* is NaN or infinite."""
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite (got {value}).")


def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict) or non-finite."""
    check_finite(name, value)
    if value < 0:
        raise InvalidParameterError(f"{name} must be non-negative (got {value}).")


def check_range(name: str, value: float, low: float, high: float) -> None:
    """Raise unless low <= *value* <= high."""
    check_finite(name, value)
    if not (low <= value <= high):
        raise InvalidParameterError(
            f"{name} must be in [{low}, {high}] (got {value})."
        )


def check_integer(name: str, value: object) -> int:
    """Return *value* as int, rejecting floats, strings and bools."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidParameterError(
            f"{name} must be an integer (got {value!r} of type {type(value).__name__})."
        )
    return int(value)


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------

def geometric_mean(rates: Sequence[float] | np.ndarray) -> float:
    """Constant rate whose compounding reproduces the path: (prod(1+r))^(1/n) - 1.

    Computed in log space to stay accurate over long horizons.
    Returns 0.0 for an empty path.
    """
    r = np.asarray(rates, dtype=float)
    if r.size == 0:
        return 0.0
    return float(np.expm1(np.log1p(r).sum() / r.size))


# ---------------------------------------------------------------------------
# Index helpers
# ---------------------------------------------------------------------------

def period_index(years: int) -> pd.RangeIndex:
    """1-based period index (1..years) named ``period``."""
    return pd.RangeIndex(1, int(years) + 1, name="period")


# ---------------------------------------------------------------------------
# Display formatters
# ---------------------------------------------------------------------------

def format_currency(value: float) -> str:
    """
    Format a balance for summaries and diagnostics tables.

    Values of a million or more are shown in millions with two decimals,
    thousands are shown without decimals, smaller amounts as whole dollars.

    Examples
    --------
    >>> format_currency(1_234_567)
    '$1.23M'
    >>> format_currency(45_600)
    '$46K'
    >>> format_currency(512.4)
    '$512'
    """
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:.0f}"


def format_percent(value: float, decimals: int = 1) -> str:
    """
    Format a fractional rate as a percentage.

    Examples
    --------
    >>> format_percent(0.07)
    '7.0%'
    >>> format_percent(-0.1234, decimals=2)
    '-12.34%'
    """
    return f"{value * 100:.{decimals}f}%"


# ---------------------------------------------------------------------------
# Matplotlib formatters
# ---------------------------------------------------------------------------

def currency_axis_formatter(x: float, pos: Optional[int] = None) -> str:
    """
    Format axis ticks as compact currency for matplotlib FuncFormatter.

    Slightly coarser than format_currency(): millions keep one decimal.

    Parameters
    ----------
    x : float
        Tick value (in dollars).
    pos : int, optional
        Tick position (unused, required by FuncFormatter signature).

    Examples
    --------
    >>> from matplotlib.ticker import FuncFormatter
    >>> ax.yaxis.set_major_formatter(FuncFormatter(currency_axis_formatter))
    >>> currency_axis_formatter(2_500_000)
    '$2.5M'
    """
    if x >= 1_000_000:
        return f"${x / 1_000_000:.1f}M"
    if x >= 1_000:
        return f"${x / 1_000:.0f}K"
    return f"${x:.0f}"
