"""
Global constants for FireSim.

Purpose
-------
Centralizes default values and magic numbers used throughout the FireSim
codebase, so that the sampler, the CLI and the configuration models all
agree on the same defaults.

Usage
-----
>>> from firesim.constants import DEFAULT_N_PATHS, DEFAULT_PERCENTILES
>>>
>>> results = run_monte_carlo(params, DEFAULT_N_PATHS, base_seed=42)
>>> bands = compute_percentiles(results, DEFAULT_PERCENTILES)

Categories
----------
- Generator: Mulberry32 constants
- Sampling: volatilities and numeric guards
- Simulation: horizons and path counts
- Parameters: default scenario values and accepted bounds
- Reporting: percentile ranks and views
- Plotting: figure sizes, colors, transparency values
"""

from typing import Dict, Tuple

__all__ = [
    # Generator
    "UINT32_MASK",
    "UINT32_RANGE",
    "MULBERRY32_INCREMENT",
    # Sampling
    "DEFAULT_RETURN_VOLATILITY",
    "DEFAULT_INFLATION_VOLATILITY",
    "UNIFORM_FLOOR",
    # Simulation
    "DEFAULT_YEARS",
    "MAX_YEARS",
    "DEFAULT_N_PATHS",
    "MAX_N_PATHS",
    # Parameters
    "DEFAULT_STARTING_ASSETS",
    "DEFAULT_ANNUAL_RETURN",
    "DEFAULT_INITIAL_CONTRIBUTION",
    "DEFAULT_CONTRIBUTION_GROWTH_RATE",
    "DEFAULT_INFLATION_RATE",
    "ANNUAL_RETURN_BOUNDS",
    "CONTRIBUTION_GROWTH_BOUNDS",
    "INFLATION_RATE_BOUNDS",
    # Reporting
    "DEFAULT_PERCENTILES",
    "DEFAULT_DIAGNOSTIC_PERCENTILES",
    "VIEWS",
    "DEFAULT_VIEW",
    # Plotting
    "DEFAULT_FIGSIZE",
    "DEFAULT_FIGSIZE_TALL",
    "DEFAULT_ALPHA_OUTER_BAND",
    "DEFAULT_ALPHA_INNER_BAND",
    "DEFAULT_LINEWIDTH_THICK",
    "PERCENTILE_COLORS",
]


# =============================================================================
# Generator (Mulberry32)
# =============================================================================

UINT32_MASK: int = 0xFFFFFFFF
"""Mask reducing Python integers to unsigned 32-bit words."""

UINT32_RANGE: float = 4294967296.0
"""2**32, the divisor normalizing generator output into [0, 1)."""

MULBERRY32_INCREMENT: int = 0x6D2B79F5
"""Additive increment applied to the generator state on every draw."""


# =============================================================================
# Sampling
# =============================================================================

DEFAULT_RETURN_VOLATILITY: float = 0.30
"""Standard deviation of yearly log-returns around the target."""

DEFAULT_INFLATION_VOLATILITY: float = 0.015
"""Standard deviation of yearly log-inflation around the target."""

UNIFORM_FLOOR: float = 1e-12
"""Smallest uniform fed to ln() in the Box-Muller transform.

A draw of exactly 0.0 is possible from a 32-bit generator; flooring keeps
the normal variate finite (|z| <= ~7.4).
"""


# =============================================================================
# Simulation
# =============================================================================

DEFAULT_YEARS: int = 30
"""Default projection horizon in years."""

MAX_YEARS: int = 100
"""Longest supported horizon."""

DEFAULT_N_PATHS: int = 100
"""Default number of Monte Carlo paths."""

MAX_N_PATHS: int = 10_000
"""Largest number of Monte Carlo paths accepted by the runner."""


# =============================================================================
# Parameters
# =============================================================================

DEFAULT_STARTING_ASSETS: float = 100_000.0
DEFAULT_ANNUAL_RETURN: float = 0.07
DEFAULT_INITIAL_CONTRIBUTION: float = 20_000.0
DEFAULT_CONTRIBUTION_GROWTH_RATE: float = 0.05
DEFAULT_INFLATION_RATE: float = 0.025

ANNUAL_RETURN_BOUNDS: Tuple[float, float] = (-0.5, 1.0)
"""Accepted range for the target geometric annual return."""

CONTRIBUTION_GROWTH_BOUNDS: Tuple[float, float] = (-0.5, 0.5)
"""Accepted range for the yearly contribution growth rate."""

INFLATION_RATE_BOUNDS: Tuple[float, float] = (0.0, 0.5)
"""Accepted range for the target compound inflation rate."""


# =============================================================================
# Reporting
# =============================================================================

DEFAULT_PERCENTILES: Tuple[int, ...] = (10, 25, 50, 75, 90)
"""Default percentile ranks for band aggregation."""

DEFAULT_DIAGNOSTIC_PERCENTILES: Tuple[int, ...] = (10, 50, 90)
"""Ranks used to pick representative paths for diagnostics."""

VIEWS: Tuple[str, ...] = ("real", "nominal")
"""Balance views: inflation-adjusted or nominal."""

DEFAULT_VIEW: str = "real"
"""View shown when none is requested."""


# =============================================================================
# Plotting Defaults
# =============================================================================

DEFAULT_FIGSIZE: Tuple[int, int] = (14, 7)
"""Default figure size (width, height) in inches for band charts."""

DEFAULT_FIGSIZE_TALL: Tuple[int, int] = (14, 10)
"""Figure size for the two-panel path diagnostics chart."""

DEFAULT_ALPHA_OUTER_BAND: float = 0.15
"""Alpha for the 10th-90th percentile fill."""

DEFAULT_ALPHA_INNER_BAND: float = 0.30
"""Alpha for the 25th-75th percentile fill."""

DEFAULT_LINEWIDTH_THICK: float = 2.5
"""Line width for the median line."""

PERCENTILE_COLORS: Dict[int, str] = {
    10: "#ea580c",
    25: "#d97706",
    50: "#2563eb",
    75: "#059669",
    90: "#16a34a",
}
"""Line colors per canonical percentile rank."""
