"""
Type definitions for FireSim.

Purpose
-------
Provides TypedDict definitions for the JSON shapes FireSim writes and
reads, so serialization code and its callers agree on key names.

Type Definitions
----------------
SimulationParamsDict
    Scenario parameters: {"starting_assets", "annual_return", ...}

YearRecordDict
    One simulated year as written to result files.

PathResultDict
    One path: {"periods", "final_balance", "total_contributions", ...}

ResultFileDict
    Full result file: parameters, seed, bands, summary and optional paths.
"""

from typing import Dict, List

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "SimulationParamsDict",
    "YearRecordDict",
    "PathResultDict",
    "ResultFileDict",
]


class SimulationParamsDict(TypedDict):
    """
    Scenario parameters in snake_case, as stored in parameter files.

    Examples
    --------
    >>> params: SimulationParamsDict = {
    ...     "starting_assets": 100_000.0,
    ...     "annual_return": 0.07,
    ...     "initial_contribution": 20_000.0,
    ...     "contribution_growth_rate": 0.05,
    ...     "inflation_rate": 0.025,
    ...     "years": 30,
    ... }
    """

    starting_assets: float
    annual_return: float
    initial_contribution: float
    contribution_growth_rate: float
    inflation_rate: float
    years: int


class YearRecordDict(TypedDict):
    """One simulated year; period is 1-based."""

    period: int
    starting_balance: float
    contribution: float
    return_rate: float
    inflation_rate: float
    growth: float
    ending_balance: float
    cumulative_inflation_factor: float
    real_ending_balance: float


class PathResultDict(TypedDict):
    """
    One simulated path.

    Attributes
    ----------
    seed : int
        Seed of the generator that produced the path.
    periods : list of YearRecordDict
        Per-year records in period order.
    """

    seed: int
    final_balance: float
    final_real_balance: float
    total_contributions: float
    total_growth: float
    periods: List[YearRecordDict]


class ResultFileDict(TypedDict):
    """
    Monte Carlo result file.

    Bands are keyed by the percentile rank rendered as a string ("10",
    "50", ...) because JSON object keys are strings.
    """

    schema_version: str
    params: SimulationParamsDict
    seed: int
    n_paths: int
    percentiles: List[float]
    bands: Dict[str, Dict[str, List[float]]]
    summary: Dict[str, Dict[str, float]]
    paths: NotRequired[List[PathResultDict]]
