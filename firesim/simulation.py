"""Simulation engine for FireSim

Projects one account balance year by year under randomized returns and
inflation, and repeats the projection across many independently seeded
paths (Monte Carlo).

Per-period transition
---------------------
    balance'  = starting_balance + contribution        (contribution first)
    growth    = balance' * return_rate
    ending    = balance' + growth
    C'        = C * (1 + inflation_rate)               (C = 1 before year 1)
    real      = ending / C'
    next contribution = contribution * (1 + contribution_growth_rate)

The path is computed as a fold over the period sequence with an immutable
state, so conservation (final = start + contributions + growth) holds by
construction of each step.

Design goals
------------
- Pure: output is a function of (params, n_paths, base_seed, volatilities).
- Explicit seeds: nothing here reads the clock; callers choose the seed.
- Independent paths: path i owns SeededRandom(base_seed + i).

Typical usage
-------------
>>> params = SimulationParams(
...     starting_assets=100_000,
...     annual_return=0.07,
...     initial_contribution=20_000,
...     contribution_growth_rate=0.05,
...     inflation_rate=0.025,
... )
>>> results = run_monte_carlo(params, 100, base_seed=42)
>>> len(results), results[0].years
(100, 30)
>>> engine = SimulationEngine(params, SimulationConfig(seed=42))
>>> engine.run().bands("real")[50][-1]
"""
from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from functools import partial, reduce
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import SimulationConfig
from .constants import (
    ANNUAL_RETURN_BOUNDS,
    CONTRIBUTION_GROWTH_BOUNDS,
    DEFAULT_DIAGNOSTIC_PERCENTILES,
    DEFAULT_INFLATION_VOLATILITY,
    DEFAULT_N_PATHS,
    DEFAULT_PERCENTILES,
    DEFAULT_RETURN_VOLATILITY,
    DEFAULT_YEARS,
    INFLATION_RATE_BOUNDS,
    MAX_N_PATHS,
    MAX_YEARS,
    VIEWS,
)
from .exceptions import InvalidParameterError, ValidationError
from .percentiles import (
    compute_percentiles,
    final_balance_summary,
    representative_paths,
)
from .returns import ConstrainedSampler
from .rng import RandomSource, SeededRandom
from .utils import check_integer, check_non_negative, check_range, geometric_mean, period_index

__all__ = [
    "SimulationParams",
    "YearRecord",
    "PathResult",
    "MonteCarloResult",
    "SimulationEngine",
    "simulate_path",
    "run_monte_carlo",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inputs and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SimulationParams:
    """
    Scenario inputs for one simulation call.

    Attributes
    ----------
    starting_assets : float
        Balance before the first year (>= 0).
    annual_return : float
        Target geometric annual return, e.g. 0.07.
    initial_contribution : float
        Contribution made at the start of year 1 (>= 0).
    contribution_growth_rate : float
        Yearly growth of the contribution, e.g. 0.05.
    inflation_rate : float
        Target compound inflation rate (>= 0).
    years : int, default 30
        Horizon in years (1..100).

    Raises
    ------
    InvalidParameterError
        On construction, if any field is out of bounds or non-finite.
    """

    starting_assets: float
    annual_return: float
    initial_contribution: float
    contribution_growth_rate: float
    inflation_rate: float
    years: int = DEFAULT_YEARS

    def __post_init__(self):
        years = check_integer("years", self.years)
        if not (1 <= years <= MAX_YEARS):
            raise InvalidParameterError(
                f"years must be in [1, {MAX_YEARS}], got {years}"
            )
        check_non_negative("starting_assets", self.starting_assets)
        check_non_negative("initial_contribution", self.initial_contribution)
        check_range("annual_return", self.annual_return, *ANNUAL_RETURN_BOUNDS)
        check_range(
            "contribution_growth_rate",
            self.contribution_growth_rate,
            *CONTRIBUTION_GROWTH_BOUNDS,
        )
        check_range("inflation_rate", self.inflation_rate, *INFLATION_RATE_BOUNDS)


@dataclass(frozen=True)
class YearRecord:
    """Outcome of one simulated year (period is 1-based)."""

    period: int
    starting_balance: float
    contribution: float
    return_rate: float
    inflation_rate: float
    growth: float
    ending_balance: float
    cumulative_inflation_factor: float
    real_ending_balance: float


@dataclass(frozen=True)
class PathResult:
    """One simulated trajectory plus its summary totals."""

    periods: Tuple[YearRecord, ...]
    final_balance: float
    total_contributions: float
    total_growth: float

    @property
    def years(self) -> int:
        return len(self.periods)

    @property
    def ending_balances(self) -> np.ndarray:
        return np.array([p.ending_balance for p in self.periods], dtype=float)

    @property
    def real_ending_balances(self) -> np.ndarray:
        return np.array([p.real_ending_balance for p in self.periods], dtype=float)

    @property
    def return_rates(self) -> np.ndarray:
        return np.array([p.return_rate for p in self.periods], dtype=float)

    @property
    def inflation_rates(self) -> np.ndarray:
        return np.array([p.inflation_rate for p in self.periods], dtype=float)

    @property
    def final_real_balance(self) -> float:
        return self.periods[-1].real_ending_balance if self.periods else 0.0

    def geometric_mean_return(self) -> float:
        """Realized geometric mean of the yearly returns."""
        return geometric_mean(self.return_rates)

    def geometric_mean_inflation(self) -> float:
        """Realized geometric mean of the yearly inflation rates."""
        return geometric_mean(self.inflation_rates)

    def to_frame(self) -> pd.DataFrame:
        """Per-year table indexed by period (diagnostics view)."""
        df = pd.DataFrame(
            [
                {
                    "starting_balance": p.starting_balance,
                    "contribution": p.contribution,
                    "return_rate": p.return_rate,
                    "inflation_rate": p.inflation_rate,
                    "growth": p.growth,
                    "ending_balance": p.ending_balance,
                    "cumulative_inflation_factor": p.cumulative_inflation_factor,
                    "real_ending_balance": p.real_ending_balance,
                }
                for p in self.periods
            ]
        )
        df.index = period_index(self.years)
        return df


# ---------------------------------------------------------------------------
# Single path
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _PathState:
    balance: float
    contribution: float
    cumulative_inflation: float
    total_contributions: float = 0.0
    total_growth: float = 0.0
    records: Tuple[YearRecord, ...] = field(default_factory=tuple)


def _advance(
    state: _PathState,
    step: Tuple[int, float, float],
    *,
    contribution_growth_rate: float,
) -> _PathState:
    period, return_rate, inflation_rate = step
    invested = state.balance + state.contribution
    growth = invested * return_rate
    ending = invested + growth
    cumulative = state.cumulative_inflation * (1.0 + inflation_rate)
    record = YearRecord(
        period=period,
        starting_balance=state.balance,
        contribution=state.contribution,
        return_rate=return_rate,
        inflation_rate=inflation_rate,
        growth=growth,
        ending_balance=ending,
        cumulative_inflation_factor=cumulative,
        real_ending_balance=ending / cumulative,
    )
    return _PathState(
        balance=ending,
        contribution=state.contribution * (1.0 + contribution_growth_rate),
        cumulative_inflation=cumulative,
        total_contributions=state.total_contributions + state.contribution,
        total_growth=state.total_growth + growth,
        records=state.records + (record,),
    )


def simulate_path(
    params: SimulationParams,
    rng: RandomSource,
    *,
    return_volatility: float = DEFAULT_RETURN_VOLATILITY,
    inflation_volatility: float = DEFAULT_INFLATION_VOLATILITY,
) -> PathResult:
    """
    Simulate one account over ``params.years`` periods.

    Returns are drawn first, then inflation, both from *rng*. Each sampler
    consumes exactly two uniforms per year (none for zero inflation), so the
    return sequence never depends on the inflation settings.

    Parameters
    ----------
    params : SimulationParams
        Scenario inputs.
    rng : RandomSource
        Generator owned by this path.
    return_volatility, inflation_volatility : float
        Log-space standard deviations for the two samplers.

    Returns
    -------
    PathResult
    """
    years = params.years
    returns = ConstrainedSampler.for_returns(return_volatility).sample(
        params.annual_return, years, rng
    )
    inflation = ConstrainedSampler.for_inflation(inflation_volatility).sample(
        params.inflation_rate, years, rng
    )

    steps = zip(range(1, years + 1), returns.tolist(), inflation.tolist())
    initial = _PathState(
        balance=float(params.starting_assets),
        contribution=float(params.initial_contribution),
        cumulative_inflation=1.0,
    )
    final = reduce(
        partial(_advance, contribution_growth_rate=params.contribution_growth_rate),
        steps,
        initial,
    )
    return PathResult(
        periods=final.records,
        final_balance=final.balance,
        total_contributions=final.total_contributions,
        total_growth=final.total_growth,
    )


# ---------------------------------------------------------------------------
# Monte Carlo
# ---------------------------------------------------------------------------

def _simulate_seeded(
    seed: int,
    params: SimulationParams,
    return_volatility: float,
    inflation_volatility: float,
) -> PathResult:
    """Worker entry point: one path with its own generator."""
    return simulate_path(
        params,
        SeededRandom(seed),
        return_volatility=return_volatility,
        inflation_volatility=inflation_volatility,
    )


def run_monte_carlo(
    params: SimulationParams,
    n_paths: int = DEFAULT_N_PATHS,
    *,
    base_seed: int,
    return_volatility: float = DEFAULT_RETURN_VOLATILITY,
    inflation_volatility: float = DEFAULT_INFLATION_VOLATILITY,
    max_workers: Optional[int] = None,
) -> List[PathResult]:
    """
    Simulate *n_paths* independent paths; path i uses seed ``base_seed + i``.

    Parameters
    ----------
    params : SimulationParams
        Scenario inputs shared by every path.
    n_paths : int, default 100
        Number of paths (1..10 000).
    base_seed : int
        Required. Reproducibility rests on it, so no clock-based default
        exists at this level.
    return_volatility, inflation_volatility : float
        Sampler volatilities.
    max_workers : int, optional
        When > 1, paths run in a process pool. Results are identical to the
        sequential run and keep path order.

    Returns
    -------
    list of PathResult, length n_paths
    """
    n_paths = check_integer("n_paths", n_paths)
    if not (1 <= n_paths <= MAX_N_PATHS):
        raise InvalidParameterError(
            f"n_paths must be in [1, {MAX_N_PATHS}], got {n_paths}"
        )
    base_seed = check_integer("base_seed", base_seed)
    check_non_negative("return_volatility", return_volatility)
    check_non_negative("inflation_volatility", inflation_volatility)

    logger.debug(
        "Running %d paths over %d years (base_seed=%d, workers=%s)",
        n_paths, params.years, base_seed, max_workers,
    )
    seeds = range(base_seed, base_seed + n_paths)
    worker = partial(
        _simulate_seeded,
        params=params,
        return_volatility=return_volatility,
        inflation_volatility=inflation_volatility,
    )

    if max_workers is not None and max_workers > 1 and n_paths > 1:
        chunksize = max(1, n_paths // (4 * max_workers))
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(worker, seeds, chunksize=chunksize))
    else:
        results = [worker(seed) for seed in seeds]

    logger.debug("Finished %d paths", len(results))
    return results


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonteCarloResult:
    """Paths of one run together with their nominal and real bands."""

    params: SimulationParams
    seed: int
    results: Tuple[PathResult, ...]
    nominal: Dict[float, np.ndarray]
    real: Dict[float, np.ndarray]
    percentiles: Tuple[float, ...] = DEFAULT_PERCENTILES

    @property
    def n_paths(self) -> int:
        return len(self.results)

    @property
    def years(self) -> int:
        return self.params.years

    @property
    def final_balances(self) -> np.ndarray:
        return np.array([r.final_balance for r in self.results], dtype=float)

    def bands(self, view: str = "real") -> Dict[float, np.ndarray]:
        """Percentile bands for ``"real"`` or ``"nominal"`` balances."""
        if view not in VIEWS:
            raise ValidationError(f"view must be one of {VIEWS}, got {view!r}")
        return self.real if view == "real" else self.nominal

    def representative_paths(
        self, ranks: Sequence[float] = DEFAULT_DIAGNOSTIC_PERCENTILES
    ) -> Dict[float, PathResult]:
        """Whole paths nearest the given final-balance ranks."""
        return representative_paths(self.results, ranks)

    def summary(self) -> pd.DataFrame:
        """Distribution of nominal and real final balances."""
        return final_balance_summary(self.results, self.percentiles)


class SimulationEngine:
    """High-level orchestrator: runs the Monte Carlo paths for one parameter
    set and reduces them to nominal and real percentile bands.
    """

    def __init__(self, params: SimulationParams, config: Optional[SimulationConfig] = None):
        self.params = params
        self.cfg = config if config is not None else SimulationConfig()

    def run(self, seed: Optional[int] = None) -> MonteCarloResult:
        """Run with *seed*, falling back to ``config.seed``."""
        seed = seed if seed is not None else self.cfg.seed
        if seed is None:
            raise InvalidParameterError(
                "A seed is required: pass seed= or set SimulationConfig.seed. "
                "Generate one at the call site if a random run is wanted."
            )
        results = run_monte_carlo(
            self.params,
            self.cfg.n_paths,
            base_seed=seed,
            return_volatility=self.cfg.return_volatility,
            inflation_volatility=self.cfg.inflation_volatility,
            max_workers=self.cfg.max_workers,
        )
        ranks = tuple(self.cfg.percentiles)
        return MonteCarloResult(
            params=self.params,
            seed=int(seed),
            results=tuple(results),
            nominal=compute_percentiles(results, ranks, use_real=False),
            real=compute_percentiles(results, ranks, use_real=True),
            percentiles=ranks,
        )
