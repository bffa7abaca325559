"""
Pytest configuration and fixtures for FireSim test suite.

This module provides reusable fixtures for testing all FireSim components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

from typing import List

import pytest

from firesim.config import SimulationConfig
from firesim.simulation import (
    MonteCarloResult,
    PathResult,
    SimulationEngine,
    SimulationParams,
    run_monte_carlo,
)


# ---------------------------------------------------------------------------
# Simulation Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


@pytest.fixture
def n_paths() -> int:
    """Standard number of Monte Carlo paths for tests."""
    return 100


# ---------------------------------------------------------------------------
# Parameter Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def scenario_params() -> SimulationParams:
    """
    Canonical 30-year scenario.

    Starting assets: 100,000
    Return: 7% geometric, contributions 20,000 growing 5%/year
    Inflation: 2.5%
    """
    return SimulationParams(
        starting_assets=100_000,
        annual_return=0.07,
        initial_contribution=20_000,
        contribution_growth_rate=0.05,
        inflation_rate=0.025,
        years=30,
    )


@pytest.fixture
def short_params() -> SimulationParams:
    """Five-year scenario for fast tests."""
    return SimulationParams(
        starting_assets=10_000,
        annual_return=0.05,
        initial_contribution=1_000,
        contribution_growth_rate=0.02,
        inflation_rate=0.02,
        years=5,
    )


# ---------------------------------------------------------------------------
# Result Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mc_paths(scenario_params, n_paths, seed) -> List[PathResult]:
    """Monte Carlo paths for the canonical scenario."""
    return run_monte_carlo(scenario_params, n_paths, base_seed=seed)


@pytest.fixture
def mc_result(scenario_params, n_paths, seed) -> MonteCarloResult:
    """Engine result (paths + nominal/real bands) for the canonical scenario."""
    config = SimulationConfig(n_paths=n_paths, seed=seed)
    return SimulationEngine(scenario_params, config).run()
