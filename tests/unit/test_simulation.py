"""
Unit tests for simulation.py module.

Tests single-path accounting, the Monte Carlo runner and the engine:
- SimulationParams validation
- simulate_path() conservation and contribution schedule
- run_monte_carlo() seeding, determinism and parallel execution
- SimulationEngine / MonteCarloResult bands and summaries
"""

import numpy as np
import pandas as pd
import pytest

from firesim.config import SimulationConfig
from firesim.exceptions import InvalidParameterError, ValidationError
from firesim.rng import SeededRandom
from firesim.simulation import (
    MonteCarloResult,
    PathResult,
    SimulationEngine,
    SimulationParams,
    run_monte_carlo,
    simulate_path,
)


# ============================================================================
# PARAMETER TESTS
# ============================================================================

class TestSimulationParams:
    """Test SimulationParams validation."""

    def test_default_years(self):
        """Test years defaults to 30."""
        params = SimulationParams(100_000, 0.07, 20_000, 0.05, 0.025)
        assert params.years == 30

    def test_frozen(self, scenario_params):
        """Test parameters are immutable."""
        with pytest.raises(AttributeError):
            scenario_params.years = 10

    @pytest.mark.parametrize("years", [0, -1, 101])
    def test_years_out_of_range(self, years):
        """Test years outside [1, 100] raises."""
        with pytest.raises(InvalidParameterError, match="years"):
            SimulationParams(0, 0.07, 0, 0.0, 0.0, years=years)

    def test_years_must_be_integer(self):
        """Test fractional years raises."""
        with pytest.raises(InvalidParameterError, match="integer"):
            SimulationParams(0, 0.07, 0, 0.0, 0.0, years=10.5)

    def test_negative_assets_raises(self):
        """Test negative starting assets raises."""
        with pytest.raises(InvalidParameterError, match="starting_assets"):
            SimulationParams(-1, 0.07, 0, 0.0, 0.0)

    def test_negative_contribution_raises(self):
        """Test negative contribution raises."""
        with pytest.raises(InvalidParameterError, match="initial_contribution"):
            SimulationParams(0, 0.07, -5, 0.0, 0.0)

    def test_nan_return_raises(self):
        """Test non-finite return raises."""
        with pytest.raises(InvalidParameterError):
            SimulationParams(0, float("nan"), 0, 0.0, 0.0)

    def test_negative_inflation_raises(self):
        """Test negative inflation raises."""
        with pytest.raises(InvalidParameterError, match="inflation_rate"):
            SimulationParams(0, 0.07, 0, 0.0, -0.01)


# ============================================================================
# SINGLE PATH TESTS
# ============================================================================

class TestSimulatePath:
    """Test simulate_path()."""

    def test_length(self, scenario_params, seed):
        """Test one record per year, periods numbered from 1."""
        path = simulate_path(scenario_params, SeededRandom(seed))
        assert isinstance(path, PathResult)
        assert path.years == 30
        assert [p.period for p in path.periods] == list(range(1, 31))

    def test_conservation(self, scenario_params, seed):
        """Test final = starting assets + contributions + growth."""
        path = simulate_path(scenario_params, SeededRandom(seed))
        expected = scenario_params.starting_assets + path.total_contributions + path.total_growth
        assert path.final_balance == pytest.approx(expected, rel=1e-9)

    def test_balances_chain(self, scenario_params, seed):
        """Test each year starts where the previous one ended."""
        path = simulate_path(scenario_params, SeededRandom(seed))
        assert path.periods[0].starting_balance == scenario_params.starting_assets
        for prev, cur in zip(path.periods, path.periods[1:]):
            assert cur.starting_balance == prev.ending_balance

    def test_contribution_added_before_growth(self, scenario_params, seed):
        """Test growth applies to balance plus contribution."""
        path = simulate_path(scenario_params, SeededRandom(seed))
        for p in path.periods:
            assert p.growth == pytest.approx((p.starting_balance + p.contribution) * p.return_rate)
            assert p.ending_balance == pytest.approx(p.starting_balance + p.contribution + p.growth)

    def test_contribution_schedule(self, scenario_params, seed):
        """Test contributions grow geometrically from the initial amount."""
        path = simulate_path(scenario_params, SeededRandom(seed))
        expected = [20_000 * 1.05 ** t for t in range(30)]
        np.testing.assert_allclose([p.contribution for p in path.periods], expected, rtol=1e-12)
        assert path.total_contributions == pytest.approx(sum(expected), rel=1e-12)

    def test_real_balance_deflated(self, scenario_params, seed):
        """Test real balance equals nominal over cumulative inflation."""
        path = simulate_path(scenario_params, SeededRandom(seed))
        cumulative = np.cumprod(1 + path.inflation_rates)
        np.testing.assert_allclose(path.real_ending_balances, path.ending_balances / cumulative)
        assert path.final_real_balance == path.periods[-1].real_ending_balance

    def test_realized_geometric_means(self, scenario_params, seed):
        """Test realized return matches the target; inflation never falls short."""
        path = simulate_path(scenario_params, SeededRandom(seed))
        assert path.geometric_mean_return() == pytest.approx(0.07, rel=1e-9)
        assert path.geometric_mean_inflation() >= 0.025 - 1e-12

    def test_zero_volatility_is_deterministic_compounding(self):
        """Test zero volatility reproduces the closed-form balance."""
        params = SimulationParams(1_000, 0.10, 100, 0.0, 0.0, years=3)
        path = simulate_path(params, SeededRandom(1), return_volatility=0.0)
        balance = 1_000.0
        for _ in range(3):
            balance = (balance + 100) * 1.10
        assert path.final_balance == pytest.approx(balance, rel=1e-12)

    def test_zero_inflation_real_equals_nominal(self, seed):
        """Test zero inflation leaves real and nominal balances equal."""
        params = SimulationParams(1_000, 0.07, 100, 0.0, 0.0, years=10)
        path = simulate_path(params, SeededRandom(seed))
        np.testing.assert_array_equal(path.real_ending_balances, path.ending_balances)

    def test_returns_independent_of_inflation(self, seed):
        """Test returns are drawn first, so inflation settings cannot change them."""
        a = SimulationParams(1_000, 0.07, 100, 0.0, 0.0, years=10)
        b = SimulationParams(1_000, 0.07, 100, 0.0, 0.04, years=10)
        pa = simulate_path(a, SeededRandom(seed))
        pb = simulate_path(b, SeededRandom(seed))
        np.testing.assert_array_equal(pa.return_rates, pb.return_rates)

    def test_single_year(self, seed):
        """Test a one-year horizon grows at exactly the target."""
        params = SimulationParams(1_000, 0.07, 0, 0.0, 0.02, years=1)
        path = simulate_path(params, SeededRandom(seed))
        assert path.final_balance == pytest.approx(1_070.0, rel=1e-12)
        assert path.periods[0].inflation_rate == pytest.approx(0.02, rel=1e-12)

    def test_to_frame(self, short_params, seed):
        """Test per-year DataFrame is indexed by period."""
        df = simulate_path(short_params, SeededRandom(seed)).to_frame()
        assert isinstance(df, pd.DataFrame)
        assert list(df.index) == [1, 2, 3, 4, 5]
        assert df.index.name == "period"
        assert "real_ending_balance" in df.columns


# ============================================================================
# MONTE CARLO TESTS
# ============================================================================

class TestRunMonteCarlo:
    """Test run_monte_carlo()."""

    def test_path_count(self, mc_paths, n_paths):
        """Test one result per path."""
        assert len(mc_paths) == n_paths

    def test_path_i_uses_seed_plus_i(self, scenario_params, seed):
        """Test path i equals a single path seeded with base_seed + i."""
        paths = run_monte_carlo(scenario_params, 5, base_seed=seed)
        for i, path in enumerate(paths):
            single = simulate_path(scenario_params, SeededRandom(seed + i))
            assert path == single

    def test_deterministic(self, short_params, seed):
        """Test same base seed, same paths."""
        a = run_monte_carlo(short_params, 20, base_seed=seed)
        b = run_monte_carlo(short_params, 20, base_seed=seed)
        assert a == b

    def test_paths_differ(self, mc_paths):
        """Test paths are not identical to one another."""
        finals = {p.final_balance for p in mc_paths}
        assert len(finals) == len(mc_paths)

    def test_parallel_matches_sequential(self, short_params, seed):
        """Test a process pool returns the same paths in the same order."""
        sequential = run_monte_carlo(short_params, 16, base_seed=seed)
        parallel = run_monte_carlo(short_params, 16, base_seed=seed, max_workers=2)
        assert parallel == sequential

    def test_base_seed_required(self, short_params):
        """Test base_seed is keyword-only and mandatory."""
        with pytest.raises(TypeError):
            run_monte_carlo(short_params, 10)

    @pytest.mark.parametrize("n_paths", [0, 10_001])
    def test_n_paths_out_of_range(self, short_params, n_paths):
        """Test n_paths outside [1, 10000] raises."""
        with pytest.raises(InvalidParameterError, match="n_paths"):
            run_monte_carlo(short_params, n_paths, base_seed=1)

    def test_float_seed_rejected(self, short_params):
        """Test non-integer base seeds raise."""
        with pytest.raises(InvalidParameterError, match="base_seed"):
            run_monte_carlo(short_params, 10, base_seed=1.5)

    def test_median_beats_contributions(self, mc_paths, scenario_params):
        """Test the canonical scenario's median ends above money put in."""
        finals = np.sort([p.final_balance for p in mc_paths])
        put_in = scenario_params.starting_assets + mc_paths[0].total_contributions
        assert finals[len(finals) // 2] > put_in


# ============================================================================
# ENGINE TESTS
# ============================================================================

class TestSimulationEngine:
    """Test SimulationEngine and MonteCarloResult."""

    def test_result_type(self, mc_result, n_paths):
        """Test run() returns a MonteCarloResult with every path."""
        assert isinstance(mc_result, MonteCarloResult)
        assert mc_result.n_paths == n_paths
        assert mc_result.years == 30
        assert mc_result.seed == 42

    def test_seed_required(self, short_params):
        """Test the engine refuses to pick a seed itself."""
        engine = SimulationEngine(short_params, SimulationConfig(n_paths=5))
        with pytest.raises(InvalidParameterError, match="seed"):
            engine.run()

    def test_seed_argument_overrides_config(self, short_params):
        """Test run(seed=...) takes precedence over config.seed."""
        engine = SimulationEngine(short_params, SimulationConfig(n_paths=5, seed=1))
        assert engine.run(seed=9).seed == 9
        assert engine.run().seed == 1

    def test_bands_ordered(self, mc_result):
        """Test bands are ordered by rank in every period."""
        for view in ("real", "nominal"):
            bands = mc_result.bands(view)
            ranks = sorted(bands)
            for lo, hi in zip(ranks, ranks[1:]):
                assert np.all(bands[lo] <= bands[hi])

    def test_real_below_nominal(self, mc_result):
        """Test positive inflation deflates every band."""
        for rank in mc_result.percentiles:
            assert np.all(mc_result.bands("real")[rank] <= mc_result.bands("nominal")[rank])

    def test_unknown_view_raises(self, mc_result):
        """Test bands() rejects unknown views."""
        with pytest.raises(ValidationError, match="view"):
            mc_result.bands("inflated")

    def test_representative_paths(self, mc_result):
        """Test representative paths are ordered by final balance."""
        chosen = mc_result.representative_paths()
        assert set(chosen) == {10, 50, 90}
        assert chosen[10].final_balance <= chosen[50].final_balance <= chosen[90].final_balance

    def test_summary(self, mc_result):
        """Test summary has nominal/real columns and percentile rows."""
        summary = mc_result.summary()
        assert list(summary.columns) == ["nominal", "real"]
        assert summary.loc["p50", "nominal"] == pytest.approx(mc_result.bands("nominal")[50][-1])
        assert summary.loc["min", "nominal"] <= summary.loc["max", "nominal"]

    def test_custom_percentiles(self, short_params, seed):
        """Test configured ranks drive the bands."""
        config = SimulationConfig(n_paths=20, seed=seed, percentiles=(5, 95))
        result = SimulationEngine(short_params, config).run()
        assert set(result.bands("real")) == {5, 95}
