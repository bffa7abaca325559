"""
Unit tests for returns.py module.

Tests the constrained log-normal samplers: exact geometric means, draw
accounting, the inflation floor and input validation.
"""

import math

import numpy as np
import pytest

from firesim.constants import MULBERRY32_INCREMENT, UINT32_MASK
from firesim.exceptions import InvalidParameterError
from firesim.returns import (
    ConstrainedSampler,
    randomized_inflation,
    randomized_returns,
    standard_normal,
)
from firesim.rng import SeededRandom
from firesim.utils import geometric_mean


def _state_after(seed: int, draws: int) -> int:
    return (seed + draws * MULBERRY32_INCREMENT) & UINT32_MASK


# ============================================================================
# STANDARD NORMAL TESTS
# ============================================================================

class TestStandardNormal:
    """Test Box-Muller variates."""

    def test_consumes_two_draws(self, seed):
        """Test one variate consumes exactly two uniforms."""
        rng = SeededRandom(seed)
        standard_normal(rng)
        assert rng.state == _state_after(seed, 2)

    def test_zero_uniform_is_finite(self):
        """Test a zero u1 is floored instead of producing inf."""
        class ZeroThenHalf:
            def __init__(self):
                self.values = iter([0.0, 0.0])

            def random(self):
                return next(self.values)

        z = standard_normal(ZeroThenHalf())
        assert math.isfinite(z)
        assert z > 0

    def test_moments(self):
        """Test sample mean and std are close to N(0, 1)."""
        rng = SeededRandom(7)
        z = np.array([standard_normal(rng) for _ in range(20_000)])
        assert abs(z.mean()) < 0.05
        assert abs(z.std() - 1.0) < 0.05


# ============================================================================
# RANDOMIZED RETURNS TESTS
# ============================================================================

class TestRandomizedReturns:
    """Test the return sampler."""

    @pytest.mark.parametrize("target", [0.07, 0.0, -0.05, 0.25])
    def test_geometric_mean_is_exact(self, target, seed):
        """Test compounded returns reproduce the target geometric mean."""
        r = randomized_returns(target, 30, SeededRandom(seed))
        assert geometric_mean(r) == pytest.approx(target, rel=1e-9, abs=1e-12)

    def test_product_is_exact(self, seed):
        """Test prod(1 + r) equals (1 + target)^n."""
        r = randomized_returns(0.07, 40, SeededRandom(seed))
        assert np.prod(1 + r) == pytest.approx(1.07 ** 40, rel=1e-9)

    def test_rates_above_minus_one(self):
        """Test log-normal construction keeps every rate above -100%."""
        r = randomized_returns(0.0, 100, SeededRandom(3), volatility=1.5)
        assert np.all(r > -1.0)

    def test_dispersion(self, seed):
        """Test yearly returns actually vary at the default volatility."""
        r = randomized_returns(0.07, 30, SeededRandom(seed))
        assert r.std() > 0.05
        assert len(np.unique(r)) == 30

    def test_single_period_equals_target(self, seed):
        """Test a one-year path returns exactly the target."""
        r = randomized_returns(0.07, 1, SeededRandom(seed))
        assert r.shape == (1,)
        assert r[0] == pytest.approx(0.07, rel=1e-12)

    def test_zero_volatility_is_constant(self, seed):
        """Test zero volatility yields the target every year."""
        r = randomized_returns(0.07, 10, SeededRandom(seed), volatility=0.0)
        np.testing.assert_allclose(r, 0.07, rtol=1e-12)

    def test_consumes_two_draws_per_period(self, seed):
        """Test the sampler draws exactly 2n uniforms."""
        rng = SeededRandom(seed)
        randomized_returns(0.07, 12, rng)
        assert rng.state == _state_after(seed, 24)

    def test_deterministic(self, seed):
        """Test same seed, same rates."""
        a = randomized_returns(0.07, 30, SeededRandom(seed))
        b = randomized_returns(0.07, 30, SeededRandom(seed))
        np.testing.assert_array_equal(a, b)

    def test_n_zero_raises(self, seed):
        """Test n < 1 raises."""
        with pytest.raises(InvalidParameterError, match="n must be >= 1"):
            randomized_returns(0.07, 0, SeededRandom(seed))

    def test_target_minus_one_raises(self, seed):
        """Test a -100% target raises."""
        with pytest.raises(InvalidParameterError, match="target"):
            randomized_returns(-1.0, 5, SeededRandom(seed))

    def test_nan_target_raises(self, seed):
        """Test non-finite targets raise."""
        with pytest.raises(InvalidParameterError, match="finite"):
            randomized_returns(float("nan"), 5, SeededRandom(seed))


# ============================================================================
# RANDOMIZED INFLATION TESTS
# ============================================================================

class TestRandomizedInflation:
    """Test the inflation sampler."""

    def test_non_negative(self):
        """Test inflation is floored at zero."""
        r = randomized_inflation(0.01, 50, SeededRandom(11), volatility=0.5)
        assert np.all(r >= 0.0)

    def test_floor_biases_upward(self):
        """Test clamping negative years raises the realized mean above target."""
        r = randomized_inflation(0.01, 50, SeededRandom(11), volatility=0.5)
        assert np.any(r == 0.0)
        assert geometric_mean(r) > 0.01

    def test_exact_without_clamping(self, seed):
        """Test the exact-product property holds when nothing is clamped."""
        r = randomized_inflation(0.10, 30, SeededRandom(seed), volatility=0.005)
        assert np.all(r > 0.0)
        assert geometric_mean(r) == pytest.approx(0.10, rel=1e-9)

    def test_zero_target_returns_zeros_without_drawing(self, seed):
        """Test a zero target short-circuits and leaves the generator untouched."""
        rng = SeededRandom(seed)
        r = randomized_inflation(0.0, 30, rng)
        np.testing.assert_array_equal(r, np.zeros(30))
        assert rng.state == seed

    def test_consumes_two_draws_per_period(self, seed):
        """Test non-zero inflation draws exactly 2n uniforms."""
        rng = SeededRandom(seed)
        randomized_inflation(0.025, 8, rng)
        assert rng.state == _state_after(seed, 16)


# ============================================================================
# SAMPLER TESTS
# ============================================================================

class TestConstrainedSampler:
    """Test sampler construction."""

    def test_factory_flags(self):
        """Test the inflation factory enables floor and shortcut."""
        returns = ConstrainedSampler.for_returns()
        inflation = ConstrainedSampler.for_inflation()
        assert not returns.floor_at_zero and not returns.zero_target_shortcut
        assert inflation.floor_at_zero and inflation.zero_target_shortcut

    def test_default_volatilities(self):
        """Test default volatilities are 30% and 1.5%."""
        assert ConstrainedSampler.for_returns().volatility == 0.30
        assert ConstrainedSampler.for_inflation().volatility == 0.015

    def test_negative_volatility_raises(self):
        """Test negative volatility raises."""
        with pytest.raises(InvalidParameterError, match="non-negative"):
            ConstrainedSampler(volatility=-0.1)

    def test_raw_log_rates_centered_on_target(self):
        """Test unadjusted log-rates center on ln(1 + target)."""
        sampler = ConstrainedSampler.for_returns(0.1)
        log_rates = sampler.raw_log_rates(0.07, 5_000, SeededRandom(5))
        assert log_rates.mean() == pytest.approx(math.log1p(0.07), abs=0.01)
