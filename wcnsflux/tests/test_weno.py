"""
Pytest tests for the WENO interpolation.

Tests verify:
1. Published linear-weight coefficients
2. Exact reproduction of constant stencils
3. Design order of accuracy for smooth data
4. Mirror symmetry of the left- and right-biased values
5. Non-oscillatory behaviour and first-order fallback
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from wcnsflux.src import WENOConfig, WENOInterpolator, ConfigurationError
from wcnsflux.src.weno import CANDIDATE_COEFFICIENTS, LINEAR_WEIGHTS_CENTRAL, LINEAR_WEIGHTS_UPWIND


@pytest.fixture
def weno():
    return WENOInterpolator()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def smooth_stencil(f, x_face, h):
    """Point values of f at the six cell centres around the interface x_face."""
    offsets = np.arange(-2.5, 3.0, 1.0)
    return f(x_face + offsets * h)


class TestLinearWeights:
    """Tests for the linear weights and candidate interpolants."""

    def test_central_weights_give_sixth_order_interpolation(self):
        """Central weights reproduce (3, -25, 150, 150, -25, 3)/256."""
        combined = LINEAR_WEIGHTS_CENTRAL @ CANDIDATE_COEFFICIENTS
        expected = np.array([3, -25, 150, 150, -25, 3]) / 256
        np.testing.assert_allclose(combined, expected, rtol=0, atol=1e-15)

    def test_upwind_weights_give_fifth_order_interpolation(self):
        """Upwind weights reproduce (3, -20, 90, 60, -5)/128."""
        combined = LINEAR_WEIGHTS_UPWIND @ CANDIDATE_COEFFICIENTS
        expected = np.array([3, -20, 90, 60, -5, 0]) / 128
        np.testing.assert_allclose(combined, expected, rtol=0, atol=1e-15)

    def test_weights_sum_to_one(self):
        assert np.isclose(np.sum(LINEAR_WEIGHTS_CENTRAL), 1.0)
        assert np.isclose(np.sum(LINEAR_WEIGHTS_UPWIND), 1.0)
        np.testing.assert_allclose(np.sum(CANDIDATE_COEFFICIENTS, axis=1), 1.0)

    def test_increments_match_candidate_interpolants(self, rng):
        """Difference-form increments equal the sub-stencil interpolants minus W_2."""
        W = rng.normal(size=(6, 50))
        delta = WENOInterpolator._candidate_increments(W)
        expected = CANDIDATE_COEFFICIENTS @ W - W[2]
        np.testing.assert_allclose(delta, expected, rtol=1e-12, atol=1e-12)

    @pytest.mark.parametrize("mode, expected", [
        ('central', LINEAR_WEIGHTS_CENTRAL),
        ('upwind', LINEAR_WEIGHTS_UPWIND),
    ])
    def test_fixed_linear_weight_modes(self, mode, expected):
        weno = WENOInterpolator(WENOConfig(linear_weights=mode))
        d = weno.linear_weights(np.array([0.0, 0.5, 1.0]))
        np.testing.assert_allclose(d, np.repeat(expected[:, np.newaxis], 3, axis=1))

    def test_adaptive_weights_blend_with_sigma(self, weno):
        d = weno.linear_weights(np.array([0.0, 1.0]))
        np.testing.assert_allclose(d[:, 0], LINEAR_WEIGHTS_CENTRAL)
        np.testing.assert_allclose(d[:, 1], LINEAR_WEIGHTS_UPWIND)


class TestConsistency:
    """A uniform stencil must be reproduced exactly."""

    @pytest.mark.parametrize("value", [0.0, 1.0, -3.7, 1e-300, 2.5e10])
    def test_constant_reproduced_exactly(self, weno, value):
        W = np.full((6, 4), value)
        result = weno.interpolate(W)
        np.testing.assert_array_equal(result.minus, W[2])
        np.testing.assert_array_equal(result.plus, W[3])
        assert not np.any(result.fallback)

    def test_random_constants_reproduced_exactly(self, weno, rng):
        values = rng.normal(scale=100.0, size=(3, 20))
        W = np.broadcast_to(values, (6, 3, 20)).copy()
        result = weno.interpolate(W)
        np.testing.assert_array_equal(result.minus, values)
        np.testing.assert_array_equal(result.plus, values)

    def test_zero_indicators_give_linear_weights(self, weno):
        """With all beta = 0 the nonlinear weights reduce to the linear ones."""
        d = weno.linear_weights(np.zeros(5))
        omega = weno.nonlinear_weights(np.zeros((4, 5)), d)
        np.testing.assert_allclose(omega, d, rtol=1e-12)

    def test_unmapped_zero_indicators_give_linear_weights(self):
        weno = WENOInterpolator(WENOConfig(mapped=False))
        d = weno.linear_weights(np.zeros(3))
        omega = weno.nonlinear_weights(np.zeros((4, 3)), d)
        np.testing.assert_allclose(omega, d, rtol=1e-14)

    def test_weights_are_normalized(self, weno, rng):
        W = rng.normal(size=(6, 100))
        beta = weno.compute_beta(W)
        beta[3] = np.max(beta, axis=0)
        d = weno.linear_weights(weno.compute_sigma(W))
        omega = weno.nonlinear_weights(beta, d)
        np.testing.assert_allclose(np.sum(omega, axis=0), 1.0, rtol=1e-12)
        assert np.all(omega >= -1e-15)


class TestConvergence:
    """Design order of accuracy for smooth fields."""

    @pytest.mark.parametrize("f", [np.exp, lambda x: np.sin(2 * x) + 2.0])
    def test_order_of_accuracy(self, weno, f):
        """Errors at the interface fall by more than 2^4.5 per halving of h."""
        x_face = 0.3
        spacings = [0.1, 0.05, 0.025]
        errors_minus, errors_plus = [], []

        for h in spacings:
            W = smooth_stencil(f, x_face, h)
            result = weno.interpolate(W)
            errors_minus.append(abs(result.minus - f(x_face)))
            errors_plus.append(abs(result.plus - f(x_face)))

        for errors in (errors_minus, errors_plus):
            orders = np.log2(np.array(errors[:-1]) / np.array(errors[1:]))
            assert np.all(orders > 4.5), f"Observed orders {orders}, errors {errors}"

    def test_smooth_data_close_to_central_scheme(self, weno):
        """For smooth data sigma is small and the result is close to the linear scheme."""
        h = 0.01
        W = smooth_stencil(np.exp, 0.5, h)
        linear = (LINEAR_WEIGHTS_CENTRAL @ CANDIDATE_COEFFICIENTS) @ W
        assert weno.compute_sigma(W) < 1e-3
        assert abs(weno.interpolate(W).minus - linear) < 1e-10


class TestMirrorSymmetry:
    """The right-biased value is the left-biased value of the mirrored stencil."""

    def test_beta_tilde_is_mirrored_beta(self, weno, rng):
        W = rng.normal(size=(6, 30))
        np.testing.assert_array_equal(weno.compute_beta_tilde(W), weno.compute_beta(W[::-1]))

    def test_sigma_symmetric(self, weno, rng):
        W = rng.normal(size=(6, 30))
        np.testing.assert_array_equal(weno.compute_sigma(W), weno.compute_sigma(W[::-1]))

    def test_plus_equals_mirrored_minus(self, weno, rng):
        W = rng.normal(size=(6, 40))
        W[:, :10] = np.where(np.arange(6)[:, np.newaxis] < 3, 1.0, 0.0)  # some steps
        forward = weno.interpolate(W)
        mirrored = weno.interpolate(W[::-1])
        np.testing.assert_allclose(forward.plus, mirrored.minus, rtol=1e-14, atol=1e-14)
        np.testing.assert_allclose(forward.minus, mirrored.plus, rtol=1e-14, atol=1e-14)


class TestDiscontinuities:
    """Shock-capturing behaviour."""

    def test_step_at_interface(self, weno):
        """A jump located at the interface is reconstructed without mixing the sides."""
        W = np.array([1.0, 1.0, 1.0, 0.0, 0.0, 0.0])
        result = weno.interpolate(W)
        assert abs(result.minus - 1.0) < 1e-12
        assert abs(result.plus - 0.0) < 1e-12

    @pytest.mark.parametrize("jump_index", [1, 2, 4, 5])
    def test_no_new_extrema(self, weno, jump_index):
        """Interpolated values stay (essentially) within the stencil bounds."""
        W = np.where(np.arange(6) < jump_index, 2.0, -1.0)
        result = weno.interpolate(W)
        tol = 1e-3 * 3.0
        for value in (result.minus, result.plus):
            assert -1.0 - tol <= value <= 2.0 + tol

    def test_sigma_large_near_discontinuity(self, weno):
        W = np.array([0.0, 1.0, 1.0, 1.0, 1.0, 1.0])
        assert weno.compute_sigma(W) > 0.9

    def test_sigma_in_unit_interval(self, weno, rng):
        W = rng.normal(size=(6, 200)) * rng.lognormal(size=200)
        sigma = weno.compute_sigma(W)
        assert np.all((sigma >= 0) & (sigma <= 1))


class TestFallback:
    """Non-finite input falls back to the nearest cell value."""

    def test_nan_in_stencil(self, weno):
        W = np.array([[np.nan, 1.0], [1.0, 1.0], [2.0, 1.0], [3.0, 1.0], [4.0, 1.0], [5.0, 1.0]])
        result = weno.interpolate(W)
        assert result.fallback[0] and not result.fallback[1]
        assert result.minus[0] == 2.0
        assert result.plus[0] == 3.0
        assert result.minus[1] == 1.0

    def test_overflowing_indicators(self, weno):
        W = np.array([1e300, -1e300, 1e300, -1e300, 1e300, -1e300])
        result = weno.interpolate(W)
        assert result.fallback
        assert result.minus == W[2]
        assert result.plus == W[3]

    def test_wrong_stencil_width(self, weno):
        with pytest.raises(ValueError):
            weno.interpolate(np.zeros((5, 3)))


class TestLocalizedDissipation:
    """Weights d_k (C + tau / beta_k)^q and the alpha_tau gate on sigma."""

    @pytest.fixture
    def weno_ld(self):
        return WENOInterpolator(WENOConfig(C=1.0e3, alpha_tau=35.0))

    def test_beta6_of_constant_and_linear_data(self, weno):
        np.testing.assert_array_equal(weno.compute_beta6(np.full(6, 4.2)), 0.0)
        slope = 0.7
        W = 1.0 + slope * np.arange(6.0)
        assert np.isclose(weno.compute_beta6(W), slope**2, rtol=1e-12)

    @pytest.mark.parametrize("W", [
        np.arange(6.0),
        (np.arange(6.0) - 2)**2,
        3.0 - 0.5 * np.arange(6.0) + (np.arange(6.0) - 2)**2,
    ])
    def test_tau_vanishes_for_quadratics(self, weno, W):
        assert weno.compute_tau(W) < 1e-9

    def test_tau_relative_to_beta_falls_with_h(self, weno):
        """tau / beta_avg = O(h^3) or better for smooth data."""
        ratios = []
        for h in (0.1, 0.05):
            W = smooth_stencil(np.exp, 0.3, h)
            beta = weno.compute_beta(W)
            ratios.append(weno.compute_tau(W, beta) / ((beta[0] + 6 * beta[1] + beta[2]) / 8))
        assert ratios[0] / ratios[1] > 2**2.5

    @pytest.mark.parametrize("value", [0.0, -3.7, 2.5e10])
    def test_constant_reproduced_exactly(self, weno_ld, value):
        W = np.full((6, 4), value)
        result = weno_ld.interpolate(W)
        np.testing.assert_array_equal(result.minus, W[2])
        np.testing.assert_array_equal(result.plus, W[3])
        assert not np.any(result.fallback)

    def test_zero_tau_gives_linear_weights(self, rng):
        weno = WENOInterpolator(WENOConfig(C=10.0, mapped=False))
        beta = rng.lognormal(size=(4, 20))
        d = weno.linear_weights(np.full(20, 0.3))
        np.testing.assert_allclose(weno.nonlinear_weights(beta, d), d, rtol=1e-12)

    @pytest.mark.parametrize("C, alpha_tau", [(1.0e3, 35.0), (1.0e6, None)])
    @pytest.mark.parametrize("f", [np.exp, lambda x: np.sin(2 * x) + 2.0])
    def test_order_of_accuracy(self, f, C, alpha_tau):
        weno = WENOInterpolator(WENOConfig(C=C, alpha_tau=alpha_tau))
        x_face = 0.3
        errors_minus, errors_plus = [], []
        for h in [0.1, 0.05, 0.025]:
            result = weno.interpolate(smooth_stencil(f, x_face, h))
            errors_minus.append(abs(result.minus - f(x_face)))
            errors_plus.append(abs(result.plus - f(x_face)))

        for errors in (errors_minus, errors_plus):
            orders = np.log2(np.array(errors[:-1]) / np.array(errors[1:]))
            assert np.all(orders > 4.5), f"Observed orders {orders}, errors {errors}"

    def test_smooth_data_uses_central_scheme(self, weno_ld):
        """Below the alpha_tau threshold sigma is exactly zero and the weights stay linear."""
        W = smooth_stencil(np.exp, 0.5, 0.01)
        linear = (LINEAR_WEIGHTS_CENTRAL @ CANDIDATE_COEFFICIENTS) @ W
        assert weno_ld.compute_sigma(W) == 0.0
        assert abs(weno_ld.interpolate(W).minus - linear) < 1e-12

    def test_sigma_kept_near_discontinuity(self, weno, weno_ld):
        W = np.array([0.0, 1.0, 1.0, 1.0, 1.0, 1.0])
        assert weno_ld.compute_sigma(W) == weno.compute_sigma(W)
        assert weno_ld.compute_sigma(W) > 0.9

    def test_step_at_interface(self, weno_ld):
        result = weno_ld.interpolate(np.array([1.0, 1.0, 1.0, 0.0, 0.0, 0.0]))
        assert abs(result.minus - 1.0) < 1e-12
        assert abs(result.plus - 0.0) < 1e-12

    @pytest.mark.parametrize("jump_index", [1, 2, 4, 5])
    def test_no_new_extrema(self, weno_ld, jump_index):
        W = np.where(np.arange(6) < jump_index, 2.0, -1.0)
        result = weno_ld.interpolate(W)
        for value in (result.minus, result.plus):
            assert -1.0 - 3e-3 <= value <= 2.0 + 3e-3

    def test_plus_equals_mirrored_minus(self, weno_ld, rng):
        W = rng.normal(size=(6, 40))
        forward = weno_ld.interpolate(W)
        mirrored = weno_ld.interpolate(W[::-1])
        np.testing.assert_allclose(forward.plus, mirrored.minus, rtol=1e-14, atol=1e-14)

    def test_nan_falls_back(self, weno_ld):
        W = np.array([np.nan, 1.0, 2.0, 3.0, 4.0, 5.0])
        result = weno_ld.interpolate(W)
        assert result.fallback
        assert result.minus == 2.0 and result.plus == 3.0


class TestConfiguration:

    def test_defaults(self):
        config = WENOConfig()
        assert config.epsilon == 1e-40
        assert config.q == 2
        assert config.mapped
        assert config.C is None and config.alpha_tau is None

    @pytest.mark.parametrize("kwargs", [
        {'epsilon': 0.0},
        {'epsilon': -1e-6},
        {'q': 0},
        {'p': 0},
        {'linear_weights': 'optimal'},
        {'C': 0.0},
        {'C': -1.0},
        {'alpha_tau': -1.0},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            WENOConfig(**kwargs)

    @pytest.mark.parametrize("q", [1, 2, 4])
    def test_sharpening_exponent_keeps_consistency(self, q):
        weno = WENOInterpolator(WENOConfig(q=q))
        W = np.full(6, 0.7)
        assert weno.interpolate(W).minus == 0.7


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
