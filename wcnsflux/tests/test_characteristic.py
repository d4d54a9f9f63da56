"""
Pytest tests for the characteristic decomposition.

Tests verify:
1. L and R are inverse to each other for every flow model
2. L diagonalizes the primitive flux Jacobian with ascending eigenvalues
3. Invalid reference states yield identity matrices and are flagged
4. Reference-state averaging
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from wcnsflux.src import (
    GasProperties, SingleSpecies, FourEquationMixture, FiveEquationMixture,
    MassFractionMixtureEOS, VolumeFractionMixtureEOS,
    CharacteristicProjector, compute_reference_state, ConfigurationError
)


def make_models():
    air = GasProperties(gamma=1.4)
    helium = GasProperties(gamma=5 / 3, R=2077.0)
    sf6 = GasProperties(gamma=1.09, R=56.9)
    return [
        SingleSpecies(1),
        SingleSpecies(2),
        SingleSpecies(3),
        FourEquationMixture(2, 2, MassFractionMixtureEOS([air, helium])),
        FourEquationMixture(3, 3, MassFractionMixtureEOS([air, helium, sf6])),
        FiveEquationMixture(1, 2, VolumeFractionMixtureEOS([air, sf6])),
        FiveEquationMixture(2, 3, VolumeFractionMixtureEOS([air, helium, sf6])),
    ]


MODELS = make_models()


def random_primitive(model, n, rng):
    """Random physical primitive states, shape (n_eqn, n)."""
    V = np.empty((model.n_eqn, n))
    V[model.density_slice] = rng.uniform(0.1, 2.0, size=(model.n_density, n))
    V[model.velocity_slice] = rng.normal(size=(model.dim, n))
    V[model.pressure_index] = rng.uniform(0.2, 3.0, size=n)
    if model.n_fractions:
        raw = rng.uniform(0.05, 1.0, size=(model.n_species, n))
        V[model.fraction_slice] = (raw / np.sum(raw, axis=0))[:-1]
    return V


def primitive_jacobian(model, V, direction):
    """Flux Jacobian of the primitive system along `direction` at a single state."""
    n = model.normal_velocity_index(direction)
    ip = model.pressure_index
    rho = model.total_density(V)
    c = model.sound_speed_primitive(V)

    A = V[n] * np.eye(model.n_eqn)
    for k in range(model.n_density):
        A[k, n] = V[k]
    A[n, ip] = 1.0 / rho
    A[ip, n] = rho * c**2
    return A


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.mark.parametrize("model", MODELS, ids=lambda m: f"{m.name}-{m.dim}D")
class TestProjectionMatrices:
    """Algebraic properties of L and R."""

    def test_inverse_pair(self, model, rng):
        projector = CharacteristicProjector(model)
        V = random_primitive(model, 25, rng)
        for direction in range(model.dim):
            ref = compute_reference_state(model, V, V, direction)
            L, R, valid = projector.projection_matrices(ref, direction)
            assert np.all(valid)
            eye = np.broadcast_to(np.eye(model.n_eqn), L.shape)
            np.testing.assert_allclose(L @ R, eye, atol=1e-12)
            np.testing.assert_allclose(R @ L, eye, atol=1e-12)

    def test_diagonalizes_jacobian(self, model, rng):
        projector = CharacteristicProjector(model)
        V = random_primitive(model, 5, rng)
        for direction in range(model.dim):
            ref = compute_reference_state(model, V, V, direction)
            L, R, _ = projector.projection_matrices(ref, direction)
            lam = projector.eigenvalues(ref.u_n, ref.c)
            for f in range(V.shape[1]):
                A = primitive_jacobian(model, V[:, f], direction)
                np.testing.assert_allclose(L[f] @ A @ R[f], np.diag(lam[:, f]),
                                           atol=1e-10 * (1 + np.max(np.abs(A))))

    def test_eigenvalues_ascending(self, model, rng):
        projector = CharacteristicProjector(model)
        u = rng.normal(size=10)
        c = rng.uniform(0.5, 2.0, size=10)
        lam = projector.eigenvalues(u, c)
        assert lam.shape == (model.n_eqn, 10)
        assert np.all(np.diff(lam, axis=0) >= 0)
        np.testing.assert_allclose(lam[0], u - c)
        np.testing.assert_allclose(lam[-1], u + c)

    def test_stencil_round_trip(self, model, rng):
        projector = CharacteristicProjector(model)
        V = random_primitive(model, 8, rng)
        ref = compute_reference_state(model, V, V, 0)
        L, R, _ = projector.projection_matrices(ref, 0)
        stencil = np.stack([random_primitive(model, 8, rng) for _ in range(6)], axis=1)
        W = projector.to_characteristic(L, stencil)
        assert W.shape == stencil.shape
        np.testing.assert_allclose(projector.to_primitive(R, W), stencil, rtol=1e-12, atol=1e-12)


class TestInvalidReference:
    """Non-physical reference states degrade to identity matrices."""

    @pytest.mark.parametrize("rho, p", [(-1.0, 1.0), (0.0, 1.0), (1.0, -1.0), (np.nan, 1.0)])
    def test_identity_and_flag(self, rho, p):
        model = SingleSpecies(1)
        projector = CharacteristicProjector(model)
        V = np.array([[1.0, rho], [0.0, 0.0], [1.0, p]])
        ref = compute_reference_state(model, V, V, 0)
        L, R, valid = projector.projection_matrices(ref, 0)
        assert valid[0] and not valid[1]
        np.testing.assert_array_equal(L[1], np.eye(3))
        np.testing.assert_array_equal(R[1], np.eye(3))
        np.testing.assert_allclose(L[0] @ R[0], np.eye(3), atol=1e-14)


class TestReferenceState:
    """Averaging of the two innermost stencil cells."""

    @pytest.mark.parametrize("averaging", ['simple', 'roe'])
    def test_equal_states(self, averaging):
        model = SingleSpecies(2)
        V = np.array([[1.2], [0.3], [-0.4], [2.0]])
        ref = compute_reference_state(model, V, V, 1, averaging)
        assert np.isclose(ref.rho[0], 1.2)
        assert np.isclose(ref.u_n[0], -0.4)
        assert np.isclose(ref.c[0], np.sqrt(1.4 * 2.0 / 1.2))
        np.testing.assert_allclose(ref.weights, 1.0)

    def test_roe_average_density(self):
        model = SingleSpecies(1)
        VL = np.array([[1.0], [0.0], [1.0]])
        VR = np.array([[0.25], [0.0], [0.1]])
        ref = compute_reference_state(model, VL, VR, 0, 'roe')
        assert np.isclose(ref.rho[0], 0.5)

    def test_simple_average_is_conservative_mean(self):
        model = SingleSpecies(1)
        VL = np.array([[1.0], [1.0], [1.0]])
        VR = np.array([[0.5], [-1.0], [0.5]])
        ref = compute_reference_state(model, VL, VR, 0, 'simple')
        assert np.isclose(ref.rho[0], 0.75)
        assert np.isclose(ref.u_n[0], (1.0 - 0.5) / 1.5)

    def test_mixture_weights(self):
        model = FiveEquationMixture(1, 2, VolumeFractionMixtureEOS(
            [GasProperties(gamma=1.4), GasProperties(gamma=1.6)]))
        V = np.array([[0.3], [0.6], [0.0], [1.0], [0.4]])
        ref = compute_reference_state(model, V, V, 0)
        np.testing.assert_allclose(ref.weights[:, 0], [1 / 3, 2 / 3])

    def test_unknown_average(self):
        model = SingleSpecies(1)
        V = np.ones((3, 1))
        with pytest.raises(ConfigurationError):
            compute_reference_state(model, V, V, 0, 'harmonic')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
