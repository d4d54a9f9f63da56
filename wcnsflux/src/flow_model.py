"""
Flow model variants and their field layout.

Every variant stores its conserved and primitive vectors with the same
block structure, variables along axis 0:

    conserved:  [density block, momentum (dim), total energy, fraction block]
    primitive:  [density block, velocity (dim), pressure,     fraction block]

    SingleSpecies            density block = rho
    FourEquationMixture(N)   density block = rho,            fractions = rho*Y_k / Y_k  (k < N)
    FiveEquationMixture(N)   density block = alpha_k*rho_k,  fractions = alpha_k        (k < N)

The last species fraction is never stored; it is always derived as
1 - sum(others) so the fractions sum to one exactly.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

from .errors import ConfigurationError, EquationOfStateError
from .gas import EquationOfState, IdealGasEOS


class FlowModel(ABC):
    """Shared capability of all flow model variants."""

    # Fraction equations written in conservation form (no hyperbolization source)
    fractions_conservative: bool = True

    def __init__(self, dim: int, eos: EquationOfState, n_species: int = 1):
        if dim not in (1, 2, 3):
            raise ConfigurationError(f"dim must be 1, 2 or 3, got {dim}")
        self.dim = dim
        self.eos = eos
        self.n_species = n_species

        self.n_density = self._n_density()
        self.n_fractions = n_species - 1
        self.n_eqn = self.n_density + dim + 1 + self.n_fractions

        self.density_slice = slice(0, self.n_density)
        self.velocity_slice = slice(self.n_density, self.n_density + dim)
        self.energy_index = self.n_density + dim
        self.fraction_slice = slice(self.energy_index + 1, self.n_eqn)

    # --- Layout ---

    @abstractmethod
    def _n_density(self) -> int:
        pass

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def momentum_slice(self) -> slice:
        return self.velocity_slice

    @property
    def pressure_index(self) -> int:
        return self.energy_index

    def normal_velocity_index(self, direction: int) -> int:
        self.check_direction(direction)
        return self.n_density + direction

    def tangential_velocity_indices(self, direction: int) -> List[int]:
        self.check_direction(direction)
        return [self.n_density + d for d in range(self.dim) if d != direction]

    def check_direction(self, direction: int):
        if not 0 <= direction < self.dim:
            raise ConfigurationError(
                f"direction {direction} out of range for a {self.dim}-D model")

    def primitive_names(self) -> List[str]:
        names = self._density_names()
        names += [f"u{d}" for d in range(self.dim)]
        names.append("p")
        names += self._fraction_names()
        return names

    def _density_names(self) -> List[str]:
        return ["rho"]

    def _fraction_names(self) -> List[str]:
        return []

    # --- Species fractions ---

    @staticmethod
    def derive_fractions(independent: np.ndarray) -> np.ndarray:
        """Append the dependent last fraction, 1 - sum(others)."""
        last = 1.0 - np.sum(independent, axis=0)
        return np.concatenate([independent, last[np.newaxis]], axis=0)

    def total_density(self, X: np.ndarray) -> np.ndarray:
        """Mixture density from a conserved or primitive vector."""
        return np.sum(X[self.density_slice], axis=0)

    def density_weights(self, V: np.ndarray) -> np.ndarray:
        """Share of each density-block entry in the mixture density."""
        with np.errstate(invalid='ignore', divide='ignore'):
            return V[self.density_slice] / self.total_density(V)

    @abstractmethod
    def mass_fractions(self, V: np.ndarray) -> np.ndarray:
        """All N mass fractions, shape (n_species, ...)."""

    @abstractmethod
    def eos_fractions(self, V: np.ndarray) -> Optional[np.ndarray]:
        """Fractions in the form the equation of state mixes on."""

    @abstractmethod
    def _fractions_to_primitive(self, U_fractions, rho):
        pass

    @abstractmethod
    def _fractions_to_conserved(self, V_fractions, rho):
        pass

    # --- Conversions ---

    def conserved_to_primitive(self, U: np.ndarray) -> np.ndarray:
        """
        Convert conserved variables to primitive variables.

        Never raises: states with non-positive density come out with
        non-finite entries, which downstream checks pick up.
        """
        V = np.empty_like(U, dtype=float)
        with np.errstate(invalid='ignore', divide='ignore'):
            rho = self.total_density(U)
            V[self.density_slice] = U[self.density_slice]
            V[self.velocity_slice] = U[self.momentum_slice] / rho
            V[self.fraction_slice] = self._fractions_to_primitive(U[self.fraction_slice], rho)
            kinetic = 0.5 * np.sum(U[self.momentum_slice]**2, axis=0) / rho
            rho_e = U[self.energy_index] - kinetic
            V[self.pressure_index] = self.eos.pressure(rho, rho_e, self.eos_fractions(V))
        return V

    def primitive_to_conserved(self, V: np.ndarray) -> np.ndarray:
        """Convert primitive variables to conserved variables."""
        U = np.empty_like(V, dtype=float)
        rho = self.total_density(V)
        U[self.density_slice] = V[self.density_slice]
        U[self.momentum_slice] = rho * V[self.velocity_slice]
        U[self.fraction_slice] = self._fractions_to_conserved(V[self.fraction_slice], rho)
        kinetic = 0.5 * rho * np.sum(V[self.velocity_slice]**2, axis=0)
        U[self.energy_index] = (self.eos.internal_energy(rho, V[self.pressure_index],
                                                         self.eos_fractions(V)) + kinetic)
        return U

    def sound_speed_primitive(self, V: np.ndarray) -> np.ndarray:
        return self.eos.sound_speed(self.total_density(V), V[self.pressure_index],
                                    self.eos_fractions(V))

    def physical_flux(self, V: np.ndarray, direction: int,
                      U: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Exact flux along `direction` for primitive states V.

        Conserved blocks are advected with the normal velocity; pressure
        enters the normal momentum and the energy flux.
        """
        if U is None:
            U = self.primitive_to_conserved(V)
        n = self.normal_velocity_index(direction)
        u_n = V[n]
        p = V[self.pressure_index]

        F = U * u_n
        F[n] += p
        F[self.energy_index] += p * u_n
        return F

    def is_physical(self, V: np.ndarray) -> np.ndarray:
        """Mask of states with positive density and a positive, finite sound speed."""
        with np.errstate(invalid='ignore'):
            rho = self.total_density(V)
            c = self.sound_speed_primitive(V)
            return (np.all(np.isfinite(V), axis=0) & (rho > 0)
                    & (V[self.pressure_index] > 0) & np.isfinite(c) & (c > 0))

    # --- Equation-of-state contract on conserved states ---

    def _checked_thermodynamics(self, U: np.ndarray):
        U = np.asarray(U, dtype=float)
        rho = self.total_density(U)
        if np.any(~(rho > 0)):
            raise EquationOfStateError(
                f"{self.name}: non-positive density (min {np.nanmin(rho):.6g})")
        kinetic = 0.5 * np.sum(U[self.momentum_slice]**2, axis=0) / rho
        rho_e = U[self.energy_index] - kinetic
        if np.any(~(rho_e >= 0)):
            raise EquationOfStateError(
                f"{self.name}: negative internal energy (min {np.nanmin(rho_e):.6g})")
        return rho, self.conserved_to_primitive(U)

    def pressure(self, U: np.ndarray) -> np.ndarray:
        """Pressure of conserved states; raises EquationOfStateError outside the domain."""
        _, V = self._checked_thermodynamics(U)
        return V[self.pressure_index]

    def sound_speed(self, U: np.ndarray) -> np.ndarray:
        """Sound speed of conserved states; raises EquationOfStateError outside the domain."""
        rho, V = self._checked_thermodynamics(U)
        return self.eos.sound_speed(rho, V[self.pressure_index], self.eos_fractions(V))

    def __repr__(self):
        return f"{self.name}(dim={self.dim}, n_eqn={self.n_eqn}, eos={self.eos!r})"


class SingleSpecies(FlowModel):
    """Single-species Euler equations: [rho, rho*u, E]."""

    def __init__(self, dim: int, eos: EquationOfState = None):
        eos = eos if eos is not None else IdealGasEOS()
        if eos.n_species != 1:
            raise ConfigurationError("SingleSpecies needs a single-gas equation of state")
        super().__init__(dim, eos, n_species=1)

    def _n_density(self):
        return 1

    def mass_fractions(self, V):
        return np.ones_like(V[self.density_slice])

    def eos_fractions(self, V):
        return None

    def _fractions_to_primitive(self, U_fractions, rho):
        return U_fractions

    def _fractions_to_conserved(self, V_fractions, rho):
        return V_fractions


class _MixtureModel(FlowModel):

    def __init__(self, dim: int, n_species: int, eos: EquationOfState):
        if n_species < 2:
            raise ConfigurationError(f"{type(self).__name__} needs n_species >= 2")
        if eos.n_species != n_species:
            raise ConfigurationError(
                f"equation of state has {eos.n_species} species, model has {n_species}")
        super().__init__(dim, eos, n_species=n_species)

    @property
    def name(self) -> str:
        return f"{type(self).__name__}({self.n_species})"


class FourEquationMixture(_MixtureModel):
    """
    Four-equation (Shyue-type) mixture: [rho, rho*u, E, rho*Y_1 .. rho*Y_{N-1}].

    Primitive fractions are the mass fractions Y_k.
    """

    def _n_density(self):
        return 1

    def _fraction_names(self):
        return [f"Y{k}" for k in range(self.n_fractions)]

    def mass_fractions(self, V):
        return self.derive_fractions(V[self.fraction_slice])

    def eos_fractions(self, V):
        return self.mass_fractions(V)

    def _fractions_to_primitive(self, U_fractions, rho):
        return U_fractions / rho

    def _fractions_to_conserved(self, V_fractions, rho):
        return rho * V_fractions


class FiveEquationMixture(_MixtureModel):
    """
    Five-equation (Allaire-type) mixture:
    [alpha_1*rho_1 .. alpha_N*rho_N, rho*u, E, alpha_1 .. alpha_{N-1}].

    The volume-fraction equations are non-conservative and carry a source
    alpha_k * div(u) computed from the Riemann interface velocities.
    """

    fractions_conservative = False

    def _n_density(self):
        return self.n_species

    def _density_names(self):
        return [f"alpha_rho{k}" for k in range(self.n_species)]

    def _fraction_names(self):
        return [f"alpha{k}" for k in range(self.n_fractions)]

    def mass_fractions(self, V):
        return self.density_weights(V)

    def volume_fractions(self, V):
        return self.derive_fractions(V[self.fraction_slice])

    def eos_fractions(self, V):
        return self.volume_fractions(V)

    def _fractions_to_primitive(self, U_fractions, rho):
        return U_fractions

    def _fractions_to_conserved(self, V_fractions, rho):
        return V_fractions


FLOW_MODELS: Dict[str, Type[FlowModel]] = {
    'single_species': SingleSpecies,
    'four_equation': FourEquationMixture,
    'five_equation': FiveEquationMixture,
}


def create_flow_model(kind: str, dim: int, eos: EquationOfState = None,
                      n_species: int = 1) -> FlowModel:
    """
    Build a flow model variant by name.

    Args:
        kind: 'single_species', 'four_equation' or 'five_equation'
        dim: Number of spatial dimensions
        eos: Equation of state (ideal gas by default for a single species)
        n_species: Number of species (mixtures only)
    """
    try:
        cls = FLOW_MODELS[kind]
    except KeyError:
        raise ConfigurationError(
            f"Unknown flow model: {kind}. Options: {', '.join(FLOW_MODELS)}") from None
    if cls is SingleSpecies:
        return cls(dim, eos)
    if eos is None:
        raise ConfigurationError(f"{kind} needs a mixture equation of state")
    return cls(dim, n_species, eos)
