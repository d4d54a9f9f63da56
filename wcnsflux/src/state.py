"""
Flow state representation using conservative variables.

State is defined by a conserved array laid out by the flow model
(variables along axis 0):
    density block  - rho, or partial densities alpha_k*rho_k
    momentum       - rho*u per direction
    E              - total energy per volume
    fraction block - rho*Y_k or alpha_k for the first N-1 species

Primitive quantities are computed on demand.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .flow_model import FlowModel, FiveEquationMixture


@dataclass
class FlowState:
    """
    Represents the flow state at a point or on a grid using conservative variables.

    Conservative variables (stored directly):
        U : shape (n_eqn, ...) laid out by `model`

    Primitive variables (computed as properties):
        rho, velocity, p, a, Y, alpha, M, E, H
    """
    U: np.ndarray
    model: FlowModel

    def __post_init__(self):
        self.U = np.asarray(self.U, dtype=float)
        if self.U.shape[0] != self.model.n_eqn:
            raise ValueError(f"{self.model.name} expects {self.model.n_eqn} variables, "
                             f"got {self.U.shape[0]}")

    # --- Primitive variables as properties ---

    @property
    def primitive(self) -> np.ndarray:
        """Primitive vector in the model layout."""
        return self.model.conserved_to_primitive(self.U)

    @property
    def rho(self) -> np.ndarray:
        """Mixture density."""
        return self.model.total_density(self.U)

    @property
    def velocity(self) -> np.ndarray:
        """Velocity vector, shape (dim, ...)."""
        return self.U[self.model.momentum_slice] / self.rho

    @property
    def p(self) -> np.ndarray:
        """Pressure (raises EquationOfStateError outside the EOS domain)."""
        return self.model.pressure(self.U)

    @property
    def a(self) -> np.ndarray:
        """Speed of sound (raises EquationOfStateError outside the EOS domain)."""
        return self.model.sound_speed(self.U)

    @property
    def Y(self) -> np.ndarray:
        """All mass fractions, shape (n_species, ...); the last one is derived."""
        return self.model.mass_fractions(self.primitive)

    @property
    def alpha(self) -> Optional[np.ndarray]:
        """All volume fractions for the five-equation model, None otherwise."""
        if isinstance(self.model, FiveEquationMixture):
            return self.model.volume_fractions(self.primitive)
        return None

    @property
    def E(self) -> np.ndarray:
        """Total specific energy."""
        return self.U[self.model.energy_index] / self.rho

    @property
    def H(self) -> np.ndarray:
        """Total specific enthalpy."""
        return self.E + self.p / self.rho

    @property
    def M(self) -> np.ndarray:
        """Mach number based on the velocity magnitude."""
        return np.sqrt(np.sum(self.velocity**2, axis=0)) / self.a

    # --- Array conversion methods ---

    def to_array(self) -> np.ndarray:
        """Conserved variable array, shape (n_eqn, ...)."""
        return self.U.copy()

    @classmethod
    def from_primitive_array(cls, V: np.ndarray, model: FlowModel) -> 'FlowState':
        return cls(U=model.primitive_to_conserved(np.asarray(V, dtype=float)), model=model)

    @classmethod
    def from_primitives(cls, model: FlowModel, rho, velocity, p,
                        fractions=None) -> 'FlowState':
        """
        Create FlowState from primitive variables.

        Args:
            model: Flow model variant
            rho: Density, or partial densities alpha_k*rho_k (n_species, ...)
                 for the five-equation model
            velocity: Velocity, shape (dim, ...); a scalar/array is accepted in 1-D
            p: Pressure
            fractions: Independent fractions (first N-1 mass or volume fractions),
                       shape (n_species - 1, ...)
        """
        p = np.asarray(p, dtype=float)
        shape = p.shape
        V = np.empty((model.n_eqn,) + shape)

        rho = np.asarray(rho, dtype=float)
        if rho.ndim == len(shape):
            rho = rho[np.newaxis]
        velocity = np.asarray(velocity, dtype=float)
        if velocity.ndim == len(shape):
            velocity = velocity[np.newaxis]

        V[model.density_slice] = np.broadcast_to(rho, (model.n_density,) + shape)
        V[model.velocity_slice] = np.broadcast_to(velocity, (model.dim,) + shape)
        V[model.pressure_index] = p
        if model.n_fractions:
            if fractions is None:
                raise ValueError(f"{model.name} needs {model.n_fractions} independent fractions")
            V[model.fraction_slice] = np.broadcast_to(fractions, (model.n_fractions,) + shape)

        return cls.from_primitive_array(V, model)
