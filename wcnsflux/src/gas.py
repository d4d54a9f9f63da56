"""
Gas properties and gamma-law equations of state.

The kernel only needs three things from an equation of state: pressure
from the internal energy per volume, the inverse of that relation, and the
sound speed. Mixtures reduce to an effective ratio of specific heats whose
mixing rule depends on the kind of fractions the flow model carries.
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import ConfigurationError


@dataclass
class GasProperties:
    """Thermodynamic properties for a calorically perfect gas."""
    gamma: float = 1.4          # Ratio of specific heats
    R: float = 287.0            # Specific gas constant [J/(kg·K)]

    def __post_init__(self):
        if not self.gamma > 1.0:
            raise ConfigurationError(f"gamma must be > 1, got {self.gamma}")
        if not self.R > 0.0:
            raise ConfigurationError(f"R must be positive, got {self.R}")

    @property
    def cp(self) -> float:
        """Specific heat at constant pressure [J/(kg·K)]."""
        return self.gamma * self.R / (self.gamma - 1)

    @property
    def cv(self) -> float:
        """Specific heat at constant volume [J/(kg·K)]."""
        return self.R / (self.gamma - 1)


class EquationOfState(ABC):
    """
    Abstract equation of state.

    All methods are vectorized and never raise: invalid input yields
    non-finite or non-positive output, which callers check explicitly.

    `fractions` is the full set of species fractions (derived last one
    included), shape (n_species, ...), or None for a single gas.
    """

    n_species: int = 1

    @abstractmethod
    def pressure(self, rho: np.ndarray, rho_e: np.ndarray,
                 fractions: Optional[np.ndarray] = None) -> np.ndarray:
        """Pressure from density and internal energy per volume."""

    @abstractmethod
    def internal_energy(self, rho: np.ndarray, p: np.ndarray,
                        fractions: Optional[np.ndarray] = None) -> np.ndarray:
        """Internal energy per volume from density and pressure."""

    @abstractmethod
    def sound_speed(self, rho: np.ndarray, p: np.ndarray,
                    fractions: Optional[np.ndarray] = None) -> np.ndarray:
        """Speed of sound from density and pressure."""


class GammaLawEOS(EquationOfState):
    """Equation of state of the form p = (gamma - 1) * rho * e."""

    @abstractmethod
    def effective_gamma(self, fractions: Optional[np.ndarray]) -> np.ndarray:
        """Ratio of specific heats of the (mixture) gas."""

    def pressure(self, rho, rho_e, fractions=None):
        return (self.effective_gamma(fractions) - 1) * rho_e

    def internal_energy(self, rho, p, fractions=None):
        return p / (self.effective_gamma(fractions) - 1)

    def sound_speed(self, rho, p, fractions=None):
        with np.errstate(invalid='ignore', divide='ignore'):
            return np.sqrt(self.effective_gamma(fractions) * p / rho)


class IdealGasEOS(GammaLawEOS):
    """Single calorically perfect gas."""

    def __init__(self, gas: GasProperties = None):
        self.gas = gas if gas is not None else GasProperties()

    def effective_gamma(self, fractions=None):
        return self.gas.gamma

    def __repr__(self):
        return f"IdealGasEOS(gamma={self.gas.gamma})"


class _MixtureEOS(GammaLawEOS):

    def __init__(self, species: Sequence[GasProperties]):
        if len(species) < 2:
            raise ConfigurationError("A mixture needs at least two species")
        self.species = list(species)
        self.n_species = len(self.species)
        self._gamma = np.array([s.gamma for s in self.species])
        self._cp = np.array([s.cp for s in self.species])
        self._cv = np.array([s.cv for s in self.species])

    def _check_fractions(self, fractions):
        if fractions is None or fractions.shape[0] != self.n_species:
            raise ConfigurationError(
                f"{type(self).__name__} needs {self.n_species} fractions")

    def _weighted(self, coefficients, fractions):
        # Sum over the species axis with coefficients broadcast against the trailing axes
        shape = (-1,) + (1,) * (fractions.ndim - 1)
        return np.sum(coefficients.reshape(shape) * fractions, axis=0)

    def __repr__(self):
        gammas = ", ".join(f"{g:g}" for g in self._gamma)
        return f"{type(self).__name__}(gamma=[{gammas}])"


class MassFractionMixtureEOS(_MixtureEOS):
    """
    Mixture of perfect gases in thermal equilibrium (four-equation model).

    gamma_mix = sum(Y_k cp_k) / sum(Y_k cv_k)
    """

    def effective_gamma(self, fractions):
        self._check_fractions(fractions)
        with np.errstate(invalid='ignore', divide='ignore'):
            return self._weighted(self._cp, fractions) / self._weighted(self._cv, fractions)


class VolumeFractionMixtureEOS(_MixtureEOS):
    """
    Isobaric closure of the five-equation (Allaire) model.

    1 / (gamma_mix - 1) = sum(alpha_k / (gamma_k - 1))
    """

    def effective_gamma(self, fractions):
        self._check_fractions(fractions)
        xi = self._weighted(1.0 / (self._gamma - 1), fractions)
        with np.errstate(invalid='ignore', divide='ignore'):
            return 1.0 + 1.0 / xi
