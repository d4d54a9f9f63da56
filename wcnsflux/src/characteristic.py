"""
Characteristic decomposition of the flux Jacobian in primitive variables.

For a direction with normal velocity u_n the eigenvalues, sorted ascending, are

    u_n - c,  u_n (density block, tangential velocities, fractions),  u_n + c

The left eigenvectors (rows of the projection matrix L) are

    u_n - c      :  -rho*c/2 * d(u_n) + 1/2 * dp
    density k    :  d(rho_k) - (rho_k/rho) / c^2 * dp
    tangential   :  d(u_t)
    fraction     :  d(fraction)
    u_n + c      :   rho*c/2 * d(u_n) + 1/2 * dp

and R = L^-1 is assembled in closed form. Only rho, c and the
density-block weights rho_k/rho of the reference state enter, so the same
construction serves every flow model and equation of state.
"""

import logging

import numpy as np
from typing import NamedTuple, Tuple

from .errors import ConfigurationError
from .flow_model import FlowModel

logger = logging.getLogger(__name__)

REFERENCE_AVERAGES = ('simple', 'roe')


class ReferenceState(NamedTuple):
    """Reference state of a batch of interfaces."""
    rho: np.ndarray         # (n_faces,)
    c: np.ndarray           # (n_faces,)
    u_n: np.ndarray         # (n_faces,)
    weights: np.ndarray     # (n_density, n_faces), rho_k / rho


def compute_reference_state(model: FlowModel, V_minus: np.ndarray, V_plus: np.ndarray,
                            direction: int, averaging: str = 'simple') -> ReferenceState:
    """
    Reference state between the two cells adjacent to each interface.

    'simple' averages the conserved states arithmetically. 'roe' uses
    sqrt(rho) weights for velocities, fractions and c^2, with the geometric
    mean for the density.

    Args:
        model: Flow model
        V_minus, V_plus: Primitive states left and right of each interface, (n_eqn, n_faces)
        direction: Spatial direction
        averaging: 'simple' or 'roe'
    """
    n = model.normal_velocity_index(direction)
    with np.errstate(invalid='ignore', divide='ignore'):
        if averaging == 'simple':
            U_bar = 0.5 * (model.primitive_to_conserved(V_minus)
                           + model.primitive_to_conserved(V_plus))
            V_bar = model.conserved_to_primitive(U_bar)
            c = model.sound_speed_primitive(V_bar)
        elif averaging == 'roe':
            rho_L = model.total_density(V_minus)
            rho_R = model.total_density(V_plus)
            sL = np.sqrt(rho_L)
            sR = np.sqrt(rho_R)
            wL = sL / (sL + sR)
            wR = sR / (sL + sR)
            V_bar = wL * V_minus + wR * V_plus
            V_bar[model.density_slice] = (sL * sR) * (wL * model.density_weights(V_minus)
                                                      + wR * model.density_weights(V_plus))
            c_L = model.sound_speed_primitive(V_minus)
            c_R = model.sound_speed_primitive(V_plus)
            c = np.sqrt(wL * c_L**2 + wR * c_R**2)
        else:
            raise ConfigurationError(
                f"Unknown reference average: {averaging}. Options: {', '.join(REFERENCE_AVERAGES)}")

        rho = model.total_density(V_bar)
        return ReferenceState(rho=rho, c=c, u_n=V_bar[n],
                              weights=model.density_weights(V_bar))


class CharacteristicProjector:
    """
    Builds projection matrices between primitive variables and
    characteristic fields for one flow model.
    """

    def __init__(self, model: FlowModel):
        self.model = model

    def eigenvalues(self, u_n: np.ndarray, c: np.ndarray) -> np.ndarray:
        """Eigenvalues in the ordering of the characteristic fields, shape (n_eqn, ...)."""
        lam = np.repeat(np.asarray(u_n, dtype=float)[np.newaxis], self.model.n_eqn, axis=0)
        lam[0] -= c
        lam[-1] += c
        return lam

    def _row_layout(self, direction: int):
        """Primitive index carried by each passive characteristic row (rows 1 .. n_eqn-2)."""
        m = self.model
        density = list(range(m.n_density))
        tangential = m.tangential_velocity_indices(direction)
        fractions = list(range(m.fraction_slice.start, m.n_eqn))
        return density, tangential, fractions

    def projection_matrices(self, ref: ReferenceState,
                            direction: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Projection matrix L and its inverse R at each reference state.

        Interfaces whose reference density is non-positive or whose sound
        speed is not positive and finite get identity matrices and are
        flagged invalid; the caller reconstructs them at first order.

        Returns:
            L: (n_faces, n_eqn, n_eqn), primitive -> characteristic
            R: (n_faces, n_eqn, n_eqn), characteristic -> primitive
            valid: (n_faces,) bool
        """
        m = self.model
        n_eqn = m.n_eqn
        n_faces = ref.rho.shape[0]
        n = m.normal_velocity_index(direction)
        ip = m.pressure_index

        with np.errstate(invalid='ignore'):
            valid = (np.isfinite(ref.rho) & (ref.rho > 0) & np.isfinite(ref.c) & (ref.c > 0)
                     & np.all(np.isfinite(ref.weights), axis=0))

        rho = np.where(valid, ref.rho, 1.0)
        c = np.where(valid, ref.c, 1.0)
        weights = np.where(valid, ref.weights, 0.0)
        rho_c = rho * c
        inv_c2 = 1.0 / c**2

        L = np.zeros((n_faces, n_eqn, n_eqn))
        R = np.zeros((n_faces, n_eqn, n_eqn))

        # Acoustic waves: first and last field
        L[:, 0, n] = -0.5 * rho_c
        L[:, 0, ip] = 0.5
        L[:, -1, n] = 0.5 * rho_c
        L[:, -1, ip] = 0.5

        R[:, n, 0] = -1.0 / rho_c
        R[:, ip, 0] = 1.0
        R[:, n, -1] = 1.0 / rho_c
        R[:, ip, -1] = 1.0

        density, tangential, fractions = self._row_layout(direction)
        row = 1
        for k in density:
            L[:, row, k] = 1.0
            L[:, row, ip] = -weights[k] * inv_c2
            R[:, k, row] = 1.0
            R[:, k, 0] = weights[k] * inv_c2
            R[:, k, -1] = weights[k] * inv_c2
            row += 1
        for idx in tangential + fractions:
            L[:, row, idx] = 1.0
            R[:, idx, row] = 1.0
            row += 1

        if not np.all(valid):
            eye = np.eye(n_eqn)
            L[~valid] = eye
            R[~valid] = eye

        return L, R, valid

    @staticmethod
    def to_characteristic(L: np.ndarray, V: np.ndarray) -> np.ndarray:
        """
        Project primitive variables onto characteristic fields.

        Args:
            L: (n_faces, n_eqn, n_eqn)
            V: (n_eqn, ..., n_faces), e.g. a stencil batch (n_eqn, 6, n_faces)
        """
        return np.einsum('fij,j...f->i...f', L, V)

    @staticmethod
    def to_primitive(R: np.ndarray, W: np.ndarray) -> np.ndarray:
        """Inverse of `to_characteristic`."""
        return np.einsum('fij,j...f->i...f', R, W)
