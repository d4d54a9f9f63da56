"""
Approximate Riemann solvers for the interface fluxes.

Optimized with vectorized HLLC/HLL flux computation over batches of
interfaces. States are primitive vectors laid out by the flow model,
shape (n_eqn, n_faces).
"""

import logging

import numpy as np
from abc import ABC, abstractmethod
from typing import NamedTuple

from .config import RiemannConfig
from .errors import ConfigurationError, NonPhysicalStateError
from .flow_model import FlowModel

logger = logging.getLogger(__name__)


class RiemannFlux(NamedTuple):
    """Result of a Riemann solve over a batch of interfaces."""
    flux: np.ndarray            # (n_eqn, n_faces)
    velocity: np.ndarray        # (n_faces,) interface normal velocity
    max_wave_speed: np.ndarray  # (n_faces,) max(|S_L|, |S_R|)
    hll_fallback: np.ndarray    # (n_faces,) bool, HLLC star state rejected


class _Side(NamedTuple):
    V: np.ndarray
    U: np.ndarray
    F: np.ndarray
    rho: np.ndarray
    u_n: np.ndarray
    p: np.ndarray
    c: np.ndarray


def wave_speed_estimates(rho_L, u_L, c_L, rho_R, u_R, c_R):
    """
    Einfeldt (HLLE) wave speed estimates.

    Uses sqrt(rho)-weighted averages of the velocity and of c^2 plus the
    velocity-jump correction, so no equation-of-state-specific Roe average
    is needed.
    """
    sqrt_rhoL = np.sqrt(rho_L)
    sqrt_rhoR = np.sqrt(rho_R)
    denom_inv = 1.0 / (sqrt_rhoL + sqrt_rhoR)

    u_roe = (sqrt_rhoL * u_L + sqrt_rhoR * u_R) * denom_inv
    eta2 = 0.5 * sqrt_rhoL * sqrt_rhoR * denom_inv**2
    c_roe = np.sqrt((sqrt_rhoL * c_L**2 + sqrt_rhoR * c_R**2) * denom_inv
                    + eta2 * (u_R - u_L)**2)

    SL = np.minimum(u_L - c_L, u_roe - c_roe)
    SR = np.maximum(u_R + c_R, u_roe + c_roe)
    return SL, SR


def pressure_wave_speed_estimates(rho_L, u_L, p_L, c_L, rho_R, u_R, p_R, c_R):
    """
    Pressure-based wave speed estimates (Toro, section 10.5.2).

    The star pressure is the linearized (PVRS) guess, refined by the
    two-shock approximation where at least one wave is a shock. Each
    acoustic speed u -+ c is then widened by the shock factor
    q_K = sqrt(1 + (gamma_K + 1) / (2 gamma_K) (p* / p_K - 1)) for p* > p_K.
    gamma_K = rho_K c_K^2 / p_K is the effective ratio of specific heats.
    """
    gamma_L = rho_L * c_L**2 / p_L
    gamma_R = rho_R * c_R**2 / p_R

    p_pvrs = 0.5 * (p_L + p_R) - 0.125 * (u_R - u_L) * (rho_L + rho_R) * (c_L + c_R)
    p_pvrs = np.maximum(p_pvrs, 0.0)

    g_L = np.sqrt(2 / ((gamma_L + 1) * rho_L) / (p_pvrs + (gamma_L - 1) / (gamma_L + 1) * p_L))
    g_R = np.sqrt(2 / ((gamma_R + 1) * rho_R) / (p_pvrs + (gamma_R - 1) / (gamma_R + 1) * p_R))
    p_tsrs = np.maximum((g_L * p_L + g_R * p_R - (u_R - u_L)) / (g_L + g_R), 0.0)

    p_star = np.where(p_pvrs <= np.minimum(p_L, p_R), p_pvrs, p_tsrs)

    q_L = np.sqrt(1 + (gamma_L + 1) / (2 * gamma_L) * np.maximum(p_star / p_L - 1, 0.0))
    q_R = np.sqrt(1 + (gamma_R + 1) / (2 * gamma_R) * np.maximum(p_star / p_R - 1, 0.0))
    return u_L - c_L * q_L, u_R + c_R * q_R


class FluxScheme(ABC):
    """Abstract base class for numerical flux schemes."""

    name = ''

    def __init__(self, model: FlowModel, config: RiemannConfig = None):
        self.model = model
        self.config = config if config is not None else RiemannConfig()

    @abstractmethod
    def compute_flux_vectorized(self, VL: np.ndarray, VR: np.ndarray,
                                direction: int) -> RiemannFlux:
        """
        Compute numerical fluxes at all faces (vectorized).

        Args:
            VL: Left primitive states (n_eqn, n_faces)
            VR: Right primitive states (n_eqn, n_faces)
            direction: Spatial direction of the face normal

        Returns:
            RiemannFlux with fluxes (n_eqn, n_faces)

        Raises:
            NonPhysicalStateError: If either side lacks a positive, finite
                sound speed; `interfaces` holds the offending batch positions
        """

    def compute_flux(self, VL: np.ndarray, VR: np.ndarray, direction: int) -> RiemannFlux:
        """Single-face flux computation."""
        result = self.compute_flux_vectorized(VL.reshape(-1, 1), VR.reshape(-1, 1), direction)
        return RiemannFlux(*(np.squeeze(a, axis=-1) for a in result))

    # --- Shared pieces ---

    def _side(self, V: np.ndarray, direction: int) -> _Side:
        m = self.model
        U = m.primitive_to_conserved(V)
        return _Side(V=V, U=U, F=m.physical_flux(V, direction, U),
                     rho=m.total_density(V), u_n=V[m.normal_velocity_index(direction)],
                     p=V[m.pressure_index], c=m.sound_speed_primitive(V))

    def _check_states(self, VL: np.ndarray, VR: np.ndarray):
        bad = ~(self.model.is_physical(VL) & self.model.is_physical(VR))
        if np.any(bad):
            raise NonPhysicalStateError(
                "non-positive density or pressure, or no finite positive sound speed, "
                "at Riemann solver input",
                interfaces=np.flatnonzero(bad).tolist())

    def _sides(self, VL, VR, direction):
        self.model.check_direction(direction)
        self._check_states(VL, VR)
        L = self._side(VL, direction)
        R = self._side(VR, direction)
        SL, SR = wave_speed_estimates(L.rho, L.u_n, L.c, R.rho, R.u_n, R.c)
        if self.config.wave_speeds == 'pressure':
            # Never narrower than the Einfeldt bounds, so HLL stays positivity preserving
            SL_p, SR_p = pressure_wave_speed_estimates(L.rho, L.u_n, L.p, L.c,
                                                       R.rho, R.u_n, R.p, R.c)
            SL = np.minimum(SL, SL_p)
            SR = np.maximum(SR, SR_p)
        return L, R, SL, SR

    @staticmethod
    def _hll(L: _Side, R: _Side, SL: np.ndarray, SR: np.ndarray):
        """Two-wave HLL flux; clamping the speeds at zero covers the supersonic branches."""
        SLm = np.minimum(SL, 0.0)
        SRp = np.maximum(SR, 0.0)
        inv = 1.0 / (SRp - SLm)
        F = (SRp * L.F - SLm * R.F + SLm * SRp * (R.U - L.U)) * inv
        u_face = (SRp * L.u_n - SLm * R.u_n) * inv
        return F, u_face


class HLLFlux(FluxScheme):
    """
    HLL flux with Einfeldt wave speeds.

    Very robust and positivity preserving, but smears contact
    discontinuities.
    """

    name = 'HLL'

    def compute_flux_vectorized(self, VL, VR, direction):
        L, R, SL, SR = self._sides(VL, VR, direction)
        F, u_face = self._hll(L, R, SL, SR)
        return RiemannFlux(flux=F, velocity=u_face,
                           max_wave_speed=np.maximum(np.abs(SL), np.abs(SR)),
                           hll_fallback=np.zeros(F.shape[1], dtype=bool))


class HLLCFlux(FluxScheme):
    """
    HLLC approximate Riemann solver with vectorized implementation.

    Resolves contact discontinuities. Where the star state is not usable
    (non-finite contact speed, negative star pressure, or S_L < S* < S_R
    violated) the two-wave HLL flux is used instead.
    """

    name = 'HLLC'

    def compute_flux_vectorized(self, VL, VR, direction):
        L, R, SL, SR = self._sides(VL, VR, direction)
        F, u_face, fallback = self._hllc(L, R, SL, SR, direction)
        return RiemannFlux(flux=F, velocity=u_face,
                           max_wave_speed=np.maximum(np.abs(SL), np.abs(SR)),
                           hll_fallback=fallback)

    def _star_flux(self, K: _Side, S: np.ndarray, S_star: np.ndarray,
                   direction: int) -> np.ndarray:
        """F*_K = F_K + S_K (U*_K - U_K)."""
        m = self.model
        n = m.normal_velocity_index(direction)
        coeff = (S - K.u_n) / (S - S_star)

        U_star = np.empty_like(K.U)
        U_star[m.density_slice] = coeff * K.U[m.density_slice]
        U_star[m.momentum_slice] = coeff * K.rho * K.V[m.velocity_slice]
        U_star[n] = coeff * K.rho * S_star
        U_star[m.energy_index] = coeff * (K.U[m.energy_index] + (S_star - K.u_n) *
                                          (K.rho * S_star + K.p / (S - K.u_n)))
        if m.fractions_conservative:
            U_star[m.fraction_slice] = coeff * K.U[m.fraction_slice]
        else:
            # Volume fractions do not jump across acoustic waves
            U_star[m.fraction_slice] = K.U[m.fraction_slice]

        return K.F + S * (U_star - K.U)

    def _hllc(self, L: _Side, R: _Side, SL, SR, direction):
        m = self.model

        with np.errstate(invalid='ignore', divide='ignore', over='ignore'):
            # Contact wave speed and the pressure it implies
            S_star = ((R.p - L.p + L.rho * L.u_n * (SL - L.u_n) - R.rho * R.u_n * (SR - R.u_n)) /
                      (L.rho * (SL - L.u_n) - R.rho * (SR - R.u_n)))
            p_star = L.p + L.rho * (SL - L.u_n) * (S_star - L.u_n)

            F_star_L = self._star_flux(L, SL, S_star, direction)
            F_star_R = self._star_flux(R, SR, S_star, direction)

        mask_left = SL >= 0
        mask_right = (SR <= 0) & ~mask_left
        mask_star_left = ~mask_left & ~mask_right & (S_star >= 0)

        F = np.where(mask_left, L.F,
                     np.where(mask_right, R.F,
                              np.where(mask_star_left, F_star_L, F_star_R)))
        u_face = np.where(mask_left, L.u_n, np.where(mask_right, R.u_n, S_star))

        if not m.fractions_conservative:
            upwind_left = mask_left | mask_star_left
            alpha = np.where(upwind_left, L.V[m.fraction_slice], R.V[m.fraction_slice])
            F[m.fraction_slice] = u_face * alpha

        with np.errstate(invalid='ignore'):
            star_valid = (np.isfinite(S_star) & np.isfinite(p_star) & (p_star >= 0)
                          & (SL < S_star) & (S_star < SR))
        fallback = ~mask_left & ~mask_right & ~star_valid

        if np.any(fallback):
            F_hll, u_hll = self._hll(L, R, SL, SR)
            F = np.where(fallback, F_hll, F)
            u_face = np.where(fallback, u_hll, u_face)
            logger.debug("HLLC star state rejected at %d interface(s), using HLL",
                         int(np.count_nonzero(fallback)))

        return F, u_face, fallback


class HLLCHLLFlux(HLLCFlux):
    """
    Hybrid HLLC-HLL flux for multi-dimensional flows.

    F = beta1 * F_HLLC + beta2 * F_HLL, where beta1 and beta2 are the shares
    of the normal and transverse components in the velocity jump across the
    interface. Pure HLLC in 1-D and where the velocity jump vanishes.
    """

    name = 'HLLC-HLL'

    def compute_flux_vectorized(self, VL, VR, direction):
        L, R, SL, SR = self._sides(VL, VR, direction)
        F, u_face, fallback = self._hllc(L, R, SL, SR, direction)

        beta1 = self._blending_weight(VL, VR, direction)
        if np.any(beta1 < 1.0):
            F_hll, u_hll = self._hll(L, R, SL, SR)
            F = beta1 * F + (1.0 - beta1) * F_hll
            u_face = beta1 * u_face + (1.0 - beta1) * u_hll

        return RiemannFlux(flux=F, velocity=u_face,
                           max_wave_speed=np.maximum(np.abs(SL), np.abs(SR)),
                           hll_fallback=fallback)

    def _blending_weight(self, VL, VR, direction) -> np.ndarray:
        m = self.model
        n_faces = VL.shape[1]
        if m.dim == 1:
            return np.ones(n_faces)

        dv = VR[m.velocity_slice] - VL[m.velocity_slice]
        dv_n = dv[direction]
        norm2 = np.sum(dv**2, axis=0)
        norm = np.sqrt(norm2)

        a1 = np.abs(dv_n)
        a2 = np.sqrt(np.maximum(norm2 - dv_n**2, 0.0))
        blend = norm > self.config.velocity_tolerance
        with np.errstate(invalid='ignore', divide='ignore'):
            return np.where(blend, a1 / (a1 + a2), 1.0)


FLUX_SCHEMES = {
    'HLLC-HLL': HLLCHLLFlux,
    'HLLC': HLLCFlux,
    'HLL': HLLFlux,
}


def create_riemann_solver(model: FlowModel, config: RiemannConfig = None) -> FluxScheme:
    config = config if config is not None else RiemannConfig()
    try:
        cls = FLUX_SCHEMES[config.solver]
    except KeyError:
        raise ConfigurationError(f"Unknown Riemann solver: {config.solver}") from None
    return cls(model, config)
