"""
Nonlinear WENO interpolation of point values to the cell midpoint.

A six-point stencil W_0 .. W_5 (cells j-2 .. j+3) is interpolated to the
interface j+1/2 from four three-point sub-stencils

    S_0 = {j-2, j-1, j},  S_1 = {j-1, j, j+1},  S_2 = {j, j+1, j+2},  S_3 = {j+1, j+2, j+3}

whose quadratic interpolants combine with the linear weights

    central (sixth order):  (1/32, 15/32, 15/32, 1/32)
    upwind  (fifth order):  (1/16, 10/16,  5/16,    0)

to the published explicit midpoint interpolations
(3, -25, 150, 150, -25, 3)/256 and (3, -20, 90, 60, -5)/128.

Nonlinear weights follow omega_k ~ d_k / (eps + beta_k)^q, i.e. (C_k / (eps + beta_k))^q
with C_k^q = d_k. The downwind indicator is replaced by the largest of the
four (symmetric WENO) so the downwind stencil only contributes where the
whole stencil is smooth. All four indicators measure the derivative at
W_2. A dissipation parameter sigma, built from the indicators of the two
outermost sub-stencils, blends the linear weights from central (sigma = 0)
towards upwind (sigma = 1). The weights are then remapped (Henrick et al.)
so that they approach the linear weights to third order in smooth flow.

The right-biased value at the same interface uses the mirrored stencil,
i.e. beta_tilde are the indicators of W reversed.

Setting C switches to the localized-dissipation weights of Wong and Lele,

    alpha_k = d_k (C + tau / (eps + beta_k))^q,
    tau = |beta_6 - (beta_0 + 4 beta_1 + beta_2) / 6|,

where beta_6 is the indicator of the full six-point stencil (Hu, Wang and
Adams, WENO-CU6). tau is O(h^6) in smooth flow, so a large C keeps the
weights at their linear values there. Setting alpha_tau switches the
dissipation off (sigma = 0) wherever tau / beta_avg < alpha_tau on both
sides of the interface, with beta_avg = (beta_0 + 6 beta_1 + beta_2) / 8.
"""

import logging

import numpy as np
from typing import NamedTuple

from .config import WENOConfig

logger = logging.getLogger(__name__)

# Quadratic interpolants of the sub-stencils evaluated at the midpoint,
# rows: sub-stencil, columns: W_0 .. W_5
CANDIDATE_COEFFICIENTS = np.array([
    [3 / 8, -5 / 4, 15 / 8, 0.0, 0.0, 0.0],
    [0.0, -1 / 8, 3 / 4, 3 / 8, 0.0, 0.0],
    [0.0, 0.0, 3 / 8, 3 / 4, -1 / 8, 0.0],
    [0.0, 0.0, 0.0, 15 / 8, -5 / 4, 3 / 8],
])

LINEAR_WEIGHTS_CENTRAL = np.array([1 / 32, 15 / 32, 15 / 32, 1 / 32])
LINEAR_WEIGHTS_UPWIND = np.array([1 / 16, 10 / 16, 5 / 16, 0.0])


class WENOResult(NamedTuple):
    """Interpolated values on both sides of each interface."""
    minus: np.ndarray       # left-biased value
    plus: np.ndarray        # right-biased value
    fallback: np.ndarray    # bool, entries reconstructed at first order


class WENOInterpolator:
    """
    Sixth-order nonlinear interpolation with localized dissipation.

    All methods take stencils with the stencil point on axis 0,
    W of shape (6, ...), and operate independently on every trailing entry.
    """

    stencil_width = 6

    def __init__(self, config: WENOConfig = None):
        self.config = config if config is not None else WENOConfig()

    # --- Smoothness measures ---

    @staticmethod
    def compute_beta(W: np.ndarray) -> np.ndarray:
        """
        Smoothness indicators of the four sub-stencils for the left-biased value.

        Returns an array of shape (4, ...); entry 3 is the raw indicator of
        the downwind sub-stencil (before it is replaced by the maximum).
        """
        W0, W1, W2, W3, W4, W5 = W
        beta = np.empty((4,) + W0.shape)
        beta[0] = 0.25 * (W0 - 4 * W1 + 3 * W2)**2 + 13 / 12 * (W0 - 2 * W1 + W2)**2
        beta[1] = 0.25 * (W1 - W3)**2 + 13 / 12 * (W1 - 2 * W2 + W3)**2
        beta[2] = 0.25 * (3 * W2 - 4 * W3 + W4)**2 + 13 / 12 * (W2 - 2 * W3 + W4)**2
        # Derivative term taken at W_2 like the others
        beta[3] = 0.25 * (-5 * W3 + 8 * W4 - 3 * W5)**2 + 13 / 12 * (W3 - 2 * W4 + W5)**2
        return beta

    def compute_beta_tilde(self, W: np.ndarray) -> np.ndarray:
        """Smoothness indicators for the right-biased value (mirrored stencil)."""
        return self.compute_beta(W[::-1])

    @staticmethod
    def compute_beta6(W: np.ndarray) -> np.ndarray:
        """
        Smoothness indicator of the full six-point stencil, measured on cell W_2.

        Evaluated on W - W_2 (the form annihilates constants), so a uniform
        stencil gives exactly zero.
        """
        g0, g1, _, g3, g4, g5 = W - W[2]
        return (271779 * g0**2
                + g0 * (-2380800 * g1 - 3462252 * g3 + 1458762 * g4 - 245620 * g5)
                + g1 * (5653317 * g1 + 17905032 * g3 - 7727988 * g4 + 1325006 * g5)
                + g3 * (17195652 * g3 - 15880404 * g4 + 2863984 * g5)
                + g4 * (3824847 * g4 - 1429976 * g5)
                + 139633 * g5**2) / 120960

    def compute_tau(self, W: np.ndarray, beta: np.ndarray = None) -> np.ndarray:
        """Reference smoothness tau = |beta_6 - (beta_0 + 4 beta_1 + beta_2) / 6|."""
        if beta is None:
            beta = self.compute_beta(W)
        return np.abs(self.compute_beta6(W) - (beta[0] + 4 * beta[1] + beta[2]) / 6)

    def compute_sigma(self, W: np.ndarray, beta: np.ndarray = None,
                      beta_tilde: np.ndarray = None, tau: np.ndarray = None,
                      tau_tilde: np.ndarray = None) -> np.ndarray:
        """
        Dissipation parameter in [0, 1], one value per stencil.

        sigma = (|beta_0 - beta_tilde_0| / (beta_0 + beta_tilde_0 + eps))^p
        compares the two outermost sub-stencils. It is symmetric under
        mirroring, so both sides of an interface share it. With alpha_tau
        set, sigma is zero where neither side exceeds the tau threshold.
        """
        if beta is None:
            beta = self.compute_beta(W)
        if beta_tilde is None:
            beta_tilde = self.compute_beta_tilde(W)
        eps = self.config.epsilon
        with np.errstate(invalid='ignore'):
            r = np.abs(beta[0] - beta_tilde[0]) / (beta[0] + beta_tilde[0] + eps)
            sigma = np.minimum(r, 1.0)**self.config.p

        alpha_tau = self.config.alpha_tau
        if alpha_tau is None:
            return sigma

        if tau is None:
            tau = self.compute_tau(W, beta)
        if tau_tilde is None:
            tau_tilde = self.compute_tau(W[::-1], beta_tilde)
        with np.errstate(invalid='ignore'):
            R = np.maximum(tau / (self._beta_avg(beta) + eps),
                           tau_tilde / (self._beta_avg(beta_tilde) + eps))
        return np.where(R >= alpha_tau, sigma, 0.0)

    @staticmethod
    def _beta_avg(beta: np.ndarray) -> np.ndarray:
        return (beta[0] + 6 * beta[1] + beta[2]) / 8

    @property
    def localized_dissipation(self) -> bool:
        """Whether tau enters the weights or sigma."""
        return self.config.C is not None or self.config.alpha_tau is not None

    def linear_weights(self, sigma: np.ndarray) -> np.ndarray:
        """Linear weights d_k(sigma), shape (4, ...)."""
        mode = self.config.linear_weights
        shape = (4,) + (1,) * np.ndim(sigma)
        central = LINEAR_WEIGHTS_CENTRAL.reshape(shape)
        upwind = LINEAR_WEIGHTS_UPWIND.reshape(shape)
        if mode == 'central':
            return np.broadcast_to(central, (4,) + np.shape(sigma))
        if mode == 'upwind':
            return np.broadcast_to(upwind, (4,) + np.shape(sigma))
        return (1 - sigma) * central + sigma * upwind

    # --- Weights ---

    def nonlinear_weights(self, beta: np.ndarray, d: np.ndarray,
                          tau: np.ndarray = None) -> np.ndarray:
        """
        Normalized nonlinear weights omega_k, shape (4, ...).

        `beta` must already hold the replaced downwind indicator. `tau` is
        only used with C set; it defaults to zero, i.e. linear weights.
        """
        eps = self.config.epsilon
        q = self.config.q
        if self.config.C is None:
            # Scaling by the smallest indicator leaves omega unchanged and keeps alpha <= d
            beta_min = np.min(beta, axis=0)
            alpha = d * ((eps + beta_min) / (eps + beta))**q
        else:
            if tau is None:
                tau = np.zeros(beta.shape[1:])
            r = self.config.C + tau / (eps + beta)
            alpha = d * (r / np.max(r, axis=0))**q
        omega = alpha / np.sum(alpha, axis=0)
        if self.config.mapped:
            omega = self._map_weights(omega, d)
        return omega

    @staticmethod
    def _map_weights(omega: np.ndarray, d: np.ndarray) -> np.ndarray:
        # Henrick mapping g(w) = w (d + d^2 - 3 d w + w^2) / (d^2 + w (1 - 2 d))
        with np.errstate(invalid='ignore', divide='ignore'):
            g = omega * (d + d**2 - 3 * d * omega + omega**2) / (d**2 + omega * (1 - 2 * d))
        g = np.where(d > 0, g, 0.0)
        return g / np.sum(g, axis=0)

    # --- Interpolation ---

    @staticmethod
    def _candidate_increments(W: np.ndarray) -> np.ndarray:
        """Sub-stencil interpolants minus W_2, written in differences so constants cancel exactly."""
        W0, W1, W2, W3, W4, W5 = W
        d10 = W0 - W1
        d21 = W1 - W2
        d32 = W3 - W2
        d42 = W4 - W2
        d52 = W5 - W2
        delta = np.empty((4,) + W2.shape)
        delta[0] = 3 / 8 * d10 - 7 / 8 * d21
        delta[1] = -1 / 8 * d21 + 3 / 8 * d32
        delta[2] = 3 / 4 * d32 - 1 / 8 * d42
        delta[3] = 15 / 8 * d32 - 5 / 4 * d42 + 3 / 8 * d52
        return delta

    def _interpolate_one_side(self, W: np.ndarray, beta: np.ndarray,
                              sigma: np.ndarray, tau: np.ndarray = None) -> np.ndarray:
        beta = beta.copy()
        beta[3] = np.max(beta, axis=0)
        omega = self.nonlinear_weights(beta, self.linear_weights(sigma), tau)
        return W[2] + np.sum(omega * self._candidate_increments(W), axis=0)

    def interpolate(self, W: np.ndarray) -> WENOResult:
        """
        Left- and right-biased interpolated values at the interface.

        Entries whose smoothness indicators or results are not finite fall
        back to the nearest cell value (W_2 on the left, W_3 on the right).

        Args:
            W: Stencil values, shape (6, ...)
        """
        W = np.asarray(W, dtype=float)
        if W.shape[0] != self.stencil_width:
            raise ValueError(f"Expected a {self.stencil_width}-point stencil, got {W.shape[0]}")

        with np.errstate(invalid='ignore', over='ignore'):
            beta = self.compute_beta(W)
            beta_tilde = self.compute_beta_tilde(W)
            tau = tau_tilde = None
            if self.localized_dissipation:
                tau = self.compute_tau(W, beta)
                tau_tilde = self.compute_tau(W[::-1], beta_tilde)
            sigma = self.compute_sigma(W, beta, beta_tilde, tau, tau_tilde)

            minus = self._interpolate_one_side(W, beta, sigma, tau)
            plus = self._interpolate_one_side(W[::-1], beta_tilde, sigma, tau_tilde)

        fallback = ~(np.all(np.isfinite(beta), axis=0) & np.all(np.isfinite(beta_tilde), axis=0)
                     & np.isfinite(minus) & np.isfinite(plus))
        if np.any(fallback):
            minus = np.where(fallback, W[2], minus)
            plus = np.where(fallback, W[3], plus)
            logger.debug("WENO first-order fallback on %d field(s)", int(np.count_nonzero(fallback)))

        return WENOResult(minus=minus, plus=plus, fallback=fallback)
