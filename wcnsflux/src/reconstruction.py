"""
Low-order interface reconstruction and the midpoint-to-face flux combination.
"""

import numpy as np
from typing import Tuple

# F_hat = a0 F_{i+1/2} + a1 (F_{i+3/2} + F_{i-1/2}) + a2 (F_{i+5/2} + F_{i-3/2})
EXPLICIT6_COEFFICIENTS = (1067 / 960, -29 / 480, 3 / 640)

# Midpoints needed beyond the face range on each side, per combination
COMBINATION_EXTRA_FACES = {
    'midpoint': 0,
    'explicit6': 2,
}


def reconstruct_first_order(stencil: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    First-order reconstruction (piecewise constant) - most stable.

    Uses the values of the two cells adjacent to the interface, i.e. the
    innermost points of an even-width stencil.

    Args:
        stencil: Stencil values with the stencil point on axis 0, shape (width, ...)

    Returns:
        VL: Left state at each interface
        VR: Right state at each interface
    """
    half = stencil.shape[0] // 2
    return stencil[half - 1].copy(), stencil[half].copy()


def combine_midpoint_fluxes(F: np.ndarray, axis: int, combination: str = 'explicit6') -> np.ndarray:
    """
    Combine midpoint fluxes into conservative face fluxes.

    Args:
        F: Midpoint values, widened by COMBINATION_EXTRA_FACES[combination]
           entries on each side along `axis`
        axis: Axis of F running across the faces
        combination: 'midpoint' (identity) or 'explicit6'

    Returns:
        Face values with the extra entries removed along `axis`
    """
    if combination == 'midpoint':
        return F
    if combination != 'explicit6':
        raise ValueError(f"Unknown flux combination: {combination}")

    extra = COMBINATION_EXTRA_FACES[combination]
    n = F.shape[axis] - 2 * extra
    if n < 1:
        raise ValueError(f"Need at least {2 * extra + 1} midpoints along axis {axis}, got {F.shape[axis]}")

    def shifted(offset):
        index = [slice(None)] * F.ndim
        index[axis] = slice(extra + offset, extra + offset + n)
        return F[tuple(index)]

    a0, a1, a2 = EXPLICIT6_COEFFICIENTS
    return (a0 * shifted(0)
            + a1 * (shifted(1) + shifted(-1))
            + a2 * (shifted(2) + shifted(-2)))
