"""
Ghost-padded patch data supplied by the grid collaborator.
"""

import numpy as np
from dataclasses import dataclass
from typing import Tuple

from .errors import ConfigurationError


@dataclass
class Patch:
    """
    Conserved variables on one structured patch, padded with ghost cells.

    - U: Conserved variables, shape (n_eqn, n_0 + 2g[, n_1 + 2g[, n_2 + 2g]])
    - dx: Cell widths per direction
    - n_ghost: Ghost width g on every side

    Derived on construction:
    - dim: Number of spatial dimensions
    - interior_shape: (n_0[, n_1[, n_2]])
    """
    U: np.ndarray
    dx: Tuple[float, ...]
    n_ghost: int

    def __post_init__(self):
        self.U = np.asarray(self.U, dtype=float)
        self.dim = self.U.ndim - 1
        if np.ndim(self.dx) == 0:
            self.dx = (float(self.dx),) * self.dim
        self.dx = tuple(float(h) for h in self.dx)

        if self.dim not in (1, 2, 3):
            raise ConfigurationError(f"Patch must be 1-, 2- or 3-D, got U of shape {self.U.shape}")
        if len(self.dx) != self.dim:
            raise ConfigurationError(f"{self.dim}-D patch needs {self.dim} cell widths, got {self.dx}")
        if any(not h > 0 for h in self.dx):
            raise ConfigurationError(f"Cell widths must be positive, got {self.dx}")
        if self.n_ghost < 0:
            raise ConfigurationError(f"Ghost width must be non-negative, got {self.n_ghost}")

        self.interior_shape = tuple(n - 2 * self.n_ghost for n in self.U.shape[1:])
        if any(n < 1 for n in self.interior_shape):
            raise ConfigurationError(
                f"Patch of shape {self.U.shape[1:]} has no interior cells with ghost width {self.n_ghost}")

    @property
    def n_eqn(self) -> int:
        return self.U.shape[0]

    def interior_slices(self) -> Tuple[slice, ...]:
        g = self.n_ghost
        return tuple(slice(g, g + n) for n in self.interior_shape)

    def interior(self) -> np.ndarray:
        """Read-only view of the interior cells."""
        view = self.U[(slice(None),) + self.interior_slices()]
        view.flags.writeable = False
        return view

    def face_shape(self, direction: int, extra: int = 0) -> Tuple[int, ...]:
        """Shape of the face grid normal to `direction`, widened by `extra` faces per side."""
        shape = list(self.interior_shape)
        shape[direction] += 1 + 2 * extra
        return tuple(shape)

    def stencils(self, direction: int, width: int, extra: int = 0) -> np.ndarray:
        """
        Stencils of `width` cells centred on every face normal to `direction`.

        Face i lies between interior cells i-1 and i; `extra` widens the
        face range by that many faces on each side. The result is a
        read-only strided view of shape (n_eqn, *face_shape, width): no
        data is copied.

        Raises:
            ConfigurationError: If the ghost width cannot cover the stencil
        """
        half = width // 2
        if self.n_ghost < half + extra:
            raise ConfigurationError(
                f"Ghost width {self.n_ghost} is smaller than the {half + extra} cells "
                f"required by the reconstruction stencil")

        g = self.n_ghost
        index = [slice(None)] + list(self.interior_slices())
        n = self.interior_shape[direction]
        index[direction + 1] = slice(g - half - extra, g + n + half + extra)
        region = self.U[tuple(index)]
        windows = np.lib.stride_tricks.sliding_window_view(region, width, axis=direction + 1)
        return windows
