"""
Source term classes for the flux-reconstruction kernel.

Extensible architecture allowing algebraic sources (hyperbolization,
geometric or reaction terms) to be summed into the cell-centred source
array returned next to the interface fluxes.

Notation:
    U   - conserved variable array, (n_eqn, *interior_shape)
    V   - primitive variable array, same shape
    S   - source rate array (same shape as U)
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

from .flow_model import FlowModel


@dataclass
class SourceContext:
    """
    Data available to source terms after all fluxes of a patch are known.

    - model: Flow model variant
    - U: Interior conserved variables (n_eqn, *interior_shape)
    - V: Interior primitive variables (n_eqn, *interior_shape)
    - face_velocities: Interface normal velocity per direction, each of the
      direction's face shape (one more entry than cells along it)
    - dx: Cell widths per direction
    """
    model: FlowModel
    U: np.ndarray
    V: np.ndarray
    face_velocities: Tuple[np.ndarray, ...]
    dx: Tuple[float, ...]

    @property
    def interior_shape(self) -> Tuple[int, ...]:
        return self.U.shape[1:]

    def zeros(self) -> np.ndarray:
        return np.zeros_like(self.U, dtype=float)


class SourceTerm(ABC):
    """Abstract base class for source terms."""

    @abstractmethod
    def compute(self, context: SourceContext) -> np.ndarray:
        """
        Compute source term contribution.

        Args:
            context: Interior state and interface data of the patch

        Returns:
            S: Source rate array of shape (n_eqn, *interior_shape)
        """
        pass


class VolumeFractionSourceTerm(SourceTerm):
    """
    Source due to hyperbolization of the volume-fraction equations.

    The five-equation model advects alpha with d(alpha)/dt + u . grad(alpha) = 0,
    written as d(alpha)/dt + div(alpha u) = alpha div(u). The Riemann solver
    supplies alpha * u_face as flux; this term adds alpha div(u) built from
    the same interface velocities, so a uniform alpha stays uniform.
    """

    def compute(self, context: SourceContext) -> np.ndarray:
        model = context.model
        S = context.zeros()
        if model.n_fractions == 0:
            return S

        div_u = np.zeros(context.interior_shape)
        for d, (u_face, h) in enumerate(zip(context.face_velocities, context.dx)):
            div_u += np.diff(u_face, axis=d) / h

        S[model.fraction_slice] = context.V[model.fraction_slice] * div_u
        return S


class CompositeSourceTerm(SourceTerm):
    """Combines multiple source terms."""

    def __init__(self, sources: List[SourceTerm] = None):
        self.sources = sources if sources is not None else []

    def add(self, source: SourceTerm):
        """Add a source term to the composite."""
        self.sources.append(source)

    def __len__(self):
        return len(self.sources)

    def compute(self, context: SourceContext) -> np.ndarray:
        if not self.sources:
            return context.zeros()

        S_total = self.sources[0].compute(context)
        for source in self.sources[1:]:
            S_total = S_total + source.compute(context)
        return S_total
