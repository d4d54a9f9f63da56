"""
Exception types for the flux-reconstruction kernel.

Recoverable degradations (first-order fallback, HLLC -> HLL) never raise;
only configuration problems, equation-of-state domain errors and
non-physical states reaching the Riemann solver do.
"""

from typing import List, Optional, Sequence, Tuple


class FluxKernelError(Exception):
    """Base class for all kernel errors."""


class ConfigurationError(FluxKernelError, ValueError):
    """Raised for invalid scheme constants or an unusable patch layout."""


class EquationOfStateError(FluxKernelError, ValueError):
    """Raised when density is non-positive or internal energy is negative."""


class NonPhysicalStateError(FluxKernelError, ArithmeticError):
    """
    A left or right state without a positive, finite sound speed reached
    the Riemann solver after all fallbacks.

    Attributes:
        direction: Spatial direction of the offending interfaces (or None)
        interfaces: Interface indices; flat batch positions when raised by the
                    Riemann solver, grid multi-indices once the orchestrator
                    has attached its context
        flow_model: Name of the flow model variant (or None)
    """

    def __init__(self, message: str, interfaces: Sequence = (),
                 direction: Optional[int] = None, flow_model: Optional[str] = None):
        self.reason = message
        self.interfaces: List = list(interfaces)
        self.direction = direction
        self.flow_model = flow_model
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.reason]
        if self.flow_model is not None:
            parts.append(f"flow model={self.flow_model}")
        if self.direction is not None:
            parts.append(f"direction={self.direction}")
        if self.interfaces:
            shown = ", ".join(str(i) for i in self.interfaces[:8])
            if len(self.interfaces) > 8:
                shown += f", ... ({len(self.interfaces)} total)"
            parts.append(f"interfaces=[{shown}]")
        return "; ".join(parts)

    def with_context(self, direction: int, interfaces: List[Tuple[int, ...]],
                     flow_model: str) -> 'NonPhysicalStateError':
        """Return a copy of this error tagged with grid coordinates."""
        return NonPhysicalStateError(self.reason, interfaces=interfaces,
                                     direction=direction, flow_model=flow_model)
