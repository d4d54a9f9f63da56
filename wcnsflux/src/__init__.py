"""
WCNS Flux Reconstruction Package
================================

High-order convective fluxes for the compressible Euler equations on
structured, ghost-padded patches.

Features:
- Single-species, four-equation and five-equation mixture models
- Characteristic decomposition in primitive variables
- Sixth-order WENO interpolation with adaptive dissipation and mapped weights
- HLLC, HLL and hybrid HLLC-HLL Riemann solvers
- Optional explicit sixth-order midpoint-to-face flux combination
- Extensible source term architecture (volume-fraction source built in)

State representation (conservative variables, variables along axis 0):
    density block  - rho, or partial densities alpha_k*rho_k
    momentum       - rho*u per direction
    E              - total energy per volume
    fraction block - rho*Y_k or alpha_k for the first N-1 species

Example:
    model = SingleSpecies(dim=1)
    state = FlowState.from_primitives(model, rho=rho, velocity=u, p=p)

    patch = Patch(U=padded_U, dx=dx, n_ghost=3)
    result = ConvectiveFluxReconstructor(model).compute_fluxes_and_sources(patch)
    dt = result.stable_timestep(cfl=0.5)
"""

from .errors import FluxKernelError, ConfigurationError, EquationOfStateError, NonPhysicalStateError
from .gas import GasProperties, EquationOfState, IdealGasEOS, MassFractionMixtureEOS, VolumeFractionMixtureEOS
from .flow_model import FlowModel, SingleSpecies, FourEquationMixture, FiveEquationMixture, create_flow_model
from .state import FlowState
from .patch import Patch
from .characteristic import CharacteristicProjector, ReferenceState, compute_reference_state
from .weno import WENOInterpolator, WENOResult
from .flux import FluxScheme, HLLFlux, HLLCFlux, HLLCHLLFlux, RiemannFlux, create_riemann_solver
from .sources import SourceTerm, SourceContext, CompositeSourceTerm, VolumeFractionSourceTerm
from .config import WENOConfig, RiemannConfig, ReconstructorConfig
from .instrumentation import Instrumentation, TimerInstrumentation
from .reconstructor import (ConvectiveFluxReconstructor, ConvectiveFluxResult, InterfaceFluxes,
                            compute_fluxes_and_sources)

__all__ = [
    # Errors
    'FluxKernelError',
    'ConfigurationError',
    'EquationOfStateError',
    'NonPhysicalStateError',

    # Equations of state
    'GasProperties',
    'EquationOfState',
    'IdealGasEOS',
    'MassFractionMixtureEOS',
    'VolumeFractionMixtureEOS',

    # Flow models and state
    'FlowModel',
    'SingleSpecies',
    'FourEquationMixture',
    'FiveEquationMixture',
    'create_flow_model',
    'FlowState',
    'Patch',

    # Reconstruction
    'CharacteristicProjector',
    'ReferenceState',
    'compute_reference_state',
    'WENOInterpolator',
    'WENOResult',

    # Flux schemes
    'FluxScheme',
    'HLLFlux',
    'HLLCFlux',
    'HLLCHLLFlux',
    'RiemannFlux',
    'create_riemann_solver',

    # Source terms
    'SourceTerm',
    'SourceContext',
    'CompositeSourceTerm',
    'VolumeFractionSourceTerm',

    # Configuration and hooks
    'WENOConfig',
    'RiemannConfig',
    'ReconstructorConfig',
    'Instrumentation',
    'TimerInstrumentation',

    # Orchestrator
    'ConvectiveFluxReconstructor',
    'ConvectiveFluxResult',
    'InterfaceFluxes',
    'compute_fluxes_and_sources',
]

__version__ = '1.0.0'
