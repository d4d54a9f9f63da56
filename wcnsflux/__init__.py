"""
WCNS Flux Package - High-order convective fluxes for compressible flow
=======================================================================

Re-exports all public components from wcnsflux.src
"""

from wcnsflux.src import (
    # Errors
    FluxKernelError,
    ConfigurationError,
    EquationOfStateError,
    NonPhysicalStateError,
    # Equations of state
    GasProperties,
    EquationOfState,
    IdealGasEOS,
    MassFractionMixtureEOS,
    VolumeFractionMixtureEOS,
    # Flow models and state
    FlowModel,
    SingleSpecies,
    FourEquationMixture,
    FiveEquationMixture,
    create_flow_model,
    FlowState,
    Patch,
    # Reconstruction
    CharacteristicProjector,
    ReferenceState,
    compute_reference_state,
    WENOInterpolator,
    WENOResult,
    # Flux schemes
    FluxScheme,
    HLLFlux,
    HLLCFlux,
    HLLCHLLFlux,
    RiemannFlux,
    create_riemann_solver,
    # Source terms
    SourceTerm,
    SourceContext,
    CompositeSourceTerm,
    VolumeFractionSourceTerm,
    # Configuration and hooks
    WENOConfig,
    RiemannConfig,
    ReconstructorConfig,
    Instrumentation,
    TimerInstrumentation,
    # Orchestrator
    ConvectiveFluxReconstructor,
    ConvectiveFluxResult,
    InterfaceFluxes,
    compute_fluxes_and_sources,
)
from wcnsflux.src import __version__

__all__ = [
    'FluxKernelError',
    'ConfigurationError',
    'EquationOfStateError',
    'NonPhysicalStateError',
    'GasProperties',
    'EquationOfState',
    'IdealGasEOS',
    'MassFractionMixtureEOS',
    'VolumeFractionMixtureEOS',
    'FlowModel',
    'SingleSpecies',
    'FourEquationMixture',
    'FiveEquationMixture',
    'create_flow_model',
    'FlowState',
    'Patch',
    'CharacteristicProjector',
    'ReferenceState',
    'compute_reference_state',
    'WENOInterpolator',
    'WENOResult',
    'FluxScheme',
    'HLLFlux',
    'HLLCFlux',
    'HLLCHLLFlux',
    'RiemannFlux',
    'create_riemann_solver',
    'SourceTerm',
    'SourceContext',
    'CompositeSourceTerm',
    'VolumeFractionSourceTerm',
    'WENOConfig',
    'RiemannConfig',
    'ReconstructorConfig',
    'Instrumentation',
    'TimerInstrumentation',
    'ConvectiveFluxReconstructor',
    'ConvectiveFluxResult',
    'InterfaceFluxes',
    'compute_fluxes_and_sources',
]
