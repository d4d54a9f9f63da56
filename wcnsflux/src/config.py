"""
Configuration for the flux-reconstruction kernel.

Nested sections may be passed as plain dicts, e.g. when loaded from JSON:

    config = ReconstructorConfig.from_json("scheme.json")
    config = ReconstructorConfig(weno={'q': 2, 'mapped': False})
"""

import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .errors import ConfigurationError

LINEAR_WEIGHT_MODES = ('adaptive', 'central', 'upwind')
RIEMANN_SOLVERS = ('HLLC-HLL', 'HLLC', 'HLL')
FLUX_COMBINATIONS = ('midpoint', 'explicit6')
WAVE_SPEED_ESTIMATES = ('pressure', 'einfeldt')


@dataclass
class WENOConfig:
    """Constants of the nonlinear interpolation."""
    epsilon: float = 1e-40          # Regularization of the smoothness indicators
    q: int = 2                      # Sharpening exponent of the nonlinear weights
    p: int = 2                      # Sharpening exponent of the dissipation parameter sigma
    mapped: bool = True             # Remap the weights towards the linear weights
    linear_weights: str = 'adaptive'  # 'adaptive', 'central' or 'upwind'
    C: Optional[float] = None       # Localized-dissipation weights d_k (C + tau / beta_k)^q
    alpha_tau: Optional[float] = None  # sigma = 0 where tau / beta_avg stays below this

    def __post_init__(self):
        if not self.epsilon > 0:
            raise ConfigurationError(f"epsilon must be positive, got {self.epsilon}")
        if self.q < 1:
            raise ConfigurationError(f"q must be >= 1, got {self.q}")
        if self.p < 1:
            raise ConfigurationError(f"p must be >= 1, got {self.p}")
        if self.C is not None and not self.C > 0:
            raise ConfigurationError(f"C must be positive, got {self.C}")
        if self.alpha_tau is not None and not self.alpha_tau >= 0:
            raise ConfigurationError(f"alpha_tau must be non-negative, got {self.alpha_tau}")
        if self.linear_weights not in LINEAR_WEIGHT_MODES:
            raise ConfigurationError(f"Unknown linear weights: {self.linear_weights}. "
                                     f"Options: {', '.join(LINEAR_WEIGHT_MODES)}")


@dataclass
class RiemannConfig:
    """Riemann solver selection."""
    solver: str = 'HLLC-HLL'
    velocity_tolerance: float = 1e-12   # Velocity jump below which HLLC-HLL uses pure HLLC
    wave_speeds: str = 'pressure'       # 'pressure' (pressure-based, Einfeldt-bounded) or 'einfeldt'

    def __post_init__(self):
        if self.solver not in RIEMANN_SOLVERS:
            raise ConfigurationError(f"Unknown Riemann solver: {self.solver}. "
                                     f"Options: {', '.join(RIEMANN_SOLVERS)}")
        if self.wave_speeds not in WAVE_SPEED_ESTIMATES:
            raise ConfigurationError(f"Unknown wave speed estimate: {self.wave_speeds}. "
                                     f"Options: {', '.join(WAVE_SPEED_ESTIMATES)}")
        if self.velocity_tolerance < 0:
            raise ConfigurationError("velocity_tolerance must be non-negative")


@dataclass
class ReconstructorConfig:
    """Configuration of the convective flux reconstructor."""
    weno: WENOConfig = field(default_factory=WENOConfig)
    riemann: RiemannConfig = field(default_factory=RiemannConfig)
    reference_average: str = 'simple'       # 'simple' or 'roe'
    flux_combination: str = 'midpoint'      # 'midpoint' or 'explicit6'
    positivity_fallback: bool = True        # First order where reconstructed states are unphysical
    chunk_size: Optional[int] = None        # Interfaces per batch (None = all at once)

    def __post_init__(self):
        if isinstance(self.weno, dict):
            self.weno = WENOConfig(**self.weno)
        if isinstance(self.riemann, dict):
            self.riemann = RiemannConfig(**self.riemann)

        if self.reference_average not in ('simple', 'roe'):
            raise ConfigurationError(f"Unknown reference average: {self.reference_average}. "
                                     "Options: simple, roe")
        if self.flux_combination not in FLUX_COMBINATIONS:
            raise ConfigurationError(f"Unknown flux combination: {self.flux_combination}. "
                                     f"Options: {', '.join(FLUX_COMBINATIONS)}")
        if self.chunk_size is not None and self.chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be positive, got {self.chunk_size}")

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'ReconstructorConfig':
        try:
            return cls(**data)
        except TypeError as err:
            raise ConfigurationError(f"Invalid configuration: {err}") from err

    def to_json(self, path: Union[str, Path]):
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'ReconstructorConfig':
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
