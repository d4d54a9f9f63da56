"""
Convective flux reconstruction over a ghost-padded patch.

For every direction the interfaces of the patch are flattened into one
batch and pushed through

    primitive stencils -> reference state -> characteristic projection
    -> WENO interpolation -> inverse projection -> Riemann solver

after which the midpoint fluxes are (optionally) combined into face
fluxes and the source terms are evaluated from the interior state and the
interface velocities. No state survives between calls.
"""

import logging

import numpy as np
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Tuple

from .characteristic import CharacteristicProjector, compute_reference_state
from .config import ReconstructorConfig
from .errors import ConfigurationError, NonPhysicalStateError
from .flow_model import FlowModel
from .flux import create_riemann_solver
from .instrumentation import Instrumentation
from .patch import Patch
from .reconstruction import COMBINATION_EXTRA_FACES, combine_midpoint_fluxes, reconstruct_first_order
from .sources import CompositeSourceTerm, SourceContext, SourceTerm, VolumeFractionSourceTerm
from .weno import WENOInterpolator

logger = logging.getLogger(__name__)


def _format_optional(value) -> str:
    return "off" if value is None else f"{value:g}"


class InterfaceFluxes(NamedTuple):
    """Reconstruction and Riemann solve for a batch of interfaces."""
    flux: np.ndarray            # (n_eqn, n_faces)
    velocity: np.ndarray        # (n_faces,)
    max_wave_speed: np.ndarray  # (n_faces,)
    left: np.ndarray            # reconstructed primitive state, (n_eqn, n_faces)
    right: np.ndarray           # reconstructed primitive state, (n_eqn, n_faces)


@dataclass
class ConvectiveFluxResult:
    """
    Fluxes and sources of one patch, both with ghost width zero.

    - fluxes: Per direction, (n_eqn, *face_shape) with face i between
      interior cells i-1 and i
    - source: (n_eqn, *interior_shape)
    - velocities: Per direction, interface normal velocity (*face_shape)
    - max_wave_speeds: Per direction, largest signal speed at any interface
    - dx: Cell widths per direction
    """
    fluxes: Tuple[np.ndarray, ...]
    source: np.ndarray
    velocities: Tuple[np.ndarray, ...]
    max_wave_speeds: Tuple[float, ...]
    dx: Tuple[float, ...]

    def time_derivative(self) -> np.ndarray:
        """Semi-discrete right-hand side dU/dt = -sum_d dF_d/dx_d + S."""
        dUdt = self.source.copy()
        for d, (F, h) in enumerate(zip(self.fluxes, self.dx)):
            dUdt -= np.diff(F, axis=d + 1) / h
        return dUdt

    def stable_timestep(self, cfl: float = 0.5) -> float:
        """Largest time step allowed by the signal speeds, cfl / sum_d(s_d / dx_d)."""
        rate = sum(s / h for s, h in zip(self.max_wave_speeds, self.dx))
        if rate <= 0:
            return np.inf
        return cfl / rate


class ConvectiveFluxReconstructor:
    """
    Sixth-order WCNS flux reconstruction with an HLLC/HLL Riemann solver.

    Args:
        flow_model: Flow model variant defining the field layout
        config: Scheme configuration (defaults if None)
        instrumentation: Timer/counter hook (no-op if None)
        source_terms: Additional algebraic source terms summed into the
                      source array; the volume-fraction source of
                      non-conservative models is always included
    """

    stencil_width = WENOInterpolator.stencil_width

    def __init__(self, flow_model: FlowModel, config: ReconstructorConfig = None,
                 instrumentation: Instrumentation = None,
                 source_terms: Optional[Iterable[SourceTerm]] = None):
        self.model = flow_model
        self.config = config if config is not None else ReconstructorConfig()
        self.instrumentation = instrumentation if instrumentation is not None else Instrumentation()

        self.projector = CharacteristicProjector(flow_model)
        self.weno = WENOInterpolator(self.config.weno)
        self.riemann = create_riemann_solver(flow_model, self.config.riemann)

        self.sources = CompositeSourceTerm()
        if not flow_model.fractions_conservative:
            self.sources.add(VolumeFractionSourceTerm())
        for source in (source_terms or []):
            self.sources.add(source)

        logger.info("Flux reconstructor for %s: %s Riemann solver, %s reference average, "
                    "%s flux combination, ghost width %d",
                    flow_model.name, self.riemann.name, self.config.reference_average,
                    self.config.flux_combination, self.required_ghost_width)

    @property
    def extra_faces(self) -> int:
        """Midpoints evaluated beyond the face range on each side."""
        return COMBINATION_EXTRA_FACES[self.config.flux_combination]

    @property
    def required_ghost_width(self) -> int:
        return self.stencil_width // 2 + self.extra_faces

    def describe(self) -> str:
        """Human-readable summary of the scheme constants."""
        w = self.config.weno
        sources = ", ".join(type(s).__name__ for s in self.sources.sources) or "none"
        return "\n".join([
            f"ConvectiveFluxReconstructor ({self.model.name}, {self.model.dim}-D)",
            f"  equations:          {self.model.n_eqn} ({', '.join(self.model.primitive_names())})",
            f"  stencil width:      {self.stencil_width}",
            f"  ghost width:        {self.required_ghost_width}",
            f"  WENO:               epsilon={w.epsilon:g}, q={w.q}, p={w.p}, "
            f"mapped={w.mapped}, linear weights={w.linear_weights}",
            f"  localized dissipation: C={_format_optional(w.C)}, "
            f"alpha_tau={_format_optional(w.alpha_tau)}",
            f"  reference average:  {self.config.reference_average}",
            f"  Riemann solver:     {self.riemann.name} ({self.config.riemann.wave_speeds} wave speeds)",
            f"  flux combination:   {self.config.flux_combination}",
            f"  positivity fallback: {self.config.positivity_fallback}",
            f"  source terms:       {sources}",
        ])

    # --- Interface batches ---

    def reconstruct_interfaces(self, stencil_U: np.ndarray, direction: int) -> InterfaceFluxes:
        """
        Reconstruct and solve a batch of interfaces.

        Args:
            stencil_U: Conserved stencils, shape (6, n_eqn, n_faces); the
                       interface lies between points 2 and 3
            direction: Spatial direction of the interface normal

        Raises:
            NonPhysicalStateError: With batch positions in `interfaces`
        """
        m = self.model
        hooks = self.instrumentation
        if stencil_U.shape[:2] != (self.stencil_width, m.n_eqn):
            raise ConfigurationError(
                f"Expected stencils of shape ({self.stencil_width}, {m.n_eqn}, n_faces), "
                f"got {stencil_U.shape}")

        with hooks.timer('characteristic_decomposition'):
            V = m.conserved_to_primitive(np.moveaxis(stencil_U, 0, 1))    # (n_eqn, 6, n)
            ref = compute_reference_state(m, V[:, 2], V[:, 3], direction,
                                          self.config.reference_average)
            L, R, valid = self.projector.projection_matrices(ref, direction)
            W = self.projector.to_characteristic(L, V)

        with hooks.timer('weno_interpolation'):
            result = self.weno.interpolate(np.moveaxis(W, 1, 0))

        with hooks.timer('characteristic_decomposition'):
            VL = self.projector.to_primitive(R, result.minus)
            VR = self.projector.to_primitive(R, result.plus)

        V_first_L, V_first_R = reconstruct_first_order(np.moveaxis(V, 1, 0))

        n_weno = int(np.count_nonzero(result.fallback))
        if n_weno:
            hooks.count('weno_fallback', n_weno)

        invalid = ~valid
        if np.any(invalid):
            VL[:, invalid] = V_first_L[:, invalid]
            VR[:, invalid] = V_first_R[:, invalid]
            hooks.count('projection_fallback', int(np.count_nonzero(invalid)))
            logger.debug("direction %d: invalid reference state at %d interface(s), "
                         "first-order reconstruction", direction, int(np.count_nonzero(invalid)))

        if self.config.positivity_fallback:
            unphysical = ~(m.is_physical(VL) & m.is_physical(VR))
            if np.any(unphysical):
                VL[:, unphysical] = V_first_L[:, unphysical]
                VR[:, unphysical] = V_first_R[:, unphysical]
                hooks.count('positivity_fallback', int(np.count_nonzero(unphysical)))
                logger.debug("direction %d: unphysical reconstructed state at %d interface(s), "
                             "first-order reconstruction", direction, int(np.count_nonzero(unphysical)))

        with hooks.timer('riemann_solver'):
            solution = self.riemann.compute_flux_vectorized(VL, VR, direction)

        n_hll = int(np.count_nonzero(solution.hll_fallback))
        if n_hll:
            hooks.count('hll_fallback', n_hll)

        return InterfaceFluxes(flux=solution.flux, velocity=solution.velocity,
                               max_wave_speed=solution.max_wave_speed, left=VL, right=VR)

    # --- Patch ---

    def _check_patch(self, patch: Patch):
        if patch.n_eqn != self.model.n_eqn:
            raise ConfigurationError(
                f"Patch has {patch.n_eqn} variables, {self.model.name} needs {self.model.n_eqn}")
        if patch.dim != self.model.dim:
            raise ConfigurationError(
                f"Patch is {patch.dim}-D, flow model is {self.model.dim}-D")
        if patch.n_ghost < self.required_ghost_width:
            raise ConfigurationError(
                f"Ghost width {patch.n_ghost} is smaller than the required {self.required_ghost_width}")

    def _direction_fluxes(self, patch: Patch, direction: int):
        m = self.model
        extra = self.extra_faces
        windows = patch.stencils(direction, self.stencil_width, extra)   # (n_eqn, *faces, 6)
        face_shape = windows.shape[1:-1]
        n_faces = int(np.prod(face_shape))
        batch = np.moveaxis(windows, -1, 0).reshape(self.stencil_width, m.n_eqn, n_faces)

        flux = np.empty((m.n_eqn, n_faces))
        velocity = np.empty(n_faces)
        speed = np.empty(n_faces)

        chunk = self.config.chunk_size or n_faces
        for start in range(0, n_faces, chunk):
            stop = min(start + chunk, n_faces)
            try:
                part = self.reconstruct_interfaces(batch[:, :, start:stop], direction)
            except NonPhysicalStateError as err:
                raise self._locate(err, start, face_shape, direction) from err
            flux[:, start:stop] = part.flux
            velocity[start:stop] = part.velocity
            speed[start:stop] = part.max_wave_speed

        flux = flux.reshape((m.n_eqn,) + face_shape)
        velocity = velocity.reshape(face_shape)
        speed = speed.reshape(face_shape)

        combination = self.config.flux_combination
        flux = combine_midpoint_fluxes(flux, direction + 1, combination)
        velocity = combine_midpoint_fluxes(velocity, direction, combination)
        if extra:
            index = [slice(None)] * speed.ndim
            index[direction] = slice(extra, speed.shape[direction] - extra)
            speed = speed[tuple(index)]

        return flux, velocity, float(np.max(speed))

    def _locate(self, err: NonPhysicalStateError, offset: int, face_shape, direction: int):
        """Translate batch positions into face multi-indices of the patch interior."""
        flat = np.asarray(err.interfaces, dtype=int) + offset
        grid = np.unravel_index(flat, face_shape)
        shift = [0] * len(face_shape)
        shift[direction] = self.extra_faces
        interfaces = [tuple(int(grid[k][i]) - shift[k] for k in range(len(face_shape)))
                      for i in range(flat.size)]
        located = err.with_context(direction, interfaces, self.model.name)
        logger.debug("%s", located)
        return located

    def compute_fluxes_and_sources(self, patch: Patch) -> ConvectiveFluxResult:
        """
        Interface fluxes in every direction and the cell source array of a patch.

        Args:
            patch: Ghost-padded conserved variables; read only

        Returns:
            ConvectiveFluxResult with arrays of ghost width zero

        Raises:
            ConfigurationError: If the patch does not match the model or the
                ghost width is too small
            NonPhysicalStateError: With face multi-indices, direction and
                flow model attached
        """
        self._check_patch(patch)
        hooks = self.instrumentation

        fluxes, velocities, speeds = [], [], []
        for direction in range(patch.dim):
            with hooks.timer('reconstruct_flux'):
                F, u_face, s_max = self._direction_fluxes(patch, direction)
            fluxes.append(F)
            velocities.append(u_face)
            speeds.append(s_max)

        with hooks.timer('compute_source'):
            U = np.array(patch.interior())
            context = SourceContext(model=self.model, U=U,
                                    V=self.model.conserved_to_primitive(U),
                                    face_velocities=tuple(velocities), dx=patch.dx)
            source = self.sources.compute(context)

        return ConvectiveFluxResult(fluxes=tuple(fluxes), source=source,
                                    velocities=tuple(velocities),
                                    max_wave_speeds=tuple(speeds), dx=patch.dx)


def compute_fluxes_and_sources(patch: Patch, flow_model: FlowModel,
                               config: ReconstructorConfig = None,
                               instrumentation: Instrumentation = None) -> ConvectiveFluxResult:
    """Convenience wrapper building a reconstructor for a single call."""
    reconstructor = ConvectiveFluxReconstructor(flow_model, config, instrumentation)
    return reconstructor.compute_fluxes_and_sources(patch)
