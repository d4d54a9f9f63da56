"""
Run Sod's shock tube with the WCNS flux reconstruction and compare to the exact solution.

This script demonstrates:
1. Sixth-order WENO interpolation in characteristic variables
2. Shock capturing with the HLLC/HLL Riemann solver
3. Comparison to the exact Riemann solution
4. Resolution study

Run from the repository root:
    python wcnsflux/scripts/run_shock_tube.py --cells 200 --plot sod.png -v
"""

import argparse
import logging
import sys
from pathlib import Path

# Add repository root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import numpy as np
import matplotlib.pyplot as plt

from wcnsflux import ConvectiveFluxReconstructor, ReconstructorConfig, SingleSpecies, TimerInstrumentation
from wcnsflux.tests.exact_riemann import sod_shock_tube_exact
from wcnsflux.tests.shock_tube import run_sod

logger = logging.getLogger("wcnsflux")


def configure_logging(args):
    if args.verbose:
        logger.setLevel(logging.INFO)
        ch = logging.StreamHandler(stream=sys.stdout)
        ch.setLevel(logging.INFO)
    elif args.very_verbose:
        logger.setLevel(logging.DEBUG)
        ch = logging.StreamHandler(stream=sys.stdout)
        ch.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.WARNING)
        ch = logging.StreamHandler(stream=sys.stderr)
        ch.setLevel(logging.WARNING)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    ch.setFormatter(formatter)
    logger.addHandler(ch)


def build_config(args) -> ReconstructorConfig:
    if args.config is not None:
        config = ReconstructorConfig.from_json(args.config)
    else:
        config = ReconstructorConfig()
    data = config.to_dict()
    if args.solver is not None:
        data['riemann']['solver'] = args.solver
    if args.wave_speeds is not None:
        data['riemann']['wave_speeds'] = args.wave_speeds
    if args.combination is not None:
        data['flux_combination'] = args.combination
    return ReconstructorConfig.from_dict(data)


def l1_errors(state, exact):
    return {
        'rho': np.mean(np.abs(state.rho - exact['rho'])),
        'u': np.mean(np.abs(state.velocity[0] - exact['u'])),
        'p': np.mean(np.abs(state.p - exact['p'])),
    }


def plot_results(x, state, exact, t, fname: Path):
    """Density, velocity, pressure and internal energy against the exact solution."""
    e = state.p / ((state.model.eos.gas.gamma - 1) * state.rho)
    fields = [
        ('Density', state.rho, exact['rho']),
        ('Velocity', state.velocity[0], exact['u']),
        ('Pressure', state.p, exact['p']),
        ('Specific internal energy', e, exact['e']),
    ]

    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle(f'Sod shock tube: t = {t:.3f}, {x.size} cells', fontsize=14, fontweight='bold')
    for ax, (title, numerical, reference) in zip(axes.flat, fields):
        ax.plot(x, numerical, 'b.-', linewidth=1, label='WCNS')
        ax.plot(x, reference, 'r--', linewidth=2, label='Exact')
        ax.set_xlabel('x')
        ax.set_title(title)
        ax.legend()
        ax.grid(True, alpha=0.3)
        ax.set_xlim([0, 1])

    plt.tight_layout()
    plt.savefig(fname, dpi=150, bbox_inches='tight')
    print(f"Saved plot to: {fname}")
    return fig


def resolution_study(config: ReconstructorConfig, resolutions, t_final: float, cfl: float):
    """L1 errors of Sod's problem over a sequence of grids."""
    print("\n" + "=" * 80)
    print("RESOLUTION STUDY")
    print("=" * 80)
    print(f"\n{'N cells':<10} {'rho L1':<12} {'u L1':<12} {'p L1':<12}")
    print("-" * 80)

    rows = []
    for n_cells in resolutions:
        reconstructor = ConvectiveFluxReconstructor(SingleSpecies(1), config)
        x, state, t = run_sod(reconstructor, n_cells, t_final, cfl)
        errors = l1_errors(state, sod_shock_tube_exact(x, t))
        rows.append((n_cells, errors))
        print(f"{n_cells:<10} {errors['rho']:<12.6f} {errors['u']:<12.6f} {errors['p']:<12.6f}")
    return rows


def main():
    parser = argparse.ArgumentParser("Run Sod's shock tube with the WCNS flux reconstruction.")
    parser.add_argument("--cells", type=int, default=200, help="number of cells")
    parser.add_argument("--time", type=float, default=0.2, help="final time")
    parser.add_argument("--cfl", type=float, default=0.4, help="CFL number")
    parser.add_argument("--solver", choices=['HLLC-HLL', 'HLLC', 'HLL'], help="Riemann solver")
    parser.add_argument("--combination", choices=['midpoint', 'explicit6'], help="flux combination")
    parser.add_argument("--wave-speeds", choices=['pressure', 'einfeldt'], help="Riemann wave speed estimates")
    parser.add_argument("--config", type=Path, help="scheme configuration (JSON)")
    parser.add_argument("--plot", type=Path, help="save a comparison plot to this file")
    parser.add_argument("--study", action="store_true", help="run a resolution study")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose output")
    parser.add_argument("-vv", "--very-verbose", action="store_true", help="enable very verbose output")
    args = parser.parse_args()

    configure_logging(args)
    config = build_config(args)

    print("=" * 80)
    print("SOD SHOCK TUBE")
    print("=" * 80)

    timers = TimerInstrumentation()
    reconstructor = ConvectiveFluxReconstructor(SingleSpecies(1), config, instrumentation=timers)
    print(reconstructor.describe())

    x, state, t = run_sod(reconstructor, args.cells, args.time, args.cfl)
    exact = sod_shock_tube_exact(x, t)
    errors = l1_errors(state, exact)

    print(f"\nReached t = {t:.4f} on {args.cells} cells")
    print(f"  rho L1 error: {errors['rho']:.6f}")
    print(f"  u   L1 error: {errors['u']:.6f}")
    print(f"  p   L1 error: {errors['p']:.6f}")
    print()
    print(timers.report())
    timers.log_summary(logging.DEBUG)

    if args.plot is not None:
        plot_results(x, state, exact, t, args.plot)

    if args.study:
        resolution_study(config, [50, 100, 200, 400], args.time, args.cfl)


if __name__ == "__main__":
    main()
