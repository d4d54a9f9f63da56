"""
Test cases for the flux-reconstruction kernel.

Run tests with pytest:
    pytest wcnsflux/tests/ -v

Or run individual test files:
    pytest wcnsflux/tests/test_weno.py -v
    pytest wcnsflux/tests/test_shock_tube.py -v
"""

from .exact_riemann import godunov_flux, riemann_exact, sod_shock_tube_exact, star_state
from .shock_tube import advance, pad_transmissive, riemann_initial_state, run_sod

__all__ = [
    'godunov_flux',
    'riemann_exact',
    'sod_shock_tube_exact',
    'star_state',
    'advance',
    'pad_transmissive',
    'riemann_initial_state',
    'run_sod',
]
