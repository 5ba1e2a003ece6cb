"""
solver.py — Relaxation Sweeps
==============================
One step of the approximator is two independent full-grid sweeps:

  1. Pressure: every tile relaxes toward its neighbours, pushed by the
     velocity divergence across it.
         p' = (Σ neighbour p − ρ·h·div / dt) / n_neighbours

  2. Velocity: every lattice point is pushed down the pressure gradient.
         v' = v − (dt / (ρ·h)) · ∇p

Each sweep reads ONLY the primary buffers, writes the scratch buffers,
and swaps once the whole grid is done. Either sweep can run alone.

This is a single relaxation pass per step, not a converged Poisson
solve, fast enough to redraw every frame.
"""

import logging
import time

import numpy as np

from .grid import FluidGrid

log = logging.getLogger(__name__)


def step_pressure(grid: FluidGrid) -> np.ndarray:
    """
    Pressure sweep. Updates grid.divergence as a side product.

    Returns the new primary pressure array.
    """
    new_pressure, divergence = grid.topology.pressure_field(grid.pressure, grid.velocity)

    np.copyto(grid.pressure_scratch, new_pressure)
    np.copyto(grid.divergence, divergence)
    grid.swap_pressure()
    return grid.pressure


def step_velocity(grid: FluidGrid) -> np.ndarray:
    """
    Velocity sweep. Results are masked by the topology's boundary rule
    before the swap, so invalid points and wall-normal components stay 0.

    Returns the new primary velocity array.
    """
    new_velocity = grid.topology.velocity_field(grid.pressure, grid.velocity)

    np.copyto(grid.velocity_scratch, new_velocity)
    grid.swap_velocity()
    return grid.velocity


def sweep(grid: FluidGrid, update_pressure: bool = True, update_velocity: bool = True) -> dict:
    """
    One full step: pressure phase then velocity phase, each optional.

    Returns:
        dict with timing and field metrics (for benchmarking / status)
    """
    t_pressure = 0.0
    t_velocity = 0.0

    if update_pressure:
        t0 = time.perf_counter()
        step_pressure(grid)
        t_pressure = (time.perf_counter() - t0) * 1000

    if update_velocity:
        t0 = time.perf_counter()
        step_velocity(grid)
        t_velocity = (time.perf_counter() - t0) * 1000

    metrics = {
        "pressure_ms"    : t_pressure,
        "velocity_ms"    : t_velocity,
        "divergence_max" : float(np.abs(grid.divergence).max()),
        "velocity_max"   : float(np.abs(grid.masked_velocity()).max()),
        "pressure_min"   : float(grid.pressure.min()),
        "pressure_max"   : float(grid.pressure.max()),
    }
    log.debug("sweep %s: %s", grid.topology.name, metrics)
    return metrics
