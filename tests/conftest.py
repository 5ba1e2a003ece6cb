"""Pytest configuration and fixtures for tileflow tests."""

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def unit_params():
    """dt = rho = h = 1, so K = 1 and the divergence factor is 1."""
    from tileflow import SimulationParams

    return SimulationParams(time_step=1.0, density=1.0, cell_size=1.0, max_velocity=5.0)


@pytest.fixture
def make_grid():
    """Factory: an all-zero FluidGrid for a topology name."""
    from tileflow import FluidGrid, make_topology

    def _make(kind, cols=4, rows=4, params=None, seed=0):
        topology = make_topology(kind, cols, rows, params)
        return FluidGrid(topology, rng=np.random.default_rng(seed))

    return _make


@pytest.fixture
def noisy_grid(make_grid):
    """Factory: grid with random pressure and RAW (unmasked) random velocity."""

    def _make(kind, cols=7, rows=6, params=None, seed=3):
        grid = make_grid(kind, cols, rows, params, seed)
        rng = np.random.default_rng(seed)
        grid.pressure[:] = rng.normal(size=grid.pressure.shape)
        grid.velocity[:] = rng.normal(size=grid.velocity.shape)
        return grid

    return _make
