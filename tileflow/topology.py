"""
topology.py — Lattice Topology Strategy
========================================
A topology decides three things for the solver:

  1. Which lattice points and velocity components are valid
     (the boundary rule: invalid ones always read as zero).
  2. The stencil: which tiles/points feed a pressure or velocity update.
  3. Where tiles and points sit in normalized [0, 1]² display space.

Every topology satisfies the same two update formulas:

  p' = (Σ neighbour p − ρ·h·div / dt) / n_neighbours
  v' = v − (dt / (ρ·h)) · ∇p

and differs only in how n_neighbours, div and ∇p come out of the
local stencil.

Each stencil is written ONCE, against a sampler. A PointSampler reads
single values through the grid's safe accessors (one tile / one point);
a FieldSampler hands back shifted windows of zero-padded arrays so the
same arithmetic runs over the whole lattice at once, with no Python loops
in the sweep.
"""

import logging
from abc import ABC, abstractmethod

import numpy as np

from .config import SimulationParams
from .vectors import ConfigurationError, check_width, zero_vector

log = logging.getLogger(__name__)


# ── Padded-window helpers ─────────────────────────────────────────────────────

def padded(field: np.ndarray, pad: int = 1) -> np.ndarray:
    """Zero-pad the first two (col, row) axes of `field` by `pad` cells."""
    widths = [(pad, pad), (pad, pad)] + [(0, 0)] * (field.ndim - 2)
    return np.pad(field, widths)


def window(padded_field: np.ndarray, dc: int, dr: int, shape: tuple, pad: int = 1) -> np.ndarray:
    """
    Shifted view of a padded field.

    out[c, r] = field[c + dc, r + dr], with zeros wherever that lands
    outside the original array. `shape` is the (cols, rows) of the output.
    """
    c0 = pad + dc
    r0 = pad + dr
    return padded_field[c0:c0 + shape[0], r0:r0 + shape[1]]


class PointSampler:
    """Stencil inputs around one tile or lattice point (col, row)."""

    def __init__(self, grid, col: int, row: int):
        self.grid = grid
        self.col = col
        self.row = row
        self.odd = row % 2 == 1

    def p(self, dc: int, dr: int) -> float:
        return self.grid.safe_pressure(self.col + dc, self.row + dr)

    def v(self, dc: int, dr: int) -> np.ndarray:
        return self.grid.safe_velocity(self.col + dc, self.row + dr)

    def tile(self, dc: int, dr: int) -> float:
        return 1.0 if self.grid.topology.is_tile_valid(self.col + dc, self.row + dr) else 0.0


class FieldSampler:
    """Stencil inputs for every tile (or every lattice point) at once."""

    def __init__(self, topology, pressure: np.ndarray, velocity: np.ndarray, shape: tuple):
        self.shape = shape
        self._p = padded(pressure)
        self._v = padded(velocity * topology.velocity_mask)
        self._t = padded(np.ones_like(pressure))
        rows = np.arange(shape[1]) % 2 == 1
        self.odd = np.broadcast_to(rows[np.newaxis, :], shape)

    def p(self, dc: int, dr: int) -> np.ndarray:
        return window(self._p, dc, dr, self.shape)

    def v(self, dc: int, dr: int) -> np.ndarray:
        return window(self._v, dc, dr, self.shape)

    def tile(self, dc: int, dr: int) -> np.ndarray:
        return window(self._t, dc, dr, self.shape)


# ── Strategy base ─────────────────────────────────────────────────────────────

class Topology(ABC):
    """
    Base class for the three lattice variants.

    Subclasses implement the corner-validity predicate, the neighbour
    list and the three stencils (divergence, pressure, velocity).
    Masks, UV placement and per-point vs whole-field evaluation live here.
    """

    name = None
    vector_width = 2

    def __init__(self, cols: int, rows: int, params: SimulationParams = None):
        if int(cols) < 1 or int(rows) < 1:
            raise ConfigurationError(f"Grid must be at least 1x1, got {cols}x{rows}")
        self.cols = int(cols)
        self.rows = int(rows)
        self.params = params if params is not None else SimulationParams()
        self.vector_width = check_width(self.vector_width)
        self._warned_frozen = False

        # (cols+1, rows+1, width) of 0/1: corner validity × per-axis validity
        self.velocity_mask = self._build_velocity_mask()

    def __repr__(self):
        return f"{type(self).__name__}(cols={self.cols}, rows={self.rows})"

    # ── Validity ───────────────────────────────────────────────────────────

    def is_tile_valid(self, col: int, row: int) -> bool:
        return 0 <= col < self.cols and 0 <= row < self.rows

    def in_lattice(self, col: int, row: int) -> bool:
        """True if (col, row) indexes the velocity array at all."""
        return 0 <= col <= self.cols and 0 <= row <= self.rows

    @abstractmethod
    def is_corner_valid(self, col: int, row: int) -> bool:
        """Whether the lattice point (col, row) carries velocity at all."""

    def velocity_axis_mask(self, col: int, row: int) -> np.ndarray:
        """Per-component 0/1 mask at a valid lattice point. All ones by default."""
        return np.ones(self.vector_width, dtype=np.float64)

    def _build_velocity_mask(self) -> np.ndarray:
        mask = np.zeros((self.cols + 1, self.rows + 1, self.vector_width), dtype=np.float64)
        for col in range(self.cols + 1):
            for row in range(self.rows + 1):
                if self.is_corner_valid(col, row):
                    mask[col, row] = self.velocity_axis_mask(col, row)
        return mask

    def zero_vector(self) -> np.ndarray:
        return zero_vector(self.vector_width)

    # ── Display placement ──────────────────────────────────────────────────

    def tile_uv(self, col: int, row: int) -> tuple:
        """Normalized centre of tile (col, row)."""
        return ((col + 0.5) / self.cols, (row + 0.5) / self.rows)

    def velocity_uv(self, col: int, row: int) -> tuple:
        """Normalized position of lattice point (col, row)."""
        return (col / self.cols, row / self.rows)

    @abstractmethod
    def neighbour_indices(self, col: int, row: int) -> list:
        """(col, row) of the tiles around tile (col, row), in a fixed order."""

    # ── Stencils (written against a sampler) ───────────────────────────────

    @abstractmethod
    def divergence_stencil(self, s):
        """Net flow measure of each tile sampled by `s`."""

    @abstractmethod
    def pressure_stencil(self, s):
        """Return (new_pressure, divergence) for the tiles sampled by `s`."""

    @abstractmethod
    def velocity_stencil(self, s):
        """Unmasked new velocity for the lattice points sampled by `s`."""

    def _relax(self, pressure_sum, divergence, neighbours):
        """Shared pressure formula: (Σp − ρh·div/dt) / n."""
        self._check_frozen()
        return (pressure_sum - self.params.divergence_scale * divergence) / neighbours

    def _check_frozen(self):
        if self.params.time_step == 0 and not self._warned_frozen:
            log.warning("%s: time_step is 0, pressure relaxes without divergence forcing", self)
            self._warned_frozen = True

    # ── Per-point evaluation ───────────────────────────────────────────────

    def divergence_at(self, grid, col: int, row: int) -> float:
        if not self.is_tile_valid(col, row):
            return 0.0
        return float(self.divergence_stencil(PointSampler(grid, col, row)))

    def pressure_at(self, grid, col: int, row: int) -> float:
        """New pressure for one tile, read from the grid's primary buffers."""
        if not self.is_tile_valid(col, row):
            return 0.0
        pressure, _ = self.pressure_stencil(PointSampler(grid, col, row))
        return float(pressure)

    def velocity_at(self, grid, col: int, row: int) -> np.ndarray:
        """New (masked) velocity for one lattice point."""
        if not self.in_lattice(col, row):
            return self.zero_vector()
        new = self.velocity_stencil(PointSampler(grid, col, row))
        return np.asarray(new, dtype=np.float64) * self.velocity_mask[col, row]

    # ── Whole-field evaluation (used by the solver sweep) ──────────────────

    def divergence_field(self, pressure: np.ndarray, velocity: np.ndarray) -> np.ndarray:
        s = FieldSampler(self, pressure, velocity, (self.cols, self.rows))
        return np.asarray(self.divergence_stencil(s), dtype=np.float64)

    def pressure_field(self, pressure: np.ndarray, velocity: np.ndarray) -> tuple:
        s = FieldSampler(self, pressure, velocity, (self.cols, self.rows))
        new, div = self.pressure_stencil(s)
        return np.asarray(new, dtype=np.float64), np.asarray(div, dtype=np.float64)

    def velocity_field(self, pressure: np.ndarray, velocity: np.ndarray) -> np.ndarray:
        s = FieldSampler(self, pressure, velocity, (self.cols + 1, self.rows + 1))
        return self.velocity_stencil(s) * self.velocity_mask
