"""
grid.py — Double-Buffered Tile Grid
====================================
The single source of truth passed between solver steps.

Layout:
  - Pressure lives at TILE CENTERS      → shape (cols, rows)
  - Velocity lives at LATTICE POINTS    → shape (cols+1, rows+1, width)
      width = 2 on square lattices, 3 on the hex lattice
  - Divergence (diagnostic) per tile    → shape (cols, rows)

Each field has a scratch twin. A sweep reads only the primary arrays,
writes the scratch, then the two are swapped by reference. Nothing is
reallocated per step and no half-updated value is ever visible.

Point writes (interactive edits) go straight to the primary buffers.
"""

import logging
import operator

import numpy as np

from .topology import Topology
from .vectors import VectorWidthError, as_vector, check_width

log = logging.getLogger(__name__)

PRESSURE_RANDOM_RANGE = 1.0   # randomized pressure is uniform in [-1, 1]


def lattice_index(col, row):
    """(col, row) as plain ints, or None if either is not an integer."""
    try:
        return operator.index(col), operator.index(row)
    except TypeError:
        return None


class FluidGrid:
    """
    Pressure and velocity buffers for one lattice.

    The topology supplies the validity rules; the grid enforces them on
    every safe read, randomization and point write.
    """

    def __init__(self, topology: Topology, rng: np.random.Generator = None):
        """
        Args:
            topology : Lattice strategy (fixes cols, rows and vector width)
            rng      : Random generator used by randomize_*(); a fresh
                       unseeded one if omitted
        """
        self.topology = topology
        self.cols = topology.cols
        self.rows = topology.rows
        self.width = check_width(topology.vector_width)
        self.rng = rng if rng is not None else np.random.default_rng()

        # ── Tile-centered scalars ──────────────────────────────────────────
        self.pressure = np.zeros((self.cols, self.rows), dtype=np.float64)
        self.pressure_scratch = np.zeros_like(self.pressure)
        self.divergence = np.zeros_like(self.pressure)

        # ── Lattice-point vectors ──────────────────────────────────────────
        self.velocity = np.zeros((self.cols + 1, self.rows + 1, self.width), dtype=np.float64)
        self.velocity_scratch = np.zeros_like(self.velocity)

    @property
    def params(self):
        return self.topology.params

    # ── Safe reads ─────────────────────────────────────────────────────────

    def safe_pressure(self, col: int, row: int) -> float:
        """Pressure at tile (col, row); 0 outside the grid or for a non-integer index."""
        if lattice_index(col, row) is None or not self.topology.is_tile_valid(col, row):
            return 0.0
        return float(self.pressure[col, row])

    def safe_velocity(self, col: int, row: int) -> np.ndarray:
        """
        Velocity at lattice point (col, row) with the boundary rule applied.
        Invalid points (and non-integer indices) read as the zero vector
        whatever is stored there.
        """
        if lattice_index(col, row) is None or not self.topology.in_lattice(col, row):
            return self.topology.zero_vector()
        return self.velocity[col, row] * self.topology.velocity_mask[col, row]

    def masked_velocity(self) -> np.ndarray:
        """Whole velocity field as the solver sees it (boundary rule applied)."""
        return self.velocity * self.topology.velocity_mask

    def compute_divergence(self) -> np.ndarray:
        """Divergence of the current velocity field, per tile."""
        return self.topology.divergence_field(self.pressure, self.velocity)

    # ── Whole-grid resets ──────────────────────────────────────────────────

    def randomize_velocity(self):
        """Uniform per-axis velocity in [-max_velocity, max_velocity]; invalid points zero."""
        max_v = self.params.max_velocity
        sample = self.rng.uniform(-1.0, 1.0, size=self.velocity.shape) * max_v
        np.copyto(self.velocity, sample * self.topology.velocity_mask)

    def randomize_pressure(self):
        sample = self.rng.uniform(-PRESSURE_RANDOM_RANGE, PRESSURE_RANDOM_RANGE,
                                  size=self.pressure.shape)
        np.copyto(self.pressure, sample)

    def randomize(self):
        self.randomize_velocity()
        self.randomize_pressure()

    def reset(self):
        """Zero out every field, scratch buffers included."""
        for arr in [self.pressure, self.pressure_scratch, self.divergence,
                    self.velocity, self.velocity_scratch]:
            arr[:] = 0.0

    # ── Point writes ───────────────────────────────────────────────────────

    def write_pressure(self, col: int, row: int, value: float) -> bool:
        """
        Set the pressure of one tile in the primary buffer.
        Non-integer, out-of-range or non-finite writes are logged and ignored.
        """
        if lattice_index(col, row) is None:
            log.warning("Rejected pressure write at (%r, %r): index is not an integer", col, row)
            return False
        if not self.topology.is_tile_valid(col, row):
            log.warning("Rejected pressure write at (%s, %s): outside %dx%d grid",
                        col, row, self.cols, self.rows)
            return False
        try:
            value = float(value)
        except (TypeError, ValueError):
            log.warning("Rejected pressure write at (%s, %s): %r is not a number", col, row, value)
            return False
        if not np.isfinite(value):
            log.warning("Rejected pressure write at (%s, %s): %r is not finite", col, row, value)
            return False

        self.pressure[col, row] = value
        return True

    def write_velocity(self, col: int, row: int, value) -> bool:
        """
        Set the velocity of one lattice point in the primary buffer.

        The vector must have exactly the topology's width; invalid points
        and width mismatches are logged and ignored.
        """
        if lattice_index(col, row) is None:
            log.warning("Rejected velocity write at (%r, %r): index is not an integer", col, row)
            return False
        if not self.topology.is_corner_valid(col, row):
            log.warning("Rejected velocity write at (%s, %s): not a valid %s lattice point",
                        col, row, self.topology.name)
            return False
        try:
            vec = as_vector(value, self.width)
        except VectorWidthError as err:
            log.warning("Rejected velocity write at (%s, %s): %s", col, row, err)
            return False

        self.velocity[col, row] = vec
        return True

    # ── Buffer swap ────────────────────────────────────────────────────────

    def swap_pressure(self):
        self.pressure, self.pressure_scratch = self.pressure_scratch, self.pressure

    def swap_velocity(self):
        self.velocity, self.velocity_scratch = self.velocity_scratch, self.velocity

    # ── Snapshots ──────────────────────────────────────────────────────────

    def save_state(self) -> dict:
        """Copies of the current (primary) fields."""
        return {
            "topology":   self.topology.name,
            "pressure":   self.pressure.copy(),
            "velocity":   self.masked_velocity(),
            "divergence": self.divergence.copy(),
        }

    def __repr__(self):
        max_div = np.abs(self.compute_divergence()).max()
        max_vel = np.abs(self.masked_velocity()).max()
        return (
            f"FluidGrid({self.topology.name}, {self.cols}x{self.rows}, width={int(self.width)})\n"
            f"  pressure  : min={self.pressure.min():.4f}, max={self.pressure.max():.4f}\n"
            f"  velocity  : max_component={max_vel:.4f}\n"
            f"  divergence: max={max_div:.6f}"
        )
