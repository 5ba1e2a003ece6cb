"""
square.py — Square Lattice Topologies
======================================
Two ways of hanging velocity on a square grid of tiles.

CORNER: velocity is a full (x, y) vector at every tile corner.
  - Pressure sees the divergence across the tile's four corners and
    all 8 surrounding tiles (Moore neighbourhood).
  - Velocity sees the 4 tiles touching the corner, axis-aligned AND
    diagonal pressure differences.
  - Border corners are pinned to zero (no flow through the walls).

EDGE: the corner at (col, row) stores the x-flow through the tile's
left edge and the y-flow through its top edge (a staggered layout).
  - Pressure sees the 4 edge-adjacent tiles (von Neumann neighbourhood).
  - Velocity sees axis-aligned pressure differences only.
  - Every corner is valid, but flow perpendicular to a wall is zero
    there (no penetration); tangential slip is allowed.

Layout of one tile and its corners (col →, row ↓):

    (c, r) ─────── (c+1, r)
      │    tile (c, r)  │
    (c, r+1) ───── (c+1, r+1)
"""

import numpy as np

from .topology import Topology

# Tile offsets, row-major from the top-left
MOORE = [(-1, -1), (0, -1), (1, -1),
         (-1, 0),           (1, 0),
         (-1, 1),  (0, 1),  (1, 1)]

# Top, Right, Bottom, Left
VON_NEUMANN = [(0, -1), (1, 0), (0, 1), (-1, 0)]

# Unit diagonals used by the corner stencil
DIAG_BL_TR = np.array([1.0, -1.0]) / np.sqrt(2.0)
DIAG_TL_BR = np.array([-1.0, 1.0]) / np.sqrt(2.0)


def _along(magnitude, direction: np.ndarray) -> np.ndarray:
    """Scale a fixed direction by a scalar (or a field of scalars)."""
    return np.asarray(magnitude)[..., np.newaxis] * direction


class CornerTopology(Topology):
    """Velocity at tile corners; Moore pressure stencil with diagonal gradient terms."""

    name = "CORNER"
    vector_width = 2

    def is_corner_valid(self, col: int, row: int) -> bool:
        return 0 < col < self.cols and 0 < row < self.rows

    def neighbour_indices(self, col: int, row: int) -> list:
        return [(col + dc, row + dr) for dc, dr in MOORE]

    def divergence_stencil(self, s):
        v_tl, v_tr = s.v(0, 0), s.v(1, 0)
        v_bl, v_br = s.v(0, 1), s.v(1, 1)

        v_top = (v_tl + v_tr) / 2.0
        v_bottom = (v_bl + v_br) / 2.0
        v_left = (v_tl + v_bl) / 2.0
        v_right = (v_tr + v_br) / 2.0

        dx = v_left[..., 0] - v_right[..., 0]
        dy = v_top[..., 1] - v_bottom[..., 1]
        return dx + dy

    def pressure_stencil(self, s):
        divergence = self.divergence_stencil(s)
        pressure_sum = sum(s.p(dc, dr) for dc, dr in MOORE)
        return self._relax(pressure_sum, divergence, 8.0), divergence

    def velocity_stencil(self, s):
        # The four tiles touching this corner
        p_tl = s.p(-1, -1)
        p_tr = s.p(0, -1)
        p_bl = s.p(-1, 0)
        p_br = s.p(0, 0)

        p_top = (p_tl + p_tr) / 2.0
        p_bottom = (p_bl + p_br) / 2.0
        p_left = (p_tl + p_bl) / 2.0
        p_right = (p_tr + p_br) / 2.0

        # Diagonal terms: each end weights its own tile fully and the
        # two tiles beside the diagonal by half.
        # NOTE: ad hoc correction, not a standard discretization.
        diag_bl = (p_bl + p_tl / 2.0 + p_br / 2.0) / 2.0
        diag_tr = (p_tr + p_br / 2.0 + p_tl / 2.0) / 2.0
        diag_tl = (p_tl + p_tr / 2.0 + p_bl / 2.0) / 2.0
        diag_br = (p_br + p_bl / 2.0 + p_tr / 2.0) / 2.0

        gradient = (
            np.stack([p_left - p_right, p_top - p_bottom], axis=-1)
            + _along(diag_bl - diag_tr, DIAG_BL_TR)
            + _along(diag_tl - diag_br, DIAG_TL_BR)
        )
        return s.v(0, 0) - self.params.gradient_scale * gradient


class EdgeTopology(Topology):
    """Staggered velocity on tile edges; von Neumann pressure stencil."""

    name = "EDGE"
    vector_width = 2

    def is_corner_valid(self, col: int, row: int) -> bool:
        return self.in_lattice(col, row)

    def velocity_axis_mask(self, col: int, row: int) -> np.ndarray:
        mask = np.ones(2, dtype=np.float64)
        if col == 0 or col == self.cols:
            mask[0] = 0.0
        if row == 0 or row == self.rows:
            mask[1] = 0.0
        return mask

    def neighbour_indices(self, col: int, row: int) -> list:
        return [(col + dc, row + dr) for dc, dr in VON_NEUMANN]

    def divergence_stencil(self, s):
        v_here = s.v(0, 0)    # left edge x, top edge y
        v_right = s.v(1, 0)   # right edge x
        v_below = s.v(0, 1)   # bottom edge y

        dx = v_here[..., 0] - v_right[..., 0]
        dy = v_here[..., 1] - v_below[..., 1]
        return dx + dy

    def pressure_stencil(self, s):
        divergence = self.divergence_stencil(s)
        pressure_sum = sum(s.p(dc, dr) for dc, dr in VON_NEUMANN)
        return self._relax(pressure_sum, divergence, 4.0), divergence

    def velocity_stencil(self, s):
        p_here = s.p(0, 0)
        gradient = np.stack([
            s.p(-1, 0) - p_here,   # left tile vs this tile
            s.p(0, -1) - p_here,   # upper tile vs this tile
        ], axis=-1)
        return s.v(0, 0) - self.params.gradient_scale * gradient
