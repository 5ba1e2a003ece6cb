"""
hexagonal.py — Hexagonal Edge Topology
=======================================
Tiles are pointy-top hexagons in an offset layout: odd rows are shifted
half a tile to the right.

Velocity lives on the lattice points where three hex edges meet. Each
point stores 3 components:

  X → flow along the top-left edge
  Y → flow along the top (horizontal-ish) edge
  Z → flow along the top-right edge

A tile has 6 edges; the other three come from the points below it,
so no edge is stored twice.

Tile neighbours (Top-Left, Top-Right, Right, Bottom-Right, Bottom-Left, Left):

  even row: (-1,-1) ( 0,-1) (+1, 0) ( 0,+1) (-1,+1) (-1, 0)
  odd  row: ( 0,-1) (+1,-1) (+1, 0) (+1,+1) ( 0,+1) (-1, 0)
"""

import numpy as np

from .topology import Topology

EVEN_ROW_NEIGHBOURS = [(-1, -1), (0, -1), (1, 0), (0, 1), (-1, 1), (-1, 0)]
ODD_ROW_NEIGHBOURS = [(0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 0)]

_COS60 = np.cos(np.radians(60.0))
_SIN60 = np.sin(np.radians(60.0))

# Display directions of the six edge flows, same order as the neighbours
EDGE_DIRECTIONS = np.array([
    [-_COS60, -_SIN60],   # top-left
    [_COS60, -_SIN60],    # top-right
    [1.0, 0.0],           # right
    [-_COS60, -_SIN60],   # bottom-right
    [_COS60, -_SIN60],    # bottom-left
    [1.0, 0.0],           # left
])


def _pick(odd, when_odd, when_even):
    """Row-parity select that works for scalars, vectors and whole fields."""
    odd = np.asarray(odd)
    when_odd = np.asarray(when_odd)
    if when_odd.ndim > odd.ndim:
        odd = odd[..., np.newaxis]
    return np.where(odd, when_odd, when_even)


class HexEdgeTopology(Topology):
    """Offset-row hex lattice with 3-component edge velocity."""

    name = "HEX_EDGE"
    vector_width = 3

    # ── Validity ───────────────────────────────────────────────────────────

    def is_corner_valid(self, col: int, row: int) -> bool:
        if col < 0 or col > self.cols or row <= 0 or row > self.rows:
            return False
        if row % 2 == 1 and col == 0:
            return False
        if row % 2 == 0 and col == self.cols:
            return False
        return True

    def velocity_axis_mask(self, col: int, row: int) -> np.ndarray:
        mask = np.ones(3, dtype=np.float64)
        if row == 0:
            return np.zeros(3, dtype=np.float64)

        if col == 0 or col == self.cols:
            mask[1] = 0.0
            if col == 0 or row % 2 == 0:
                mask[0] = 0.0
            if col == self.cols:
                mask[2] = 0.0

        if row == self.rows:
            mask[0] = 0.0
            mask[2] = 0.0
        return mask

    # ── Placement ──────────────────────────────────────────────────────────

    def velocity_uv(self, col: int, row: int) -> tuple:
        u = col / self.cols
        v = row / self.rows
        if row % 2 == 1:
            u -= 0.5 / self.cols
        return (u, v)

    def tile_uv(self, col: int, row: int) -> tuple:
        span_c = max(self.cols - 1, 1)
        span_r = max(self.rows - 1, 1)
        u = col / span_c
        v = row / span_r
        if row % 2 == 1:
            u += 0.5 / span_c
        return (u, v)

    def neighbour_indices(self, col: int, row: int) -> list:
        offsets = ODD_ROW_NEIGHBOURS if row % 2 == 1 else EVEN_ROW_NEIGHBOURS
        return [(col + dc, row + dr) for dc, dr in offsets]

    # ── Stencils ───────────────────────────────────────────────────────────

    def _tile_points(self, s):
        """The three lattice points holding a tile's six edge flows."""
        top = _pick(s.odd, s.v(1, 0), s.v(0, 0))
        bottom_left = s.v(0, 1)
        bottom_right = s.v(1, 1)
        return top, bottom_left, bottom_right

    def divergence_stencil(self, s):
        top, bottom_left, bottom_right = self._tile_points(s)
        # Outflow through the top-left, top-right and right edges counts
        # negative; through bottom-right, bottom-left and left, positive.
        return (
            -top[..., 0]
            - top[..., 2]
            - bottom_right[..., 1]
            + bottom_right[..., 0]
            + bottom_left[..., 2]
            + bottom_left[..., 1]
        )

    def pressure_stencil(self, s):
        divergence = self.divergence_stencil(s)

        pressure_sum = 0.0
        neighbours = 0.0
        for even, odd in zip(EVEN_ROW_NEIGHBOURS, ODD_ROW_NEIGHBOURS):
            pressure_sum = pressure_sum + _pick(s.odd, s.p(*odd), s.p(*even))
            neighbours = neighbours + _pick(s.odd, s.tile(*odd), s.tile(*even))

        # A lone tile has no neighbours; keep the divisor at 1
        neighbours = np.maximum(neighbours, 1.0)
        return self._relax(pressure_sum, divergence, neighbours), divergence

    def velocity_stencil(self, s):
        # Point (c, r) sits on the top edge of the tile below it
        p_top_left = s.p(-1, -1)
        p_top_right = s.p(0, -1)
        p_bottom = _pick(s.odd, s.p(-1, 0), s.p(0, 0))

        gradient = np.stack([
            p_bottom - p_top_left,
            p_top_left - p_top_right,
            p_bottom - p_top_right,
        ], axis=-1)
        return s.v(0, 0) - self.params.gradient_scale * gradient

    # ── Per-edge view for consumers ────────────────────────────────────────

    def tile_edge_velocities(self, grid, col: int, row: int) -> np.ndarray:
        """
        Six 2D flow vectors, one per edge of tile (col, row), in
        neighbour order (TL, TR, R, BR, BL, L). Zero outside the grid.
        """
        if not self.is_tile_valid(col, row):
            return np.zeros((6, 2), dtype=np.float64)

        if row % 2 == 1:
            top = grid.safe_velocity(col + 1, row)
        else:
            top = grid.safe_velocity(col, row)
        bottom_left = grid.safe_velocity(col, row + 1)
        bottom_right = grid.safe_velocity(col + 1, row + 1)

        magnitudes = np.array([
            -top[0],
            -top[2],
            -bottom_right[1],
            bottom_right[0],
            bottom_left[2],
            bottom_left[1],
        ])
        return magnitudes[:, np.newaxis] * EDGE_DIRECTIONS
