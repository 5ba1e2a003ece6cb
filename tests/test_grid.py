"""Tests for the double-buffered grid store.

Covers safe reads, point writes, randomization and the scratch/primary swap.
"""

import logging

import numpy as np
import pytest

from tileflow.solver import step_pressure, step_velocity

TOPOLOGY_NAMES = ["CORNER", "EDGE", "HEX_EDGE"]


class TestShapes:
    @pytest.mark.parametrize("kind, width", [("CORNER", 2), ("EDGE", 2), ("HEX_EDGE", 3)])
    def test_buffer_shapes(self, make_grid, kind, width):
        grid = make_grid(kind, cols=5, rows=3)
        assert grid.pressure.shape == (5, 3)
        assert grid.pressure_scratch.shape == (5, 3)
        assert grid.divergence.shape == (5, 3)
        assert grid.velocity.shape == (6, 4, width)
        assert grid.velocity_scratch.shape == (6, 4, width)


class TestSafeReads:
    def test_pressure_outside_is_zero(self, make_grid):
        grid = make_grid("EDGE", cols=3, rows=3)
        grid.pressure[:] = 7.0
        assert grid.safe_pressure(0, 0) == 7.0
        for col, row in [(-1, 0), (0, -1), (3, 0), (0, 3), (10, 10)]:
            assert grid.safe_pressure(col, row) == 0.0

    @pytest.mark.parametrize("kind", TOPOLOGY_NAMES)
    def test_invalid_points_read_zero_whatever_is_stored(self, make_grid, kind):
        grid = make_grid(kind, cols=5, rows=4)
        grid.velocity[:] = 3.0
        topo = grid.topology
        for col in range(-1, grid.cols + 2):
            for row in range(-1, grid.rows + 2):
                if not topo.is_corner_valid(col, row):
                    assert np.array_equal(grid.safe_velocity(col, row), np.zeros(grid.width))

    def test_non_integer_index_reads_as_outside(self, make_grid):
        grid = make_grid("EDGE", cols=3, rows=3)
        grid.pressure[:] = 7.0
        grid.velocity[:] = 3.0
        assert grid.safe_pressure(1.5, 1) == 0.0
        assert grid.safe_pressure(1, "1") == 0.0
        assert np.array_equal(grid.safe_velocity(1.5, 1), np.zeros(2))

    def test_masked_velocity_matches_safe_reads(self, noisy_grid):
        grid = noisy_grid("HEX_EDGE")
        masked = grid.masked_velocity()
        for col in range(grid.cols + 1):
            for row in range(grid.rows + 1):
                assert np.array_equal(masked[col, row], grid.safe_velocity(col, row))


class TestPointWrites:
    def test_pressure_write(self, make_grid):
        grid = make_grid("CORNER")
        assert grid.write_pressure(1, 2, 4.5) is True
        assert grid.pressure[1, 2] == 4.5

    @pytest.mark.parametrize("col, row, value", [
        (-1, 0, 1.0), (4, 0, 1.0), (0, 4, 1.0), (0, 0, "high"), (0, 0, np.inf),
        (1.5, 2, 1.0), (1, None, 1.0), ("1", 0, 1.0),
    ])
    def test_rejected_pressure_write_is_noop(self, make_grid, caplog, col, row, value):
        grid = make_grid("CORNER")
        with caplog.at_level(logging.WARNING):
            assert grid.write_pressure(col, row, value) is False
        assert np.all(grid.pressure == 0.0)
        assert "Rejected pressure write" in caplog.text

    def test_velocity_write_on_invalid_corner_is_rejected(self, make_grid, caplog):
        grid = make_grid("CORNER")
        with caplog.at_level(logging.WARNING):
            assert grid.write_velocity(0, 2, (1.0, 1.0)) is False
        assert np.all(grid.velocity == 0.0)
        assert "not a valid CORNER lattice point" in caplog.text

    @pytest.mark.parametrize("kind", TOPOLOGY_NAMES)
    def test_non_integer_velocity_index_is_rejected(self, make_grid, caplog, kind):
        grid = make_grid(kind, cols=4, rows=4)
        vec = np.ones(grid.width)
        with caplog.at_level(logging.WARNING):
            assert grid.write_velocity(1.5, 2, vec) is False
            assert grid.write_velocity(2, "2", vec) is False
        assert np.all(grid.velocity == 0.0)
        assert caplog.text.count("index is not an integer") == 2

    def test_numpy_integer_index_is_accepted(self, make_grid):
        grid = make_grid("EDGE")
        assert grid.write_pressure(np.int64(1), np.int32(2), 3.0)
        assert grid.safe_pressure(np.int64(1), 2) == 3.0

    def test_velocity_width_mismatch_is_rejected(self, make_grid, caplog):
        hex_grid = make_grid("HEX_EDGE", cols=6, rows=6)
        square = make_grid("EDGE")
        with caplog.at_level(logging.WARNING):
            assert hex_grid.write_velocity(2, 2, (1.0, 0.0)) is False
            assert square.write_velocity(2, 2, (1.0, 0.0, 0.0)) is False
        assert np.all(hex_grid.velocity == 0.0)
        assert np.all(square.velocity == 0.0)
        assert caplog.text.count("Rejected velocity write") == 2

    def test_write_goes_straight_to_primary(self, make_grid):
        grid = make_grid("EDGE")
        assert grid.write_velocity(2, 2, (0.5, -0.5))
        assert np.array_equal(grid.velocity[2, 2], [0.5, -0.5])
        assert np.all(grid.velocity_scratch == 0.0)


class TestRandomize:
    @pytest.mark.parametrize("kind", TOPOLOGY_NAMES)
    def test_velocity_bounds_and_invalid_zero(self, make_grid, kind):
        grid = make_grid(kind, cols=6, rows=5)
        grid.randomize_velocity()
        max_v = grid.params.max_velocity
        assert np.all(np.abs(grid.velocity) <= max_v)
        assert np.all(grid.velocity[grid.topology.velocity_mask == 0] == 0.0)
        assert np.any(grid.velocity != 0.0)

    def test_pressure_range(self, make_grid):
        grid = make_grid("EDGE", cols=8, rows=8)
        grid.randomize_pressure()
        assert np.all(np.abs(grid.pressure) <= 1.0)
        assert np.any(grid.pressure != 0.0)

    def test_reset_clears_everything(self, noisy_grid):
        grid = noisy_grid("CORNER")
        step_pressure(grid)
        grid.reset()
        for arr in [grid.pressure, grid.pressure_scratch, grid.divergence,
                    grid.velocity, grid.velocity_scratch]:
            assert np.all(arr == 0.0)


class TestSwap:
    def test_pressure_sweep_swaps_by_reference(self, noisy_grid):
        grid = noisy_grid("EDGE")
        old_primary = grid.pressure
        old_scratch = grid.pressure_scratch
        step_pressure(grid)
        assert grid.pressure is old_scratch
        assert grid.pressure_scratch is old_primary

    def test_velocity_sweep_swaps_by_reference(self, noisy_grid):
        grid = noisy_grid("HEX_EDGE")
        old_primary = grid.velocity
        old_scratch = grid.velocity_scratch
        step_velocity(grid)
        assert grid.velocity is old_scratch
        assert grid.velocity_scratch is old_primary

    def test_sweep_reads_only_old_state(self, noisy_grid):
        """Every tile must see the pre-sweep neighbours, not already-updated ones."""
        grid = noisy_grid("CORNER")
        expected = np.array([
            [grid.topology.pressure_at(grid, c, r) for r in range(grid.rows)]
            for c in range(grid.cols)
        ])
        step_pressure(grid)
        assert np.allclose(grid.pressure, expected)


def test_save_state_is_a_copy(noisy_grid):
    grid = noisy_grid("EDGE")
    state = grid.save_state()
    state["pressure"][:] = 99.0
    assert not np.any(grid.pressure == 99.0)
    assert state["topology"] == "EDGE"
    assert state["velocity"].shape == grid.velocity.shape
