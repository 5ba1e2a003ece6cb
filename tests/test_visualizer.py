"""Tests for the viewer helpers and the CLI entry point (Agg backend, no window)."""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from tileflow import FluidSimulation
from visualizer import FluidVisualizer, arrow_field, nearest_tile, pressure_norm, tile_centres
import main


@pytest.mark.parametrize("kind, per_point", [("CORNER", 1), ("EDGE", 1), ("HEX_EDGE", 3)])
def test_arrow_field_lengths(kind, per_point):
    sim = FluidSimulation(cols=5, rows=4, topology=kind, seed=0)
    X, Y, U, V = arrow_field(sim)
    n = (sim.cols + 1) * (sim.rows + 1) * per_point
    assert len(X) == len(Y) == len(U) == len(V) == n


def test_square_arrows_match_velocity_grid():
    sim = FluidSimulation(cols=3, rows=3, topology="EDGE", seed=2)
    _, _, U, V = arrow_field(sim)
    vel = sim.velocity_grid()
    assert np.array_equal(U, vel[..., 0].ravel())
    assert np.array_equal(V, vel[..., 1].ravel())


@pytest.mark.parametrize("kind", ["EDGE", "HEX_EDGE"])
def test_nearest_tile_inverts_tile_uv(kind):
    sim = FluidSimulation(cols=6, rows=5, topology=kind, randomize=False)
    assert nearest_tile(sim, *sim.tile_uv(3, 2)) == (3, 2)
    assert nearest_tile(sim, *sim.tile_uv(0, 4)) == (0, 4)
    assert tile_centres(sim).shape == (30, 2)


def test_pressure_norm_centres_on_zero():
    norm = pressure_norm(10.0)
    assert float(norm(0.0)) == pytest.approx(0.5)
    assert float(norm(-10.0)) == pytest.approx(0.0)
    assert float(norm(10.0)) == pytest.approx(1.0)


class TestFluidVisualizer:
    def test_update_steps_the_simulation(self):
        sim = FluidSimulation(cols=4, rows=4, topology="HEX_EDGE", seed=1, steps_per_tick=1)
        viz = FluidVisualizer(sim)
        try:
            viz.update(0)
            assert sim.frame == 1
            viz.paused = True
            viz.update(1)
            assert sim.frame == 1
        finally:
            plt.close(viz.fig)

    def test_zero_key_clears_the_grid(self):
        sim = FluidSimulation(cols=4, rows=4, topology="CORNER", seed=1)

        class KeyEvent:
            key = "z"

        viz = FluidVisualizer(sim)
        try:
            viz.on_key(KeyEvent())
            assert np.all(sim.velocity_grid() == 0.0)
        finally:
            plt.close(viz.fig)


class TestCli:
    def test_defaults(self):
        args = main.parse_args([])
        assert args.mode == "headless"
        assert args.topology == "EDGE"
        assert args.steps == 10

    def test_topology_flag_is_case_insensitive(self):
        args = main.parse_args(["--topology", "hex_edge", "--cols", "6", "--dt", "0"])
        sim = main.build_simulation(args)
        assert sim.topology.name == "HEX_EDGE"
        assert sim.params.time_step == 0.0

    def test_headless_run(self, capsys):
        args = main.parse_args(["--frames", "2", "--steps", "1", "--seed", "0",
                                "--cols", "4", "--rows", "4"])
        main.run_headless(args)
        out = capsys.readouterr().out
        assert "Headless simulation" in out
        assert "Frame: 2" in out
