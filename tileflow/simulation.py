"""
simulation.py — Driver
=======================
Owns the parameters, the topology and the grid, and runs the solver
a configurable number of times per external tick.

Per tick:
  for each of `steps_per_tick` repeats:
    1. Pressure sweep   (if update_pressure)
    2. Velocity sweep   (if update_velocity)

Changing the grid size or the topology throws the old grid away and
allocates a new one. Randomize / zero / point writes act on the
primary buffers immediately.
"""

import dataclasses
import logging
import time

import numpy as np

from .config import SimulationParams
from .grid import FluidGrid
from .hexagonal import HexEdgeTopology
from .solver import step_pressure, step_velocity, sweep
from .square import CornerTopology, EdgeTopology
from .vectors import ConfigurationError

log = logging.getLogger(__name__)


# ── Topology selector ─────────────────────────────────────────────────────────
TOPOLOGY_CORNER   = CornerTopology.name
TOPOLOGY_EDGE     = EdgeTopology.name
TOPOLOGY_HEX_EDGE = HexEdgeTopology.name

TOPOLOGIES = {
    cls.name: cls for cls in (CornerTopology, EdgeTopology, HexEdgeTopology)
}


def make_topology(kind: str, cols: int, rows: int, params: SimulationParams = None):
    """Build the topology named `kind` ("CORNER", "EDGE" or "HEX_EDGE")."""
    cls = TOPOLOGIES.get(str(kind).upper())
    if cls is None:
        raise ValueError(f"Unknown topology: {kind}. Use one of {sorted(TOPOLOGIES)}.")
    return cls(cols, rows, params)


class FluidSimulation:
    """
    The interactive pressure/velocity approximator.

    Usage:
        sim = FluidSimulation(cols=10, rows=10, topology="HEX_EDGE", seed=1)
        sim.set_velocity_at(4, 3, (1.0, 0.0, 0.0))   # user drags an arrow
        for frame in range(100):
            sim.step()
            tiles = sim.pressure_grid()               # hand to the viewer
    """

    def __init__(self, cols: int = 10, rows: int = 10,
                 topology: str = TOPOLOGY_EDGE,
                 params: SimulationParams = None,
                 steps_per_tick: int = 10,
                 update_pressure: bool = True,
                 update_velocity: bool = True,
                 seed: int = None,
                 randomize: bool = True):
        """
        Args:
            cols, rows      : Number of tiles across / down
            topology        : "CORNER", "EDGE" or "HEX_EDGE"
            params          : SimulationParams (defaults if omitted)
            steps_per_tick  : Full step cycles per call to step()
            update_pressure : Run the pressure phase each cycle
            update_velocity : Run the velocity phase each cycle
            seed            : Seed for randomize_grid() (None = unseeded)
            randomize       : Start (and restart after a rebuild) from
                              random velocities
        """
        if int(steps_per_tick) < 0:
            raise ConfigurationError(f"steps_per_tick must be >= 0, got {steps_per_tick}")

        self.params = params if params is not None else SimulationParams()
        self.steps_per_tick = int(steps_per_tick)
        self.update_pressure = update_pressure
        self.update_velocity = update_velocity
        self.randomize = randomize
        self.rng = np.random.default_rng(seed)

        self.frame = 0
        self.perf_log = []   # stores metrics per tick

        self.grid = None
        self._build(cols, rows, topology)

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def _build(self, cols: int, rows: int, kind: str):
        topology = make_topology(kind, cols, rows, self.params)
        self.grid = FluidGrid(topology, rng=self.rng)
        if self.randomize:
            self.grid.randomize_velocity()
        log.info("Allocated %s grid %dx%d", topology.name, topology.cols, topology.rows)

    @property
    def topology(self):
        return self.grid.topology

    @property
    def cols(self) -> int:
        return self.grid.cols

    @property
    def rows(self) -> int:
        return self.grid.rows

    def resize(self, cols: int, rows: int):
        """New lattice size. Discards the current fields."""
        self._build(cols, rows, self.topology.name)

    def set_topology(self, kind: str):
        """Switch lattice variant. Discards the current fields."""
        self._build(self.cols, self.rows, kind)

    def set_params(self, **changes):
        """Replace some simulation parameters, e.g. set_params(time_step=0.01)."""
        self.params = dataclasses.replace(self.params, **changes)
        self.grid.topology.params = self.params

    def set_phases(self, update_pressure: bool = True, update_velocity: bool = True):
        self.update_pressure = update_pressure
        self.update_velocity = update_velocity
        log.info("Phases: pressure=%s velocity=%s", update_pressure, update_velocity)

    # ── Stepping ───────────────────────────────────────────────────────────

    def step(self) -> dict:
        """
        One external tick: `steps_per_tick` full step cycles.

        Returns performance / field metrics for the tick.
        """
        t_start = time.perf_counter()
        cycle = {}
        t_pressure = 0.0
        t_velocity = 0.0

        for _ in range(self.steps_per_tick):
            cycle = sweep(self.grid, self.update_pressure, self.update_velocity)
            t_pressure += cycle["pressure_ms"]
            t_velocity += cycle["velocity_ms"]

        self.frame += 1
        t_total = (time.perf_counter() - t_start) * 1000

        metrics = {
            "frame"          : self.frame,
            "topology"       : self.topology.name,
            "steps"          : self.steps_per_tick,
            "total_ms"       : t_total,
            "fps"            : 1000.0 / t_total if t_total > 0 else 0,
            "pressure_ms"    : t_pressure,
            "velocity_ms"    : t_velocity,
            "divergence_max" : cycle.get("divergence_max", float(np.abs(self.grid.divergence).max())),
            "velocity_max"   : cycle.get("velocity_max", float(np.abs(self.grid.masked_velocity()).max())),
            "pressure_min"   : float(self.grid.pressure.min()),
            "pressure_max"   : float(self.grid.pressure.max()),
        }
        self.perf_log.append(metrics)
        return metrics

    def step_pressure(self) -> np.ndarray:
        """Single pressure sweep. Returns a copy of the new pressure grid."""
        return step_pressure(self.grid).copy()

    def step_velocity(self) -> np.ndarray:
        """Single velocity sweep. Returns a copy of the new velocity grid."""
        return step_velocity(self.grid).copy()

    # ── One-shot actions ───────────────────────────────────────────────────

    def randomize_grid(self, seed: int = None):
        """
        Random velocity and pressure, applied immediately.
        A seed restarts the generator, so the same seed gives the same grid.
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
            self.grid.rng = self.rng
        self.grid.randomize()

    def zero_grid(self):
        self.grid.reset()

    def set_pressure_at(self, col: int, row: int, value: float) -> bool:
        return self.grid.write_pressure(col, row, value)

    def set_velocity_at(self, col: int, row: int, vector) -> bool:
        """Vector width must match the topology (2 square, 3 hex)."""
        return self.grid.write_velocity(col, row, vector)

    # ── Queries ────────────────────────────────────────────────────────────

    def pressure_grid(self) -> np.ndarray:
        return self.grid.pressure.copy()

    def velocity_grid(self) -> np.ndarray:
        """(cols+1, rows+1, width) velocities with the boundary rule applied."""
        return self.grid.masked_velocity()

    def divergence_grid(self) -> np.ndarray:
        """Divergence from the most recent pressure sweep."""
        return self.grid.divergence.copy()

    def pressure_at(self, col: int, row: int) -> float:
        return self.grid.safe_pressure(col, row)

    def velocity_at(self, col: int, row: int) -> np.ndarray:
        return self.grid.safe_velocity(col, row)

    def tile_uv(self, col: int, row: int) -> tuple:
        return self.topology.tile_uv(col, row)

    def velocity_uv(self, col: int, row: int) -> tuple:
        return self.topology.velocity_uv(col, row)

    def neighbour_indices(self, col: int, row: int) -> list:
        return self.topology.neighbour_indices(col, row)

    def get_snapshot(self) -> dict:
        """Current state as plain numpy arrays plus the parameters."""
        snapshot = self.grid.save_state()
        snapshot["frame"] = self.frame
        snapshot["params"] = self.params.to_dict()
        return snapshot

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        vel = g.masked_velocity()
        div = g.compute_divergence()
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  Topology: {self.topology.name}  |  {g.cols}x{g.rows}")
        print(f"  Pressure  : min={g.pressure.min():.4f}, max={g.pressure.max():.4f}")
        print(f"  Velocity  : max_component={np.abs(vel).max():.4f}")
        print(f"  Divergence: max={np.abs(div).max():.6f}, mean={np.abs(div).mean():.8f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/tick ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")
