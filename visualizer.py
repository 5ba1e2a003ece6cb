"""
visualizer.py — Live Tile & Arrow Viewer
=========================================
Draws the simulation the way the overlay shows it:
  - one coloured tile per pressure cell (blue < 0 < red, white at 0)
  - one arrow per lattice point for velocity
    (hex lattices get three short arrows per point, one per stored edge)

Uses matplotlib FuncAnimation for real-time updates. Interaction:
  left click  → push pressure up on the nearest tile
  right click → pull pressure down on the nearest tile
  r           → randomize the grid
  z           → zero the grid
  space       → pause / resume stepping

Everything placed on screen goes through the simulation's
tile_uv / velocity_uv, so the viewer never special-cases square vs hex
placement. Display is in UV space: x right, y DOWN.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.collections import PatchCollection
from matplotlib.colors import LinearSegmentedColormap, TwoSlopeNorm
from matplotlib.patches import Rectangle, RegularPolygon

# Negative → neutral → positive pressure
PRESSURE_COLORS = ["#0000ff", "#ffffff", "#ff0000"]
pressure_cmap = LinearSegmentedColormap.from_list("pressure", PRESSURE_COLORS)

PRESSURE_LIMIT = 10.0   # colours saturate at ±10
CLICK_PRESSURE = 2.0    # pressure added per click

# Three-arrow layout for hex points: (position offset, arrow direction)
# per stored component, in units of the offset distance. y points down.
_C60, _S60 = np.cos(np.radians(60.0)), np.sin(np.radians(60.0))
_C120, _S120 = np.cos(np.radians(120.0)), np.sin(np.radians(120.0))
HEX_ARROW_OFFSETS = np.array([[-_C60, _S60], [0.0, -1.0], [_C60, _S60]])
HEX_ARROW_DIRECTIONS = np.array([[-_C120, -_S120], [1.0, 0.0], [_C120, -_S120]])


def pressure_norm(limit: float = PRESSURE_LIMIT) -> TwoSlopeNorm:
    """Colour norm with 0 pinned to the neutral colour."""
    return TwoSlopeNorm(vmin=-limit, vcenter=0.0, vmax=limit)


def tile_centres(sim) -> np.ndarray:
    """(cols*rows, 2) UV positions of every tile, col-major like pressure.ravel()."""
    return np.array([sim.tile_uv(c, r) for c in range(sim.cols) for r in range(sim.rows)])


def nearest_tile(sim, u: float, v: float) -> tuple:
    """(col, row) of the tile whose centre is closest to (u, v)."""
    centres = tile_centres(sim)
    idx = int(np.argmin(np.sum((centres - [u, v]) ** 2, axis=1)))
    return divmod(idx, sim.rows)


def arrow_field(sim) -> tuple:
    """
    Positions and directions of every velocity arrow.

    Returns (X, Y, U, V) flat arrays in UV space. Square lattices give one
    arrow per point; hex lattices give three (one per stored edge flow).
    """
    vel = sim.velocity_grid()
    width = vel.shape[-1]
    points = np.array([
        sim.velocity_uv(c, r) for c in range(sim.cols + 1) for r in range(sim.rows + 1)
    ])
    flat = vel.reshape(-1, width)

    if width == 2:
        return points[:, 0], points[:, 1], flat[:, 0], flat[:, 1]

    spread = 0.2 / max(sim.cols, sim.rows)
    pos = points[:, np.newaxis, :] + spread * HEX_ARROW_OFFSETS[np.newaxis, :, :]
    vec = flat[:, :, np.newaxis] * HEX_ARROW_DIRECTIONS[np.newaxis, :, :]
    pos = pos.reshape(-1, 2)
    vec = vec.reshape(-1, 2)
    return pos[:, 0], pos[:, 1], vec[:, 0], vec[:, 1]


def _tile_patches(sim) -> list:
    centres = tile_centres(sim)
    if sim.topology.vector_width == 3:
        radius = 0.5 / max(sim.cols - 1, 1) / np.cos(np.radians(30.0))
        return [RegularPolygon((u, v), numVertices=6, radius=radius) for u, v in centres]
    w, h = 1.0 / sim.cols, 1.0 / sim.rows
    return [Rectangle((u - w / 2, v - h / 2), w, h) for u, v in centres]


class FluidVisualizer:
    """
    Real-time tile/arrow viewer of the simulation.

    Usage (standalone):
        from tileflow import FluidSimulation
        from visualizer import FluidVisualizer

        sim = FluidSimulation(cols=12, rows=10, topology="HEX_EDGE")
        viz = FluidVisualizer(sim)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation, pressure_limit: float = PRESSURE_LIMIT):
        """
        Args:
            simulation     : FluidSimulation instance
            pressure_limit : Pressure at which tile colours saturate
        """
        self.sim = simulation
        self.pressure_limit = pressure_limit
        self.paused = False

        self._setup_figure()

    def _setup_figure(self):
        """Initialize the figure: tile collection, arrows, title."""
        self.fig, self.ax = plt.subplots(figsize=(8, 7))
        self.fig.patch.set_facecolor('#0a0a0a')
        self.ax.set_facecolor('#0a0a0a')
        self.ax.set_xticks([])
        self.ax.set_yticks([])
        self.ax.set_aspect('equal')

        self.tiles = PatchCollection(_tile_patches(self.sim), cmap=pressure_cmap,
                                     norm=pressure_norm(self.pressure_limit),
                                     edgecolor='#333333', linewidth=0.5)
        self.tiles.set_array(self.sim.pressure_grid().ravel())
        self.ax.add_collection(self.tiles)

        X, Y, U, V = arrow_field(self.sim)
        scale = max(self.sim.params.max_velocity, 1e-6) * max(self.sim.cols, self.sim.rows) * 2
        self.arrows = self.ax.quiver(X, Y, U, V, color='#111111',
                                     angles='xy', scale_units='xy', scale=scale, width=0.004)

        pad = 0.6 / min(self.sim.cols, self.sim.rows)
        self.ax.set_xlim(-pad, 1 + pad)
        self.ax.set_ylim(1 + pad, -pad)   # y down, like the overlay

        self.title_text = self.fig.suptitle(
            f"Tile Flow — Frame 0 | {self.sim.topology.name}",
            color='#cccccc', fontsize=10, fontfamily='monospace'
        )

        self.fig.canvas.mpl_connect('button_press_event', self.on_click)
        self.fig.canvas.mpl_connect('key_press_event', self.on_key)

    def redraw(self):
        """Push the current fields into the artists."""
        self.tiles.set_array(self.sim.pressure_grid().ravel())
        _, _, U, V = arrow_field(self.sim)
        self.arrows.set_UVC(U, V)

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates artists."""
        if not self.paused:
            metrics = self.sim.step()
            self.title_text.set_text(
                f"Tile Flow — Frame {metrics['frame']} | {metrics['topology']} | "
                f"{metrics['fps']:.1f} FPS | div_max={metrics['divergence_max']:.4f}"
            )
        self.redraw()
        return [self.tiles, self.arrows, self.title_text]

    def on_click(self, event):
        if event.inaxes is not self.ax or event.xdata is None:
            return
        col, row = nearest_tile(self.sim, event.xdata, event.ydata)
        delta = CLICK_PRESSURE if event.button == 1 else -CLICK_PRESSURE
        self.sim.set_pressure_at(col, row, self.sim.pressure_at(col, row) + delta)
        self.redraw()

    def on_key(self, event):
        if event.key == 'r':
            self.sim.randomize_grid()
        elif event.key == 'z':
            self.sim.zero_grid()
        elif event.key == ' ':
            self.paused = not self.paused
        self.redraw()

    def run(self, fps: int = 30, frames: int = None):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render (None = until closed)
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False,
            cache_frame_data=False,
        )
        plt.show()

    def save_gif(self, path: str = "tileflow.gif", fps: int = 10, frames: int = 100):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=100, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
