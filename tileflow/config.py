"""
config.py — Simulation Parameters
==================================
The scalar knobs every stencil reads. One instance per simulation,
handed to the topology at construction (never module-level state).
"""

from dataclasses import dataclass, asdict

from .vectors import ConfigurationError


@dataclass(frozen=True)
class SimulationParams:
    """
    Args:
        viscosity    : Kept for consumers and snapshots; the relaxation
                       pass does not damp velocity with it.
        time_step    : Seconds per step. 0 freezes velocity.
        density      : Fluid density (must be > 0)
        cell_size    : Edge length of one tile (must be > 0)
        max_velocity : Per-axis bound used when randomizing velocity
    """

    viscosity: float = 0.1
    time_step: float = 1.0 / 60.0
    density: float = 1.0
    cell_size: float = 1.0
    max_velocity: float = 5.0

    def __post_init__(self):
        if self.density <= 0:
            raise ConfigurationError(f"density must be > 0, got {self.density}")
        if self.cell_size <= 0:
            raise ConfigurationError(f"cell_size must be > 0, got {self.cell_size}")
        if self.time_step < 0:
            raise ConfigurationError(f"time_step must be >= 0, got {self.time_step}")
        if self.max_velocity < 0:
            raise ConfigurationError(f"max_velocity must be >= 0, got {self.max_velocity}")

    @property
    def gradient_scale(self) -> float:
        """K = dt / (rho * h), the factor in front of the pressure gradient."""
        return self.time_step / (self.density * self.cell_size)

    @property
    def divergence_scale(self) -> float:
        """rho * h / dt, the factor in front of the divergence. 0 when dt is 0."""
        if self.time_step == 0:
            return 0.0
        return self.density * self.cell_size / self.time_step

    def to_dict(self) -> dict:
        return asdict(self)
