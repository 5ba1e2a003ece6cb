"""
tileflow/ — Grid Flow Approximator
===================================
Exports the interfaces the viewer and CLI use.

visualizer.py imports: FluidSimulation
main.py imports:       FluidSimulation, SimulationParams, TOPOLOGIES
"""

from .config import SimulationParams
from .grid import FluidGrid
from .hexagonal import HexEdgeTopology
from .simulation import (
    FluidSimulation,
    TOPOLOGIES,
    TOPOLOGY_CORNER,
    TOPOLOGY_EDGE,
    TOPOLOGY_HEX_EDGE,
    make_topology,
)
from .square import CornerTopology, EdgeTopology
from .topology import Topology
from .vectors import ConfigurationError, VectorWidth, VectorWidthError

__all__ = [
    "FluidSimulation",
    "FluidGrid",
    "SimulationParams",
    "Topology",
    "CornerTopology",
    "EdgeTopology",
    "HexEdgeTopology",
    "TOPOLOGIES",
    "TOPOLOGY_CORNER",
    "TOPOLOGY_EDGE",
    "TOPOLOGY_HEX_EDGE",
    "make_topology",
    "ConfigurationError",
    "VectorWidth",
    "VectorWidthError",
]
