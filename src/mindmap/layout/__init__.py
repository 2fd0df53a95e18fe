"""Force-directed layout engine."""

from mindmap.layout.bounds import Bounds
from mindmap.layout.forces import CenterForce, CollideForce, LinkForce, ManyBodyForce, SimState
from mindmap.layout.params import LARGE_GRAPH_THRESHOLD, MEDIUM_GRAPH_THRESHOLD, LayoutParams
from mindmap.layout.simulation import ForceSimulation

__all__ = [
    "Bounds",
    "ForceSimulation",
    "LayoutParams",
    "LARGE_GRAPH_THRESHOLD",
    "MEDIUM_GRAPH_THRESHOLD",
    "SimState",
    "LinkForce",
    "ManyBodyForce",
    "CenterForce",
    "CollideForce",
]
