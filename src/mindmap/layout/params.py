"""Size-tiered layout parameters."""

from dataclasses import dataclass

LARGE_GRAPH_THRESHOLD = 200
MEDIUM_GRAPH_THRESHOLD = 100


@dataclass
class LayoutParams:
    """Force and convergence settings for one simulation.

    Larger graphs get shorter links, weaker repulsion and faster decay so
    they settle quickly and stay legible inside the viewport; small graphs
    get more room.
    """

    link_distance: float = 280.0
    charge_strength: float = -800.0
    alpha_decay: float = 0.02

    # Synchronous warm-up before the first paint (large graphs only)
    fast_forward_ticks: int = 0
    fast_forward_alpha: float = 0.1

    collision_margin: float = 20.0  # Added to the rendered radius
    collision_strength: float = 0.9
    center_strength: float = 1.0
    velocity_decay: float = 0.4

    alpha_min: float = 0.001  # Below this the simulation is settled
    drag_alpha_target: float = 0.3
    resize_alpha: float = 0.1

    @classmethod
    def for_node_count(cls, node_count: int) -> "LayoutParams":
        """Pick the tier for a graph of `node_count` nodes."""
        if node_count > LARGE_GRAPH_THRESHOLD:
            return cls(
                link_distance=160.0,
                charge_strength=-400.0,
                alpha_decay=0.05,
                fast_forward_ticks=80,
            )
        if node_count > MEDIUM_GRAPH_THRESHOLD:
            return cls(link_distance=220.0, charge_strength=-600.0, alpha_decay=0.02)
        return cls(link_distance=280.0, charge_strength=-800.0, alpha_decay=0.02)
