"""Force-directed layout simulation.

Steps a velocity-Verlet style integration with a decaying energy (alpha):
each tick moves alpha toward its target, applies link attraction,
many-body repulsion, centering and collision, then damps velocities and
moves every unpinned node. Once alpha drops below `alpha_min` scheduled
ticks become no-ops until something perturbs the simulation again.
"""

import logging

import numpy as np

from mindmap.graph.subgraph import RenderGraph, RenderNode
from mindmap.layout.bounds import Bounds
from mindmap.layout.forces import (
    CenterForce,
    CollideForce,
    LinkForce,
    ManyBodyForce,
    SimState,
)
from mindmap.layout.params import LayoutParams

logger = logging.getLogger(__name__)


class ForceSimulation:
    """Iterative layout for one rendered node/edge set.

    Positions are written back onto the graph's `RenderNode` objects after
    every step, so callers can read `node.x` / `node.y` directly.
    """

    def __init__(
        self,
        graph: RenderGraph,
        width: float,
        height: float,
        params: LayoutParams | None = None,
        seed: int | None = None,
    ) -> None:
        self.graph = graph
        self.nodes: list[RenderNode] = graph.nodes
        self.params = params or LayoutParams.for_node_count(len(self.nodes))
        self.width = width
        self.height = height

        self.alpha = 1.0
        self.alpha_target = 0.0
        self.tick_count = 0
        self._running = True
        self._index = {node.name: i for i, node in enumerate(self.nodes)}

        rng = np.random.default_rng(seed)
        self.state = self._initial_state(rng)

        sources = np.array([self._index[e.source.name] for e in graph.edges], dtype=int)
        targets = np.array([self._index[e.target.name] for e in graph.edges], dtype=int)
        radii = np.array(
            [n.radius + self.params.collision_margin for n in self.nodes], dtype=float
        )

        self.link = LinkForce(sources, targets, len(self.nodes), self.params.link_distance)
        self.charge = ManyBodyForce(self.params.charge_strength)
        self.center = CenterForce(width / 2, height / 2, self.params.center_strength)
        self.collide = CollideForce(radii, self.params.collision_strength)
        self.forces = [self.link, self.charge, self.center, self.collide]

        if self.params.fast_forward_ticks:
            # Settle the initial burst before anything is painted
            self.step(self.params.fast_forward_ticks)
            self.alpha = self.params.fast_forward_alpha
            logger.debug(
                f"Fast-forwarded {self.params.fast_forward_ticks} ticks "
                f"for {len(self.nodes)} nodes"
            )
        self._write_back()

    def _initial_state(self, rng: np.random.Generator) -> SimState:
        n = len(self.nodes)
        x = rng.uniform(0, self.width, n)
        y = rng.uniform(0, self.height, n)
        vx = np.zeros(n)
        vy = np.zeros(n)
        fx = np.full(n, np.nan)
        fy = np.full(n, np.nan)

        # Nodes carried over from an earlier render keep their place
        for i, node in enumerate(self.nodes):
            if node.positioned:
                x[i], y[i] = node.x, node.y
                vx[i], vy[i] = node.vx, node.vy
            if node.pinned:
                fx[i], fy[i] = node.fx, node.fy

        return SimState(x=x, y=y, vx=vx, vy=vy, fx=fx, fy=fy, rng=rng)

    # ==========================================================================
    # Stepping
    # ==========================================================================

    @property
    def settled(self) -> bool:
        return not self._running

    def step(self, iterations: int = 1) -> None:
        """Advance the simulation unconditionally (manual ticks)."""
        state = self.state
        decay = 1.0 - self.params.velocity_decay
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.params.alpha_decay
            for force in self.forces:
                force.apply(state, self.alpha)

            free = np.isnan(state.fx)
            state.vx *= decay
            state.vy *= decay
            state.x[free] += state.vx[free]
            state.y[free] += state.vy[free]

            pinned = ~free
            state.x[pinned] = state.fx[pinned]
            state.y[pinned] = state.fy[pinned]
            state.vx[pinned] = 0.0
            state.vy[pinned] = 0.0
            self.tick_count += 1

    def tick(self) -> bool:
        """Scheduled tick. Returns False (and does nothing) once settled."""
        if not self._running:
            return False
        self.step()
        self._write_back()
        if self.alpha < self.params.alpha_min:
            self._running = False
            logger.debug(f"Layout settled after {self.tick_count} ticks")
        return True

    def restart(self, alpha: float | None = None) -> None:
        """Wake the simulation, optionally resetting its energy."""
        if alpha is not None:
            self.alpha = alpha
        self._running = True

    def stop(self) -> None:
        self._running = False

    def _write_back(self) -> None:
        state = self.state
        for i, node in enumerate(self.nodes):
            node.x = float(state.x[i])
            node.y = float(state.y[i])
            node.vx = float(state.vx[i])
            node.vy = float(state.vy[i])

    # ==========================================================================
    # Interaction
    # ==========================================================================

    def resize(self, width: float, height: float) -> None:
        """Re-anchor centering on the new viewport center and nudge the layout."""
        self.width = width
        self.height = height
        self.center.x = width / 2
        self.center.y = height / 2
        self.restart(self.params.resize_alpha)

    def pin(self, name: str, x: float, y: float) -> None:
        i = self._index[name]
        self.state.fx[i] = x
        self.state.fy[i] = y
        node = self.nodes[i]
        node.fx, node.fy = x, y

    def unpin(self, name: str) -> None:
        i = self._index[name]
        self.state.fx[i] = np.nan
        self.state.fy[i] = np.nan
        node = self.nodes[i]
        node.fx, node.fy = None, None

    def drag_start(self, name: str) -> None:
        """Hold a node where it is and raise the energy so neighbors follow."""
        self.alpha_target = self.params.drag_alpha_target
        self.restart()
        i = self._index[name]
        self.pin(name, float(self.state.x[i]), float(self.state.y[i]))

    def drag_to(self, name: str, x: float, y: float) -> None:
        self.pin(name, x, y)

    def drag_end(self, name: str) -> None:
        """Release the pin; energy decays back toward zero."""
        self.alpha_target = 0.0
        self.unpin(name)

    # ==========================================================================
    # Queries
    # ==========================================================================

    def position(self, name: str) -> tuple[float, float] | None:
        i = self._index.get(name)
        if i is None:
            return None
        return (float(self.state.x[i]), float(self.state.y[i]))

    def positions(self) -> dict[str, tuple[float, float]]:
        return {
            node.name: (float(self.state.x[i]), float(self.state.y[i]))
            for i, node in enumerate(self.nodes)
        }

    def bounds(self, include_radius: bool = True) -> Bounds | None:
        """Bounding box of the current layout, optionally grown by node radii."""
        if not self.nodes:
            return None
        points = list(zip(self.state.x.tolist(), self.state.y.tolist()))
        margins = [n.radius for n in self.nodes] if include_radius else None
        return Bounds.from_points(points, margins)

    def run_until_settled(self, max_ticks: int) -> int:
        """Tick until settled or the budget runs out; returns ticks taken."""
        taken = 0
        while taken < max_ticks and self.tick():
            taken += 1
        return taken
