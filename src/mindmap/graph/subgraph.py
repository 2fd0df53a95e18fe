"""Renderable subgraph construction.

Turns a fetched node/edge payload into render nodes keyed by name, with
edges resolved to node objects. Edges whose endpoints are missing are
dropped silently; that is expected for partial-depth expansions.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field

from mindmap.graph.palette import color_for
from mindmap.models import GraphEdge, GraphNode, Properties

MIN_RADIUS = 5.0
MAX_RADIUS = 40.0


def radius_scale(connections: int, max_connections: int) -> float:
    """Square-root scale from [0, max_connections] onto [MIN_RADIUS, MAX_RADIUS]."""
    domain_max = max_connections or 1
    t = math.sqrt(max(connections, 0)) / math.sqrt(domain_max)
    return MIN_RADIUS + (MAX_RADIUS - MIN_RADIUS) * t


@dataclass(eq=False)
class RenderNode:
    """A node in a rendered view; carries the transient layout state."""

    name: str
    type: str
    node: GraphNode
    properties: Properties = field(default_factory=dict)
    connections: int = 0
    radius: float = MIN_RADIUS
    color: str = ""

    # Layout state, owned by the simulation
    x: float | None = None
    y: float | None = None
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def positioned(self) -> bool:
        return self.x is not None and self.y is not None

    @property
    def pinned(self) -> bool:
        return self.fx is not None and self.fy is not None


@dataclass(eq=False)
class RenderEdge:
    """An edge whose endpoints both exist in the rendered node set."""

    source: RenderNode
    target: RenderNode
    type: str
    edge: GraphEdge
    properties: Properties = field(default_factory=dict)


@dataclass
class RenderGraph:
    """Nodes and resolved edges of one rendered view."""

    nodes: list[RenderNode] = field(default_factory=list)
    edges: list[RenderEdge] = field(default_factory=list)
    dropped_edges: int = 0

    def __post_init__(self) -> None:
        self.by_name: dict[str, RenderNode] = {n.name: n for n in self.nodes}

    def get(self, name: str) -> RenderNode | None:
        return self.by_name.get(name)

    @property
    def max_radius(self) -> float:
        return max((n.radius for n in self.nodes), default=MIN_RADIUS)


def build_render_graph(
    nodes: list[GraphNode],
    edges: list[GraphEdge],
    previous: RenderGraph | None = None,
) -> RenderGraph:
    """Build the renderable subgraph for a node/edge payload.

    Args:
        nodes: Nodes to render; when names repeat the last one wins
        edges: Edges addressed by node name
        previous: Earlier render of the same graph; positions of nodes
            with matching names carry over

    Returns:
        RenderGraph with connections, radius and color populated
    """
    by_name: dict[str, RenderNode] = {}
    for node in nodes:
        by_name[node.name] = RenderNode(
            name=node.name,
            type=node.type,
            node=node,
            properties=node.properties,
            color=color_for(node.type),
        )

    if previous is not None:
        for name, render_node in by_name.items():
            old = previous.get(name)
            if old is not None and old.positioned:
                render_node.x, render_node.y = old.x, old.y
                render_node.vx, render_node.vy = old.vx, old.vy

    resolved: list[RenderEdge] = []
    dropped = 0
    for edge in edges:
        source = by_name.get(edge.source)
        target = by_name.get(edge.target)
        if source is None or target is None:
            dropped += 1
            continue
        resolved.append(
            RenderEdge(
                source=source,
                target=target,
                type=edge.type,
                edge=edge,
                properties=edge.properties,
            )
        )
        source.connections += 1
        target.connections += 1

    render_nodes = list(by_name.values())
    max_connections = max((n.connections for n in render_nodes), default=0)
    for render_node in render_nodes:
        render_node.radius = radius_scale(render_node.connections, max_connections)

    return RenderGraph(nodes=render_nodes, edges=resolved, dropped_edges=dropped)


def node_type_counts(nodes: list[RenderNode]) -> dict[str, int]:
    """Count rendered nodes per type, most common first."""
    return dict(Counter(n.type for n in nodes).most_common())
