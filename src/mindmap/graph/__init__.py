"""Graph traversal and renderable subgraph construction.

Provides:
- Bounded neighbor expansion (BFS over an undirected view of the edges)
- Renderable subgraph building (dangling edge removal, connection counts)
- Node type palette
"""

from mindmap.graph.expansion import NeighborExpander, clamp_depth, dedupe_edges
from mindmap.graph.palette import NODE_COLORS, color_for
from mindmap.graph.subgraph import (
    RenderEdge,
    RenderGraph,
    RenderNode,
    build_render_graph,
    node_type_counts,
    radius_scale,
)

__all__ = [
    # Expansion
    "NeighborExpander",
    "clamp_depth",
    "dedupe_edges",
    # Subgraph
    "RenderNode",
    "RenderEdge",
    "RenderGraph",
    "build_render_graph",
    "node_type_counts",
    "radius_scale",
    # Palette
    "NODE_COLORS",
    "color_for",
]
