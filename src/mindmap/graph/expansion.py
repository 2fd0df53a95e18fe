"""Bounded neighbor expansion around a focus node.

Algorithm:
1. Seed `visited` and the frontier with the start name
2. For each hop (up to the clamped depth):
   a. Fetch edges leaving the frontier and edges entering it
      (one batched query per direction)
   b. Keep every edge; mark each unseen endpoint visited immediately
      and queue it for the next hop
   c. Resolve the hop's new names to nodes in one batched query
3. Drop duplicate edges by identity, first occurrence wins

Edges are followed in both directions for reachability, while each edge
keeps its stored source/target in the result.
"""

import logging

from mindmap.config import settings
from mindmap.errors import NodeNotFoundError
from mindmap.models import Expansion, GraphEdge, GraphNode
from mindmap.storage.base import GraphStore

logger = logging.getLogger(__name__)


def clamp_depth(depth: int, max_depth: int) -> int:
    """Clamp a requested hop count into [0, max_depth]."""
    return max(0, min(int(depth), max_depth))


def dedupe_edges(edges: list[GraphEdge]) -> list[GraphEdge]:
    """Remove repeated edges by stable identity, keeping first occurrence."""
    seen: set[str] = set()
    unique: list[GraphEdge] = []
    for edge in edges:
        if edge.id in seen:
            continue
        seen.add(edge.id)
        unique.append(edge)
    return unique


class NeighborExpander:
    """Breadth-first expansion over an undirected view of a graph's edges."""

    def __init__(self, store: GraphStore, max_depth: int | None = None) -> None:
        self.store = store
        self.max_depth = max_depth if max_depth is not None else settings.max_expansion_depth

    async def expand(self, graph_id: str, start_name: str, max_depth: int) -> Expansion:
        """
        Collect the subgraph reachable from `start_name` within `max_depth` hops.

        Args:
            graph_id: Graph to query
            start_name: Name of the focus node
            max_depth: Requested hop bound; clamped to [0, self.max_depth]

        Returns:
            Expansion with the focus node first, then nodes in discovery order

        Raises:
            NodeNotFoundError: if the start node does not exist in the graph
        """
        focus = await self.store.get_node(graph_id, start_name)
        if focus is None:
            raise NodeNotFoundError(graph_id, start_name)

        depth = clamp_depth(max_depth, self.max_depth)
        nodes: list[GraphNode] = [focus]
        edges: list[GraphEdge] = []

        visited = {start_name}
        frontier = [start_name]
        hops = 0

        for _ in range(depth):
            if not frontier:
                break
            hops += 1

            outgoing = await self.store.get_edges_from(graph_id, frontier)
            incoming = await self.store.get_edges_to(graph_id, frontier)

            next_frontier: list[str] = []
            for edge in outgoing + incoming:
                edges.append(edge)
                for name in (edge.source, edge.target):
                    if name not in visited:
                        visited.add(name)
                        next_frontier.append(name)

            # Names without a stored node are dangling endpoints; they stay
            # visited so they are not looked up again.
            nodes.extend(await self.store.get_nodes_by_names(graph_id, next_frontier))
            frontier = next_frontier

        unique_edges = dedupe_edges(edges)
        logger.debug(
            f"Expanded '{start_name}' in {graph_id}: {hops} hops, "
            f"{len(nodes)} nodes, {len(unique_edges)} edges "
            f"({len(edges) - len(unique_edges)} duplicates dropped)"
        )
        return Expansion(focus_node=focus, nodes=nodes, edges=unique_edges, depth=depth)
