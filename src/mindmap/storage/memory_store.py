"""Process-local graph store.

Keeps each graph's node and edge lists in insertion order, which makes
query results deterministic for a fixed snapshot. Used for the `memory`
backend and throughout the tests.
"""

import logging
from collections import Counter
from dataclasses import replace

from mindmap.errors import GraphNotFoundError
from mindmap.models import (
    GraphData,
    GraphEdge,
    GraphNode,
    GraphSummary,
    StoreStats,
    SyncResult,
)
from mindmap.models.timestamps import utc_now_iso
from mindmap.storage.base import check_unique_edge_ids

logger = logging.getLogger(__name__)


class InMemoryGraphStore:
    """Graph store backed by plain dictionaries."""

    def __init__(self) -> None:
        self._graphs: dict[str, GraphSummary] = {}
        self._nodes: dict[str, list[GraphNode]] = {}
        self._edges: dict[str, list[GraphEdge]] = {}
        # graph_id -> name -> first node with that name
        self._by_name: dict[str, dict[str, GraphNode]] = {}

    async def connect(self) -> None:
        logger.info("Using in-memory graph store")

    async def close(self) -> None:
        pass

    # ==========================================================================
    # Graph operations
    # ==========================================================================

    async def list_graphs(self) -> list[GraphSummary]:
        """List graphs, most recently synced first."""
        summaries = [replace(g) for g in self._graphs.values()]
        summaries.sort(key=lambda g: g.updated_at or "", reverse=True)
        return summaries

    async def get_graph_summary(self, graph_id: str) -> GraphSummary | None:
        summary = self._graphs.get(graph_id)
        return replace(summary) if summary else None

    async def get_graph(self, graph_id: str) -> GraphData:
        summary = self._graphs.get(graph_id)
        if summary is None:
            raise GraphNotFoundError(graph_id)
        return GraphData(
            id=summary.id,
            name=summary.name,
            nodes=list(self._nodes.get(graph_id, [])),
            edges=list(self._edges.get(graph_id, [])),
        )

    # ==========================================================================
    # Node and edge queries
    # ==========================================================================

    async def get_node(self, graph_id: str, name: str) -> GraphNode | None:
        return self._by_name.get(graph_id, {}).get(name)

    async def get_nodes_by_names(
        self, graph_id: str, names: list[str]
    ) -> list[GraphNode]:
        """Resolve names to nodes in the order given; unknown names are skipped."""
        index = self._by_name.get(graph_id, {})
        return [index[name] for name in names if name in index]

    async def get_edges_from(
        self, graph_id: str, sources: list[str]
    ) -> list[GraphEdge]:
        wanted = set(sources)
        return [e for e in self._edges.get(graph_id, []) if e.source in wanted]

    async def get_edges_to(
        self, graph_id: str, targets: list[str]
    ) -> list[GraphEdge]:
        wanted = set(targets)
        return [e for e in self._edges.get(graph_id, []) if e.target in wanted]

    async def search_nodes(
        self, graph_id: str, query: str, limit: int = 50
    ) -> list[GraphNode]:
        """Case-insensitive substring match on node names."""
        if not query:
            return []
        needle = query.lower()
        matches = [n for n in self._nodes.get(graph_id, []) if needle in n.name.lower()]
        return matches[:limit]

    async def get_node_type_counts(self, graph_id: str) -> list[tuple[str, int]]:
        counts = Counter(n.type for n in self._nodes.get(graph_id, []))
        return counts.most_common()

    async def get_stats(self) -> StoreStats:
        updated = [g.updated_at for g in self._graphs.values() if g.updated_at]
        return StoreStats(
            total_graphs=len(self._graphs),
            total_nodes=sum(len(nodes) for nodes in self._nodes.values()),
            total_relationships=sum(len(edges) for edges in self._edges.values()),
            last_sync=max(updated) if updated else None,
        )

    # ==========================================================================
    # Ingestion
    # ==========================================================================

    async def replace_graph(
        self,
        graph_id: str,
        nodes: list[GraphNode],
        edges: list[GraphEdge],
        name: str | None = None,
    ) -> SyncResult:
        """Atomically swap a graph's entire node and edge set."""
        if not graph_id:
            raise ValueError("Missing graph id")
        check_unique_edge_ids(edges)

        now = utc_now_iso()
        stored_nodes = [
            replace(
                n,
                graph_id=graph_id,
                id=n.id or n.name,
                created_at=n.created_at or now,
                updated_at=n.updated_at or now,
            )
            for n in nodes
        ]
        stored_edges = [
            replace(e, graph_id=graph_id, created_at=e.created_at or now) for e in edges
        ]

        index: dict[str, GraphNode] = {}
        for node in stored_nodes:
            index.setdefault(node.name, node)

        type_counts = Counter(n.type for n in stored_nodes)
        top_type = type_counts.most_common(1)[0][0] if type_counts else None

        self._nodes[graph_id] = stored_nodes
        self._edges[graph_id] = stored_edges
        self._by_name[graph_id] = index
        self._graphs[graph_id] = GraphSummary(
            id=graph_id,
            name=name or graph_id,
            node_count=len(stored_nodes),
            rel_count=len(stored_edges),
            updated_at=now,
            top_type=top_type,
        )

        logger.info(
            f"Replaced graph {graph_id}: {len(stored_nodes)} nodes, "
            f"{len(stored_edges)} relationships"
        )
        return SyncResult(
            graph_id=graph_id,
            nodes=len(stored_nodes),
            relationships=len(stored_edges),
            synced_at=now,
        )
