"""Graph store adapter interface.

All queries are scoped to a named graph and keyed by node *name*. Edge
lookups are batched per direction so traversal callers never issue one
query per frontier node.
"""

from typing import Protocol, runtime_checkable

from mindmap.models import (
    GraphData,
    GraphEdge,
    GraphNode,
    GraphSummary,
    StoreStats,
    SyncResult,
)


@runtime_checkable
class GraphStore(Protocol):
    """Async read queries over stored graphs, plus full-replace ingestion."""

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def list_graphs(self) -> list[GraphSummary]: ...

    async def get_graph_summary(self, graph_id: str) -> GraphSummary | None: ...

    async def get_graph(self, graph_id: str) -> GraphData: ...

    async def get_node(self, graph_id: str, name: str) -> GraphNode | None: ...

    async def get_nodes_by_names(
        self, graph_id: str, names: list[str]
    ) -> list[GraphNode]: ...

    async def get_edges_from(
        self, graph_id: str, sources: list[str]
    ) -> list[GraphEdge]: ...

    async def get_edges_to(
        self, graph_id: str, targets: list[str]
    ) -> list[GraphEdge]: ...

    async def search_nodes(
        self, graph_id: str, query: str, limit: int = 50
    ) -> list[GraphNode]: ...

    async def get_node_type_counts(self, graph_id: str) -> list[tuple[str, int]]: ...

    async def get_stats(self) -> StoreStats: ...

    async def replace_graph(
        self,
        graph_id: str,
        nodes: list[GraphNode],
        edges: list[GraphEdge],
        name: str | None = None,
    ) -> SyncResult: ...


def check_unique_edge_ids(edges: list[GraphEdge]) -> None:
    """Raise `ValueError` if two edges of one graph share an id."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for edge in edges:
        if edge.id in seen:
            duplicates.append(edge.id)
        seen.add(edge.id)
    if duplicates:
        raise ValueError(f"Duplicate relationship ids: {', '.join(sorted(set(duplicates)))}")
