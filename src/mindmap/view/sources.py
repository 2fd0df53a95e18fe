"""Where a view session gets its data from."""

from typing import Protocol, runtime_checkable

from mindmap.config import settings
from mindmap.graph.expansion import NeighborExpander
from mindmap.models import Expansion, GraphData, GraphNode, GraphSummary, StoreStats
from mindmap.storage.base import GraphStore


@runtime_checkable
class GraphSource(Protocol):
    """Read side of the graph store, as seen by the view session.

    Implementations raise `NotFoundError` subclasses for unknown graphs or
    nodes and `StoreError` (or `httpx.HTTPError`) for transport failures.
    """

    async def list_graphs(self) -> list[GraphSummary]: ...

    async def get_graph(self, graph_id: str) -> GraphData: ...

    async def search_nodes(self, graph_id: str, query: str) -> list[GraphNode]: ...

    async def get_neighbors(self, graph_id: str, name: str, depth: int = 1) -> Expansion: ...

    async def get_stats(self) -> StoreStats: ...


class LocalGraphSource:
    """In-process source: a store plus a neighbor expander, no HTTP hop."""

    def __init__(self, store: GraphStore, expander: NeighborExpander | None = None) -> None:
        self.store = store
        self.expander = expander or NeighborExpander(store)

    async def list_graphs(self) -> list[GraphSummary]:
        return await self.store.list_graphs()

    async def get_graph(self, graph_id: str) -> GraphData:
        return await self.store.get_graph(graph_id)

    async def search_nodes(self, graph_id: str, query: str) -> list[GraphNode]:
        if not query:
            return []
        return await self.store.search_nodes(graph_id, query, limit=settings.search_limit)

    async def get_neighbors(self, graph_id: str, name: str, depth: int = 1) -> Expansion:
        return await self.expander.expand(graph_id, name, depth)

    async def get_stats(self) -> StoreStats:
        return await self.store.get_stats()
