"""Async HTTP client for the mindmap API.

Implements the `GraphSource` protocol so a view session can run against a
remote server. 404 responses become `NotFoundError`s; other HTTP failures
become `StoreError`s.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from mindmap.config import settings
from mindmap.errors import GraphNotFoundError, NodeNotFoundError, StoreError
from mindmap.models import Expansion, GraphData, GraphNode, GraphSummary, StoreStats

logger = logging.getLogger(__name__)


class GraphApiClient:
    """Thin wrapper over `httpx.AsyncClient` for the read-only graph routes."""

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GraphApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get(self, path: str, params: dict | None = None) -> Any:
        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise StoreError(f"GET {path} failed: {e}") from e
        if response.status_code == 404:
            return None
        if response.is_error:
            raise StoreError(f"GET {path} returned {response.status_code}: {response.text[:200]}")
        return response.json()

    # ==========================================================================
    # GraphSource
    # ==========================================================================

    async def list_graphs(self) -> list[GraphSummary]:
        data = await self._get("/api/graphs") or []
        return [GraphSummary.from_dict(g) for g in data]

    async def get_graph(self, graph_id: str) -> GraphData:
        data = await self._get(f"/api/graph/{quote(graph_id, safe='')}")
        if data is None:
            raise GraphNotFoundError(graph_id)
        return GraphData.from_dict(data)

    async def search_nodes(self, graph_id: str, query: str) -> list[GraphNode]:
        if not query:
            return []
        data = await self._get(f"/api/graph/{quote(graph_id, safe='')}/search", {"q": query})
        return [GraphNode.from_dict(n) for n in data or []]

    async def get_neighbors(self, graph_id: str, name: str, depth: int = 1) -> Expansion:
        data = await self._get(
            f"/api/graph/{quote(graph_id, safe='')}/node/{quote(name, safe='')}",
            {"depth": depth},
        )
        if data is None:
            raise NodeNotFoundError(graph_id, name)
        return Expansion.from_dict(data)

    async def get_stats(self) -> StoreStats:
        data = await self._get("/api/stats") or {}
        return StoreStats(
            total_graphs=int(data.get("total_graphs") or 0),
            total_nodes=int(data.get("total_nodes") or 0),
            total_relationships=int(data.get("total_relationships") or 0),
            last_sync=data.get("last_sync"),
        )

    async def get_graph_stats(self, graph_id: str) -> dict:
        data = await self._get(f"/api/graph/{quote(graph_id, safe='')}/stats")
        if data is None:
            raise GraphNotFoundError(graph_id)
        return data

    async def get_layout(self, graph_id: str, **params: Any) -> dict:
        """Fetch a settled server-side layout (width, height, seed as params)."""
        data = await self._get(f"/api/graph/{quote(graph_id, safe='')}/layout", params or None)
        if data is None:
            raise GraphNotFoundError(graph_id)
        return data
