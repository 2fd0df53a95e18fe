"""API routes for mindmap.

Provides:
- Read-only graph queries (list, full graph, search, neighbor expansion, stats)
- /api/sync for full-replace ingestion, protected by a shared key
- /health
"""

import logging
import time
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import BaseModel, Field

from mindmap.config import Settings
from mindmap.errors import GraphNotFoundError, NodeNotFoundError
from mindmap.graph.expansion import NeighborExpander
from mindmap.models import GraphEdge, GraphNode
from mindmap.storage.base import GraphStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Graph Models
# ============================================================================


class NodeOut(BaseModel):
    """A node as returned to clients."""

    id: str
    graph_id: str | None = None
    name: str
    type: str
    properties: dict[str, Any] = {}
    created_at: Any = None
    updated_at: Any = None


class RelationshipOut(BaseModel):
    """A directed, typed edge as returned to clients."""

    id: str
    graph_id: str | None = None
    source: str
    target: str
    type: str
    properties: dict[str, Any] = {}
    created_at: Any = None


class GraphSummaryOut(BaseModel):
    id: str
    name: str
    node_count: int
    rel_count: int
    updated_at: str | None = None
    top_type: str | None = None


class GraphOut(BaseModel):
    """Full node/edge set of one graph."""

    id: str
    name: str
    nodes: list[NodeOut]
    relationships: list[RelationshipOut]


class ExpansionOut(BaseModel):
    """Focus node plus everything reachable within the requested hops."""

    node: NodeOut
    nodes: list[NodeOut]
    relationships: list[RelationshipOut]
    depth: int


class NodeTypeCount(BaseModel):
    type: str
    count: int


class GraphStatsOut(BaseModel):
    id: str
    name: str
    node_count: int
    rel_count: int
    updated_at: str | None = None
    node_types: list[NodeTypeCount]


# ============================================================================
# Admin / Sync Models
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    uptime: float


class StatsResponse(BaseModel):
    """Global store statistics."""

    total_graphs: int
    total_nodes: int
    total_relationships: int
    last_sync: str | None = None


class SyncRequest(BaseModel):
    """Full-replace payload; edges may arrive as 'relationships' or 'edges'."""

    id: str | None = None
    name: str | None = None
    nodes: list[dict[str, Any]] = Field(default_factory=list)
    relationships: list[dict[str, Any]] | None = None
    edges: list[dict[str, Any]] | None = None


class SyncResponse(BaseModel):
    ok: bool
    graph: str
    nodes: int
    relationships: int
    synced_at: str


# ============================================================================
# Helper Functions
# ============================================================================


def get_store(request: Request) -> GraphStore:
    """Get graph store from app state."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def node_out(node: GraphNode) -> NodeOut:
    return NodeOut(**node.to_dict())


def relationship_out(edge: GraphEdge) -> RelationshipOut:
    return RelationshipOut(**edge.to_dict())


# ============================================================================
# Health
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
    )


# ============================================================================
# Graph Endpoints
# ============================================================================


@router.get("/api/graphs", response_model=list[GraphSummaryOut])
async def list_graphs(request: Request) -> list[GraphSummaryOut]:
    """List all graphs, most recently synced first."""
    store = get_store(request)
    try:
        graphs = await store.list_graphs()
        return [GraphSummaryOut(**g.to_dict()) for g in graphs]
    except Exception as e:
        logger.exception(f"Error listing graphs: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list graphs: {str(e)}",
        )


@router.get("/api/stats", response_model=StatsResponse)
async def get_stats(request: Request) -> StatsResponse:
    """Get global statistics."""
    store = get_store(request)
    try:
        stats = await store.get_stats()
        return StatsResponse(**stats.to_dict())
    except Exception as e:
        logger.exception(f"Error getting stats: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to get stats: {str(e)}",
        )


@router.get("/api/graph/{graph_id}", response_model=GraphOut)
async def get_graph(request: Request, graph_id: str) -> GraphOut:
    """Get a full graph."""
    store = get_store(request)
    try:
        data = await store.get_graph(graph_id)
    except GraphNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error loading graph {graph_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load graph: {str(e)}",
        )

    return GraphOut(
        id=data.id,
        name=data.name,
        nodes=[node_out(n) for n in data.nodes],
        relationships=[relationship_out(e) for e in data.edges],
    )


@router.get("/api/graph/{graph_id}/search", response_model=list[NodeOut])
async def search_nodes(request: Request, graph_id: str, q: str = "") -> list[NodeOut]:
    """Substring search on node names; an empty query matches nothing."""
    if not q:
        return []

    store = get_store(request)
    try:
        nodes = await store.search_nodes(graph_id, q, limit=get_settings(request).search_limit)
        return [node_out(n) for n in nodes]
    except Exception as e:
        logger.exception(f"Error searching {graph_id} for '{q}': {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Search failed: {str(e)}",
        )


@router.get("/api/graph/{graph_id}/node/{name:path}", response_model=ExpansionOut)
async def get_node_neighbors(
    request: Request,
    graph_id: str,
    name: str,
    depth: int = 1,
) -> ExpansionOut:
    """
    Get a node and its neighbors.

    Edges are followed in both directions; depth is clamped to the
    configured maximum (3 by default).
    """
    store = get_store(request)
    expander = NeighborExpander(store, max_depth=get_settings(request).max_expansion_depth)
    try:
        expansion = await expander.expand(graph_id, name, depth)
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error expanding '{name}' in {graph_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Expansion failed: {str(e)}",
        )

    return ExpansionOut(
        node=node_out(expansion.focus_node),
        nodes=[node_out(n) for n in expansion.nodes],
        relationships=[relationship_out(e) for e in expansion.edges],
        depth=expansion.depth,
    )


@router.get("/api/graph/{graph_id}/stats", response_model=GraphStatsOut)
async def get_graph_stats(request: Request, graph_id: str) -> GraphStatsOut:
    """Get node/edge counts and node type breakdown for one graph."""
    store = get_store(request)
    try:
        summary = await store.get_graph_summary(graph_id)
        if summary is None:
            raise HTTPException(status_code=404, detail=str(GraphNotFoundError(graph_id)))
        types = await store.get_node_type_counts(graph_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error getting stats for {graph_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to get graph stats: {str(e)}",
        )

    return GraphStatsOut(
        id=summary.id,
        name=summary.name,
        node_count=summary.node_count,
        rel_count=summary.rel_count,
        updated_at=summary.updated_at,
        node_types=[NodeTypeCount(type=t, count=c) for t, c in types],
    )


# ============================================================================
# Sync Endpoint
# ============================================================================


@router.post("/api/sync", response_model=SyncResponse)
async def sync_graph(
    request: Request,
    body: SyncRequest,
    x_sync_key: str | None = Header(default=None),
) -> SyncResponse:
    """
    Replace a graph's entire node and edge set.

    Requires the shared key in the X-Sync-Key header.
    """
    if x_sync_key != get_settings(request).sync_key:
        raise HTTPException(status_code=403, detail="Invalid sync key")
    if not body.id:
        raise HTTPException(status_code=400, detail="Missing graph id")

    raw_edges = body.relationships if body.relationships is not None else body.edges or []
    nodes = [GraphNode.from_dict(n) for n in body.nodes]
    edges = [GraphEdge.from_dict(e) for e in raw_edges]

    store = get_store(request)
    try:
        result = await store.replace_graph(body.id, nodes, edges, name=body.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error syncing graph {body.id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Sync failed: {str(e)}",
        )

    logger.info(f"Synced {body.id}: {result.nodes} nodes, {result.relationships} relationships")
    return SyncResponse(**result.to_dict())
