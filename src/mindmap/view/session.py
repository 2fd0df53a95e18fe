"""View session: loads graphs into a `GraphView` and tracks what is shown.

The session is the controller between a `GraphSource` and one view. Every
fetch continuation checks that its graph id (and, for searches, its query
generation) is still current before touching the view, so a slow response
for a graph the user already left is dropped instead of overwriting the
newer one.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from mindmap.config import settings
from mindmap.errors import NotFoundError, StoreError
from mindmap.graph.palette import color_for
from mindmap.graph.subgraph import RenderEdge, RenderNode
from mindmap.models import (
    Expansion,
    GraphData,
    GraphNode,
    GraphSummary,
    StoreStats,
    format_timestamp,
    time_ago,
)
from mindmap.models.timestamps import EMPTY_MARK
from mindmap.view.renderer import GraphView
from mindmap.view.scheduler import TickScheduler
from mindmap.view.sources import GraphSource

logger = logging.getLogger(__name__)

# Failures of the data source that leave the current view in place
TRANSPORT_ERRORS = (StoreError, httpx.HTTPError)

MAX_LISTED_CONNECTIONS = 30
BLOCK_VALUE_LENGTH = 80
EMPTY_GRAPH_MESSAGE = "No graph data available. Run a sync to populate."


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERROR = "error"


# ==========================================================================
# Node details (inspector data)
# ==========================================================================


@dataclass
class PropertyRow:
    key: str
    value: str
    is_block: bool = False  # long or multi-line values get full-width display


@dataclass
class ConnectionRow:
    """One edge touching the selected node, seen from that node."""

    outgoing: bool
    type: str
    other: str

    @property
    def arrow(self) -> str:
        return "→" if self.outgoing else "←"


@dataclass
class NodeDetails:
    name: str
    type: str
    color: str
    graph_id: str
    properties: list[PropertyRow] = field(default_factory=list)
    created: str | None = None
    updated: str | None = None
    connection_count: int = 0
    connections: list[ConnectionRow] = field(default_factory=list)
    hidden_connections: int = 0  # beyond the listed ones

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "color": self.color,
            "graph_id": self.graph_id,
            "properties": [
                {"key": p.key, "value": p.value, "block": p.is_block} for p in self.properties
            ],
            "created": self.created,
            "updated": self.updated,
            "connection_count": self.connection_count,
            "connections": [
                {"direction": c.arrow, "type": c.type, "node": c.other} for c in self.connections
            ],
            "hidden_connections": self.hidden_connections,
        }


def property_text(value: Any) -> str:
    """Render a property value for display; structured values as indented JSON."""
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def describe_node(node: RenderNode, connections: list[RenderEdge], graph_id: str) -> NodeDetails:
    """Collect everything the inspector shows for one node."""
    rows = []
    for key, value in node.properties.items():
        if value is None:
            continue
        text = property_text(value)
        rows.append(
            PropertyRow(key, text, is_block=len(text) > BLOCK_VALUE_LENGTH or "\n" in text)
        )

    listed = []
    for edge in connections[:MAX_LISTED_CONNECTIONS]:
        outgoing = edge.source.name == node.name
        other = edge.target.name if outgoing else edge.source.name
        listed.append(ConnectionRow(outgoing=outgoing, type=edge.type, other=other))

    source = node.node
    return NodeDetails(
        name=node.name,
        type=node.type,
        color=node.color or color_for(node.type),
        graph_id=source.graph_id or graph_id,
        properties=rows,
        created=format_timestamp(source.created_at) if source.created_at else None,
        updated=format_timestamp(source.updated_at) if source.updated_at else None,
        connection_count=node.connections,
        connections=listed,
        hidden_connections=max(0, len(connections) - MAX_LISTED_CONNECTIONS),
    )


# ==========================================================================
# Session
# ==========================================================================


class ViewSession:
    """Graph list, current graph, search and selection for one view."""

    def __init__(
        self,
        source: GraphSource,
        view: GraphView,
        scheduler: TickScheduler | None = None,
        default_graph_id: str | None = None,
        fit_delay: float | None = None,
    ) -> None:
        self.source = source
        self.view = view
        self.scheduler = scheduler
        self.default_graph_id = default_graph_id or settings.default_graph_id
        self.fit_delay = fit_delay if fit_delay is not None else settings.fit_delay

        self.state = ViewState.IDLE
        self.message: str | None = None
        self.graphs: list[GraphSummary] = []
        self.stats: StoreStats | None = None

        self.graph_id: str | None = None
        self.data: GraphData | None = None
        # True while `data` is a neighbor expansion rather than the whole graph
        self.expanded = False
        self.search_results: list[GraphNode] = []
        self.selected: NodeDetails | None = None
        self._search_generation = 0

        if view.on_node_click is None:
            view.on_node_click = self._on_node_click

    # ==========================================================================
    # Graph list and stats
    # ==========================================================================

    async def load_graph_list(self) -> list[GraphSummary]:
        """Refresh the graph list; on failure the previous list is kept."""
        try:
            self.graphs = await self.source.list_graphs()
        except TRANSPORT_ERRORS as e:
            logger.error(f"Failed to load graph list: {e}")
        return self.graphs

    async def load_stats(self) -> StoreStats | None:
        try:
            self.stats = await self.source.get_stats()
        except TRANSPORT_ERRORS as e:
            logger.error(f"Failed to load stats: {e}")
        return self.stats

    @property
    def last_sync_ago(self) -> str:
        if self.stats is None or not self.stats.last_sync:
            return EMPTY_MARK
        return time_ago(self.stats.last_sync)

    # ==========================================================================
    # Loading
    # ==========================================================================

    async def load_default_graph(self) -> GraphData | None:
        """Load the preferred default graph, else the first listed one."""
        graphs = await self.load_graph_list()
        if not graphs:
            self._show_empty(EMPTY_GRAPH_MESSAGE)
            return None
        preferred = next((g for g in graphs if g.id == self.default_graph_id), graphs[0])
        return await self.load_graph(preferred.id)

    async def load_graph(self, graph_id: str, force: bool = False) -> GraphData | None:
        """Fetch a whole graph and render it, replacing the current one."""
        if (
            graph_id == self.graph_id
            and self.data is not None
            and not self.expanded
            and not force
        ):
            return self.data

        stable_id = self.data.id if self.data is not None else None
        self.graph_id = graph_id
        self.state = ViewState.LOADING
        self.selected = None
        self.clear_search()

        try:
            data = await self.source.get_graph(graph_id)
        except NotFoundError as e:
            if self._is_stale(graph_id):
                return None
            self.data = None
            self.expanded = False
            self.view.destroy()
            self._show_empty(str(e))
            return None
        except TRANSPORT_ERRORS as e:
            logger.error(f"Failed to load graph {graph_id}: {e}")
            if self._is_stale(graph_id):
                return None
            self._keep_previous(stable_id, f"Failed to load graph '{graph_id}'")
            return None

        if self._is_stale(graph_id):
            return None
        self._show(data)
        if not data.nodes:
            self._show_empty(EMPTY_GRAPH_MESSAGE)
        return data

    async def expand(self, name: str, depth: int = 1) -> Expansion | None:
        """Replace the view with the neighborhood of `name` in the current graph."""
        graph_id = self.graph_id
        if graph_id is None:
            return None
        try:
            expansion = await self.source.get_neighbors(graph_id, name, depth)
        except NotFoundError as e:
            logger.warning(str(e))
            if not self._is_stale(graph_id):
                self.message = str(e)
            return None
        except TRANSPORT_ERRORS as e:
            logger.error(f"Failed to expand '{name}' in {graph_id}: {e}")
            return None

        if self._is_stale(graph_id):
            return None
        self._show(expansion.as_graph_data(graph_id), expanded=True)
        self.select_node(name)
        return expansion

    def _is_stale(self, graph_id: str) -> bool:
        if graph_id != self.graph_id:
            logger.debug(f"Ignoring stale response for graph {graph_id}")
            return True
        return False

    def _show(self, data: GraphData, expanded: bool = False) -> None:
        self.data = data
        self.expanded = expanded
        self.view.render(data)
        self.state = ViewState.READY
        self.message = None
        self._schedule_fit()

    def _show_empty(self, message: str) -> None:
        self.state = ViewState.EMPTY
        self.message = message

    def _keep_previous(self, stable_id: str | None, message: str) -> None:
        if self.data is None:
            self.state = ViewState.ERROR
            self.message = message
            return
        # The rendered graph is still the last one that loaded
        self.graph_id = stable_id
        self.state = ViewState.READY
        self.message = message

    def _schedule_fit(self) -> None:
        if self.scheduler is not None:
            self.scheduler.call_later(self.fit_delay, self.view.zoom_to_fit)
        else:
            self.view.zoom_to_fit(animate=False)

    # ==========================================================================
    # Search
    # ==========================================================================

    async def search(self, query: str, debounce: float = 0.0) -> list[GraphNode] | None:
        """Search the current graph and highlight the matches.

        Returns None when the result was superseded by a newer query (or a
        graph change) and therefore not applied.
        """
        self._search_generation += 1
        generation = self._search_generation
        q = query.strip()
        if not q:
            self._apply_search([])
            return []

        if debounce > 0:
            await asyncio.sleep(debounce)
            if generation != self._search_generation:
                return None

        graph_id = self.graph_id
        if graph_id is None:
            return []
        try:
            results = await self.source.search_nodes(graph_id, q)
        except (NotFoundError, *TRANSPORT_ERRORS) as e:
            logger.error(f"Search failed for '{q}' in {graph_id}: {e}")
            return None

        if generation != self._search_generation or graph_id != self.graph_id:
            logger.debug(f"Ignoring stale search results for '{q}'")
            return None
        self._apply_search(results)
        return results

    def clear_search(self) -> None:
        self._search_generation += 1
        self._apply_search([])

    def _apply_search(self, results: list[GraphNode]) -> None:
        self.search_results = results
        self.view.highlight_nodes([n.name for n in results])

    # ==========================================================================
    # Selection
    # ==========================================================================

    def _on_node_click(self, node: RenderNode | None) -> None:
        self.select_node(node.name if node is not None else None)

    def select_node(self, name: str | None) -> NodeDetails | None:
        """Open (or, with None or an unknown name, close) the inspector."""
        node = self.view.node(name) if name is not None else None
        if node is None:
            self.selected = None
            return None
        self.selected = describe_node(
            node, self.view.find_connections(node.name), self.graph_id or ""
        )
        return self.selected

    def focus_connection(self, name: str) -> NodeDetails | None:
        """Jump to a node listed in the inspector's connections."""
        if not self.view.focus_node(name):
            return None
        return self.select_node(name)

    def legend(self) -> list[tuple[str, int, str]]:
        """(type, count, color) for the rendered nodes, most common first."""
        return [(t, count, color_for(t)) for t, count in self.view.get_node_types().items()]
