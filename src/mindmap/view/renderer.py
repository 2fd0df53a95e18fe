"""Graph view: one rendered, interactive diagram.

A `GraphView` owns everything a rendered diagram needs (render graph,
layout simulation, viewport, highlight state, minimap) so several views
can live side by side without shared module state.
"""

import logging
from collections.abc import Callable
from typing import Any

from mindmap.graph.subgraph import (
    RenderEdge,
    RenderGraph,
    RenderNode,
    build_render_graph,
    node_type_counts,
)
from mindmap.layout.params import LayoutParams
from mindmap.layout.simulation import ForceSimulation
from mindmap.models import GraphData
from mindmap.viewport.highlight import HighlightPartition, HighlightState
from mindmap.viewport.minimap import MinimapFrame, project_minimap
from mindmap.viewport.transform import Viewport, ViewportConfig

logger = logging.getLogger(__name__)

NodeClickHandler = Callable[[RenderNode | None], None]


class GraphView:
    """Renders node/edge payloads and handles interaction on them."""

    def __init__(
        self,
        width: float,
        height: float,
        on_node_click: NodeClickHandler | None = None,
        viewport_config: ViewportConfig | None = None,
        layout_params: LayoutParams | None = None,
        seed: int | None = None,
    ) -> None:
        self.viewport = Viewport(width, height, viewport_config)
        self.on_node_click = on_node_click
        self.layout_params = layout_params
        self.seed = seed

        self.graph_id: str | None = None
        self.graph = RenderGraph()
        self.simulation: ForceSimulation | None = None
        self.highlight = HighlightState()
        self._minimap: MinimapFrame | None = None

        self.viewport.on_change(lambda _transform: self._refresh_minimap())

    @property
    def nodes(self) -> list[RenderNode]:
        return self.graph.nodes

    @property
    def edges(self) -> list[RenderEdge]:
        return self.graph.edges

    # ==========================================================================
    # Rendering
    # ==========================================================================

    def render(self, data: GraphData) -> None:
        """Replace the rendered node/edge set and start a fresh simulation.

        Re-rendering the same graph id keeps positions of nodes that are
        still present; a different graph starts from scratch.
        """
        previous = self.graph if data.id and data.id == self.graph_id else None
        if self.simulation is not None:
            self.simulation.stop()

        self.graph = build_render_graph(data.nodes, data.edges, previous)
        self.graph_id = data.id
        params = self.layout_params or LayoutParams.for_node_count(len(self.graph.nodes))
        self.simulation = ForceSimulation(
            self.graph,
            self.viewport.width,
            self.viewport.height,
            params=params,
            seed=self.seed,
        )
        self._refresh_minimap()

        logger.info(
            f"Rendered {data.id}: {len(self.graph.nodes)} nodes, "
            f"{len(self.graph.edges)} edges"
        )
        if self.graph.dropped_edges:
            logger.debug(f"Dropped {self.graph.dropped_edges} edges with missing endpoints")

    def tick(self) -> bool:
        """One simulation step; returns False when there was nothing to do."""
        if self.simulation is None:
            return False
        moved = self.simulation.tick()
        if moved:
            self._refresh_minimap()
        return moved

    def advance(self, dt: float) -> bool:
        """Advance any running viewport transition by `dt` seconds."""
        return self.viewport.advance(dt)

    @property
    def settled(self) -> bool:
        return self.simulation is None or self.simulation.settled

    def resize(self, width: float, height: float) -> None:
        self.viewport.resize(width, height)
        if self.simulation is not None:
            self.simulation.resize(width, height)

    # ==========================================================================
    # Interaction
    # ==========================================================================

    def node(self, name: str) -> RenderNode | None:
        return self.graph.get(name)

    def click(self, name: str | None) -> None:
        """Report a click on a node, or on the background when `name` is None."""
        node = self.graph.get(name) if name is not None else None
        if self.on_node_click is not None:
            self.on_node_click(node)

    def drag_start(self, name: str) -> None:
        if self.simulation is not None and name in self.graph.by_name:
            self.simulation.drag_start(name)

    def drag_to(self, name: str, x: float, y: float) -> None:
        """Move a dragged node to layout coordinates (x, y)."""
        if self.simulation is not None and name in self.graph.by_name:
            self.simulation.drag_to(name, x, y)

    def drag_end(self, name: str) -> None:
        if self.simulation is not None and name in self.graph.by_name:
            self.simulation.drag_end(name)

    def screen_to_layout(self, sx: float, sy: float) -> tuple[float, float]:
        return self.viewport.transform.invert(sx, sy)

    def focus_node(self, name: str, animate: bool = True) -> bool:
        """Center a node at the focus zoom level. False if it has no position yet."""
        node = self.graph.get(name)
        if node is None or not node.positioned:
            return False
        self.viewport.focus(node.x, node.y, animate=animate)
        return True

    def zoom_to_fit(self, animate: bool = True) -> None:
        """Fit the node centers (plus the viewport's fit padding) on screen."""
        if self.simulation is None or not self.graph.nodes:
            return
        self.viewport.zoom_to_fit(self.simulation.bounds(include_radius=False), animate=animate)

    # ==========================================================================
    # Search highlight
    # ==========================================================================

    def highlight_nodes(self, names: list[str]) -> HighlightPartition:
        """Highlight matching nodes and fade the rest; empty clears everything."""
        self.highlight = HighlightState.from_names(names)
        return self.highlight_partition()

    def highlight_partition(self) -> HighlightPartition:
        return self.highlight.partition(self.graph.nodes, self.graph.edges)

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_node_types(self) -> dict[str, int]:
        return node_type_counts(self.graph.nodes)

    def find_connections(self, name: str) -> list[RenderEdge]:
        return [e for e in self.graph.edges if e.source.name == name or e.target.name == name]

    def minimap(self) -> MinimapFrame:
        if self._minimap is None:
            self._refresh_minimap()
        assert self._minimap is not None
        return self._minimap

    def _refresh_minimap(self) -> None:
        self._minimap = project_minimap(
            self.graph.nodes,
            self.graph.edges,
            self.viewport.config,
            visible=self.viewport.visible_bounds(),
        )

    def snapshot(self) -> dict[str, Any]:
        """Serializable picture of the current view for a presentation layer."""
        partition = self.highlight_partition()
        return {
            "graph_id": self.graph_id,
            "settled": self.settled,
            "transform": self.viewport.transform.to_dict(),
            "nodes": [
                {
                    "name": n.name,
                    "type": n.type,
                    "x": n.x,
                    "y": n.y,
                    "radius": n.radius,
                    "color": n.color,
                    "connections": n.connections,
                    "pinned": n.pinned,
                    "highlight": self.highlight.node_class(n).value,
                }
                for n in self.graph.nodes
            ],
            "edges": [
                {
                    "id": e.edge.id,
                    "source": e.source.name,
                    "target": e.target.name,
                    "type": e.type,
                    "faded": e.edge.id in partition.faded_edges,
                }
                for e in self.graph.edges
            ],
        }

    def destroy(self) -> None:
        """Tear down the view; positions are discarded."""
        if self.simulation is not None:
            self.simulation.stop()
        self.simulation = None
        self.graph = RenderGraph()
        self.graph_id = None
        self.highlight = HighlightState()
        self._minimap = None
