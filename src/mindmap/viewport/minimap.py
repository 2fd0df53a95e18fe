"""Minimap: a small overview of the whole layout.

Node positions are projected linearly from the layout's bounding box into
the minimap's pixel box. One scale is used for both axes (the tighter of
the two) and the content is centered, so the aspect ratio is preserved.
"""

from dataclasses import dataclass, field

from mindmap.graph.subgraph import RenderEdge, RenderNode
from mindmap.layout.bounds import Bounds
from mindmap.viewport.transform import ViewportConfig


@dataclass(frozen=True)
class MinimapProjection:
    """Linear map from simulation space into minimap pixels."""

    min_x: float
    min_y: float
    scale: float
    offset_x: float
    offset_y: float

    def project(self, x: float, y: float) -> tuple[float, float]:
        return (
            (x - self.min_x) * self.scale + self.offset_x,
            (y - self.min_y) * self.scale + self.offset_y,
        )


@dataclass
class MinimapPoint:
    name: str
    x: float
    y: float
    color: str


@dataclass
class MinimapFrame:
    """Everything needed to paint the minimap once."""

    width: float
    height: float
    nodes: list[MinimapPoint] = field(default_factory=list)
    edges: list[tuple[float, float, float, float]] = field(default_factory=list)
    viewport_rect: Bounds | None = None

    def to_dict(self) -> dict:
        rect = self.viewport_rect
        return {
            "width": self.width,
            "height": self.height,
            "nodes": [
                {"name": p.name, "x": p.x, "y": p.y, "color": p.color} for p in self.nodes
            ],
            "edges": [list(segment) for segment in self.edges],
            "viewport": (
                {"x": rect.x, "y": rect.y, "width": rect.width, "height": rect.height}
                if rect
                else None
            ),
        }


def minimap_projection(
    points: list[tuple[float, float]], config: ViewportConfig
) -> MinimapProjection | None:
    """Fit the points into the minimap box.

    An axis with zero extent contributes no scale; if both axes are
    degenerate the scale is 1. Either way the content is centered.
    """
    if not points:
        return None
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    range_x = max_x - min_x
    range_y = max_y - min_y

    pad = config.minimap_padding
    scales = []
    if range_x > 0:
        scales.append((config.minimap_width - pad * 2) / range_x)
    if range_y > 0:
        scales.append((config.minimap_height - pad * 2) / range_y)
    scale = min(scales) if scales else 1.0

    return MinimapProjection(
        min_x=min_x,
        min_y=min_y,
        scale=scale,
        offset_x=(config.minimap_width - range_x * scale) / 2,
        offset_y=(config.minimap_height - range_y * scale) / 2,
    )


def project_minimap(
    nodes: list[RenderNode],
    edges: list[RenderEdge],
    config: ViewportConfig,
    visible: Bounds | None = None,
) -> MinimapFrame:
    """Project nodes, edges and (optionally) the visible region into the minimap."""
    frame = MinimapFrame(width=config.minimap_width, height=config.minimap_height)
    placed = [n for n in nodes if n.positioned]
    projection = minimap_projection([(n.x, n.y) for n in placed], config)
    if projection is None:
        return frame

    for edge in edges:
        if not (edge.source.positioned and edge.target.positioned):
            continue
        x1, y1 = projection.project(edge.source.x, edge.source.y)
        x2, y2 = projection.project(edge.target.x, edge.target.y)
        frame.edges.append((x1, y1, x2, y2))

    for node in placed:
        x, y = projection.project(node.x, node.y)
        frame.nodes.append(MinimapPoint(name=node.name, x=x, y=y, color=node.color))

    if visible is not None:
        x0, y0 = projection.project(visible.x, visible.y)
        x1, y1 = projection.project(visible.x + visible.width, visible.y + visible.height)
        frame.viewport_rect = Bounds(x0, y0, x1 - x0, y1 - y0)

    return frame
