"""Viewport, minimap projection and search highlighting."""

from mindmap.viewport.highlight import HighlightClass, HighlightPartition, HighlightState
from mindmap.viewport.minimap import (
    MinimapFrame,
    MinimapPoint,
    MinimapProjection,
    minimap_projection,
    project_minimap,
)
from mindmap.viewport.transform import (
    IDENTITY,
    TransformTransition,
    Viewport,
    ViewportConfig,
    ZoomTransform,
)

__all__ = [
    "Viewport",
    "ViewportConfig",
    "ZoomTransform",
    "TransformTransition",
    "IDENTITY",
    "MinimapFrame",
    "MinimapPoint",
    "MinimapProjection",
    "minimap_projection",
    "project_minimap",
    "HighlightState",
    "HighlightClass",
    "HighlightPartition",
]
