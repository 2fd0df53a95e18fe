"""Rendered graph views, their tick loop and the session controller."""

from mindmap.view.renderer import GraphView, NodeClickHandler
from mindmap.view.scheduler import TickScheduler
from mindmap.view.session import (
    ConnectionRow,
    NodeDetails,
    PropertyRow,
    ViewSession,
    ViewState,
    describe_node,
)
from mindmap.view.sources import GraphSource, LocalGraphSource

__all__ = [
    "GraphView",
    "NodeClickHandler",
    "TickScheduler",
    "ViewSession",
    "ViewState",
    "NodeDetails",
    "PropertyRow",
    "ConnectionRow",
    "describe_node",
    "GraphSource",
    "LocalGraphSource",
]
