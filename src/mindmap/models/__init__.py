"""Mindmap data models."""

from mindmap.models.graph import (
    DEFAULT_RELATION_TYPE,
    UNKNOWN_TYPE,
    Expansion,
    GraphData,
    GraphEdge,
    GraphNode,
    GraphSummary,
    Properties,
    PropertyValue,
    StoreStats,
    SyncResult,
    normalize_properties,
)
from mindmap.models.timestamps import format_timestamp, parse_timestamp, time_ago

__all__ = [
    "GraphNode",
    "GraphEdge",
    "GraphSummary",
    "GraphData",
    "Expansion",
    "StoreStats",
    "SyncResult",
    "Properties",
    "PropertyValue",
    "UNKNOWN_TYPE",
    "DEFAULT_RELATION_TYPE",
    "normalize_properties",
    "parse_timestamp",
    "format_timestamp",
    "time_ago",
]
