"""Graph data models - nodes (ideas), edges (typed relations) and graphs."""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Union

# Open property mapping: scalars, lists, or nested mappings
PropertyValue = Union[
    str, int, float, bool, None, list["PropertyValue"], dict[str, "PropertyValue"]
]
Properties = dict[str, PropertyValue]

UNKNOWN_TYPE = "Unknown"
DEFAULT_RELATION_TYPE = "RELATES_TO"


def normalize_properties(value: Any) -> Properties:
    """Coerce stored or wire property payloads into a mapping.

    JSON strings are decoded (the storage layers persist properties as JSON);
    anything that does not end up as a mapping becomes an empty dict.
    """
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items()}


def _timestamp_field(data: dict, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


@dataclass
class GraphNode:
    """
    An idea in a knowledge graph.

    `name` is the identity used for traversal and linking; `id` is the
    opaque storage key and is never used for lookups.
    """

    name: str
    type: str = UNKNOWN_TYPE
    id: str = ""
    properties: Properties = field(default_factory=dict)
    graph_id: str | None = None

    # Raw timestamps as delivered (ISO string, epoch seconds or millis)
    created_at: Any = None
    updated_at: Any = None

    def to_dict(self) -> dict:
        """Convert to the wire/storage dictionary."""
        return {
            "id": self.id,
            "graph_id": self.graph_id,
            "name": self.name,
            "type": self.type,
            "properties": self.properties,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GraphNode":
        """Create from a wire payload or a store record."""
        name = data.get("name") or ""
        node_id = data.get("id")
        if not name and node_id is not None:
            name = str(node_id)
        return cls(
            name=str(name),
            type=data.get("type") or UNKNOWN_TYPE,
            id=str(node_id) if node_id is not None else str(name),
            properties=normalize_properties(data.get("properties")),
            graph_id=data.get("graph_id"),
            created_at=_timestamp_field(data, "created_at", "createdAt", "_created"),
            updated_at=_timestamp_field(data, "updated_at", "updatedAt", "_updated"),
        )


@dataclass
class GraphEdge:
    """
    A typed, directed relation between two nodes, addressed by node name.

    Endpoints are not required to exist; dangling edges are dropped when a
    renderable subgraph is built. Parallel edges are allowed.
    """

    source: str
    target: str
    type: str = DEFAULT_RELATION_TYPE
    id: str = ""
    properties: Properties = field(default_factory=dict)
    graph_id: str | None = None
    created_at: Any = None

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"{self.source}-{self.type}-{self.target}-{uuid.uuid4().hex[:8]}"

    def to_dict(self) -> dict:
        """Convert to the wire/storage dictionary."""
        return {
            "id": self.id,
            "graph_id": self.graph_id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "properties": self.properties,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GraphEdge":
        """Create from a wire payload or a store record."""
        edge_id = data.get("id")
        return cls(
            source=str(data.get("source") or ""),
            target=str(data.get("target") or ""),
            type=data.get("type") or DEFAULT_RELATION_TYPE,
            id=str(edge_id) if edge_id else "",
            properties=normalize_properties(data.get("properties")),
            graph_id=data.get("graph_id"),
            created_at=_timestamp_field(data, "created_at", "createdAt", "_created"),
        )


@dataclass
class GraphSummary:
    """Cached aggregate view of a stored graph."""

    id: str
    name: str
    node_count: int = 0
    rel_count: int = 0
    updated_at: str | None = None
    top_type: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "node_count": self.node_count,
            "rel_count": self.rel_count,
            "updated_at": self.updated_at,
            "top_type": self.top_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GraphSummary":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            node_count=int(data.get("node_count") or 0),
            rel_count=int(data.get("rel_count") or 0),
            updated_at=data.get("updated_at"),
            top_type=data.get("top_type"),
        )


@dataclass
class GraphData:
    """A full node/edge set, as fetched for a whole-graph view."""

    id: str
    name: str
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Wire format; edges travel under the 'relationships' key."""
        return {
            "id": self.id,
            "name": self.name,
            "nodes": [n.to_dict() for n in self.nodes],
            "relationships": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GraphData":
        raw_edges = data.get("relationships")
        if raw_edges is None:
            raw_edges = data.get("edges") or []
        graph_id = str(data.get("id") or "")
        return cls(
            id=graph_id,
            name=str(data.get("name") or graph_id),
            nodes=[GraphNode.from_dict(n) for n in data.get("nodes") or []],
            edges=[GraphEdge.from_dict(e) for e in raw_edges],
        )


@dataclass
class Expansion:
    """Result of a bounded neighbor expansion around a focus node."""

    focus_node: GraphNode
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    depth: int = 0

    def to_dict(self) -> dict:
        return {
            "node": self.focus_node.to_dict(),
            "nodes": [n.to_dict() for n in self.nodes],
            "relationships": [e.to_dict() for e in self.edges],
            "depth": self.depth,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Expansion":
        raw_edges = data.get("relationships")
        if raw_edges is None:
            raw_edges = data.get("edges") or []
        nodes = [GraphNode.from_dict(n) for n in data.get("nodes") or []]
        focus = data.get("node")
        return cls(
            focus_node=GraphNode.from_dict(focus) if focus else nodes[0],
            nodes=nodes,
            edges=[GraphEdge.from_dict(e) for e in raw_edges],
            depth=int(data.get("depth") or 0),
        )

    def as_graph_data(self, graph_id: str) -> GraphData:
        """View the expansion as a renderable node/edge payload."""
        return GraphData(
            id=graph_id, name=graph_id, nodes=list(self.nodes), edges=list(self.edges)
        )


@dataclass
class StoreStats:
    """Global store statistics."""

    total_graphs: int = 0
    total_nodes: int = 0
    total_relationships: int = 0
    last_sync: str | None = None

    def to_dict(self) -> dict:
        return {
            "total_graphs": self.total_graphs,
            "total_nodes": self.total_nodes,
            "total_relationships": self.total_relationships,
            "last_sync": self.last_sync,
        }


@dataclass
class SyncResult:
    """Outcome of a full-replace ingestion."""

    graph_id: str
    nodes: int
    relationships: int
    synced_at: str

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "graph": self.graph_id,
            "nodes": self.nodes,
            "relationships": self.relationships,
            "synced_at": self.synced_at,
        }
