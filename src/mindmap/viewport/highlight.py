"""Search highlighting.

Splits the rendered nodes and edges into highlighted and faded sets for a
match set of node names. Purely visual: positions are never touched.
"""

from dataclasses import dataclass, field
from enum import Enum

from mindmap.graph.subgraph import RenderEdge, RenderNode


class HighlightClass(str, Enum):
    """Visual state of a node or edge."""

    NEUTRAL = "neutral"
    HIGHLIGHTED = "highlighted"
    FADED = "faded"


@dataclass
class HighlightPartition:
    """Result of applying a match set to a node/edge set."""

    highlighted: set[str] = field(default_factory=set)  # node names
    faded_nodes: set[str] = field(default_factory=set)
    faded_edges: set[str] = field(default_factory=set)  # edge ids; labels follow

    @property
    def neutral(self) -> bool:
        return not (self.highlighted or self.faded_nodes or self.faded_edges)


@dataclass(frozen=True)
class HighlightState:
    """Case-insensitive set of matched node names."""

    matches: frozenset[str] = frozenset()

    @classmethod
    def from_names(cls, names: list[str]) -> "HighlightState":
        return cls(frozenset(name.lower() for name in names))

    @property
    def active(self) -> bool:
        return bool(self.matches)

    def is_match(self, name: str) -> bool:
        return name.lower() in self.matches

    def node_class(self, node: RenderNode) -> HighlightClass:
        if not self.active:
            return HighlightClass.NEUTRAL
        return HighlightClass.HIGHLIGHTED if self.is_match(node.name) else HighlightClass.FADED

    def edge_class(self, edge: RenderEdge) -> HighlightClass:
        """Edges fade only when neither endpoint matches."""
        if not self.active:
            return HighlightClass.NEUTRAL
        if self.is_match(edge.source.name) or self.is_match(edge.target.name):
            return HighlightClass.NEUTRAL
        return HighlightClass.FADED

    def partition(
        self, nodes: list[RenderNode], edges: list[RenderEdge]
    ) -> HighlightPartition:
        result = HighlightPartition()
        if not self.active:
            return result
        for node in nodes:
            if self.is_match(node.name):
                result.highlighted.add(node.name)
            else:
                result.faded_nodes.add(node.name)
        for edge in edges:
            if self.edge_class(edge) is HighlightClass.FADED:
                result.faded_edges.add(edge.edge.id)
        return result
