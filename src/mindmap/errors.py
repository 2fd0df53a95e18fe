"""Custom exceptions for mindmap graph operations."""


class MindmapError(Exception):
    """Base exception for mindmap operations."""
    pass


class NotFoundError(MindmapError):
    """Raised when a requested graph or node does not exist."""
    pass


class GraphNotFoundError(NotFoundError):
    """Raised when a graph is not found."""
    def __init__(self, graph_id: str):
        self.graph_id = graph_id
        super().__init__(f"Graph '{graph_id}' not found")


class NodeNotFoundError(NotFoundError):
    """Raised when a node is not found in a graph."""
    def __init__(self, graph_id: str, name: str):
        self.graph_id = graph_id
        self.name = name
        super().__init__(f"Node '{name}' not found in graph '{graph_id}'")


class StoreError(MindmapError):
    """Raised when the graph store fails to answer a query."""
    pass
