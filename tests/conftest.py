"""Pytest configuration and fixtures."""

from collections.abc import Awaitable, Callable

import pytest

from mindmap.config import Settings, get_test_settings
from mindmap.models import GraphData, GraphEdge, GraphNode
from mindmap.storage.memory_store import InMemoryGraphStore

StoreFactory = Callable[..., Awaitable[InMemoryGraphStore]]


def make_graph(graph_id: str, nodes: list[tuple[str, str]], edges: list[tuple[str, str, str]]) -> GraphData:
    """Build a graph from (name, type) and (source, type, target) tuples.

    Edge ids are deterministic so tests can assert on them.
    """
    return GraphData(
        id=graph_id,
        name=graph_id,
        nodes=[GraphNode(name=name, type=node_type, id=f"n-{name}") for name, node_type in nodes],
        edges=[
            GraphEdge(source=s, target=t, type=rel, id=f"{s}-{rel}-{t}")
            for s, rel, t in edges
        ],
    )


@pytest.fixture
def test_settings() -> Settings:
    """Test settings: in-memory store, fast ticks."""
    return get_test_settings()


@pytest.fixture
def graph_builder() -> Callable[..., GraphData]:
    return make_graph


@pytest.fixture
def chain_graph() -> GraphData:
    """A -> B -> C -> D."""
    return make_graph(
        "chain",
        [("A", "Concept"), ("B", "Concept"), ("C", "Idea"), ("D", "Idea")],
        [("A", "LEADS_TO", "B"), ("B", "LEADS_TO", "C"), ("C", "LEADS_TO", "D")],
    )


@pytest.fixture
def diamond_graph() -> GraphData:
    """A -> B, A -> C, B -> D, C -> D."""
    return make_graph(
        "diamond",
        [("A", "Concept"), ("B", "Idea"), ("C", "Idea"), ("D", "Insight")],
        [
            ("A", "SUPPORTS", "B"),
            ("A", "SUPPORTS", "C"),
            ("B", "SUPPORTS", "D"),
            ("C", "SUPPORTS", "D"),
        ],
    )


@pytest.fixture
def mind_graph() -> GraphData:
    """Small knowledge graph used for search, API and session tests."""
    graph = make_graph(
        "mind",
        [
            ("Strategy", "Concept"),
            ("Strategic Planning", "Pattern"),
            ("Tactics", "Concept"),
            ("Execution", "Action"),
            ("Review", "Action"),
        ],
        [
            ("Strategy", "INCLUDES", "Strategic Planning"),
            ("Strategy", "INFORMS", "Tactics"),
            ("Tactics", "DRIVES", "Execution"),
            ("Execution", "FEEDS", "Review"),
            ("Review", "REFINES", "Strategy"),
            ("Ghost", "HAUNTS", "Review"),  # dangling source
        ],
    )
    graph.nodes[0].properties = {
        "summary": "Long-range plan",
        "notes": "line one\nline two",
        "weight": 3,
    }
    graph.nodes[0].created_at = "2025-03-04T09:15:00+00:00"
    return graph


@pytest.fixture
def store_factory() -> StoreFactory:
    """Async factory for an in-memory store preloaded with graphs."""

    async def _create(*graphs: GraphData) -> InMemoryGraphStore:
        store = InMemoryGraphStore()
        for graph in graphs:
            await store.replace_graph(graph.id, graph.nodes, graph.edges, name=graph.name)
        return store

    return _create
