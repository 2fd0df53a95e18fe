"""Unit tests for the in-memory graph store."""

import pytest

from mindmap.config import Settings
from mindmap.errors import GraphNotFoundError
from mindmap.models import GraphEdge, GraphNode
from mindmap.storage import GraphStore, InMemoryGraphStore, Neo4jGraphStore, create_store


class TestCreateStore:
    """Tests for backend selection."""

    def test_memory_backend(self, test_settings: Settings) -> None:
        store = create_store(test_settings)
        assert isinstance(store, InMemoryGraphStore)
        assert isinstance(store, GraphStore)

    def test_neo4j_backend(self) -> None:
        store = create_store(Settings(store_backend="neo4j", neo4j_uri="bolt://db:7687"))
        assert isinstance(store, Neo4jGraphStore)
        assert store.uri == "bolt://db:7687"


class TestReplaceGraph:
    """Tests for full-replace ingestion."""

    @pytest.mark.asyncio
    async def test_replace_sets_metadata(self, store_factory, mind_graph) -> None:
        store = await store_factory(mind_graph)
        summary = await store.get_graph_summary("mind")
        assert summary is not None
        assert summary.node_count == 5
        assert summary.rel_count == 6
        assert summary.updated_at
        assert summary.top_type in {"Concept", "Action"}

    @pytest.mark.asyncio
    async def test_replace_swaps_everything(self, store_factory, mind_graph) -> None:
        store = await store_factory(mind_graph)
        result = await store.replace_graph(
            "mind", [GraphNode(name="Only")], [], name="mind"
        )
        assert result.nodes == 1
        assert result.relationships == 0

        data = await store.get_graph("mind")
        assert [n.name for n in data.nodes] == ["Only"]
        assert data.edges == []
        assert await store.get_node("mind", "Strategy") is None

    @pytest.mark.asyncio
    async def test_replace_fills_ids_and_timestamps(self) -> None:
        store = InMemoryGraphStore()
        await store.replace_graph("g", [GraphNode(name="A")], [GraphEdge("A", "B", id="e1")])
        node = await store.get_node("g", "A")
        assert node is not None
        assert node.id == "A"
        assert node.graph_id == "g"
        assert node.created_at
        edges = await store.get_edges_from("g", ["A"])
        assert edges[0].graph_id == "g"
        assert edges[0].created_at

    @pytest.mark.asyncio
    async def test_missing_graph_id(self) -> None:
        store = InMemoryGraphStore()
        with pytest.raises(ValueError, match="Missing graph id"):
            await store.replace_graph("", [], [])

    @pytest.mark.asyncio
    async def test_duplicate_edge_ids_rejected(self, store_factory, chain_graph) -> None:
        store = await store_factory(chain_graph)
        edges = [GraphEdge("A", "B", id="dup"), GraphEdge("B", "C", id="dup")]
        with pytest.raises(ValueError, match="Duplicate relationship ids: dup"):
            await store.replace_graph("chain", [GraphNode(name="A")], edges)

        # The previous snapshot survives a rejected replace
        chain = await store.get_graph("chain")
        assert len(chain.nodes) == 4
        assert len(chain.edges) == 3

    @pytest.mark.asyncio
    async def test_generated_edge_ids_are_distinct(self) -> None:
        store = InMemoryGraphStore()
        edges = [GraphEdge("A", "B"), GraphEdge("A", "B")]
        result = await store.replace_graph("g", [GraphNode(name="A"), GraphNode(name="B")], edges)
        assert result.relationships == 2

    @pytest.mark.asyncio
    async def test_other_graphs_untouched(self, store_factory, chain_graph, diamond_graph) -> None:
        store = await store_factory(chain_graph, diamond_graph)
        await store.replace_graph("chain", [], [])
        diamond = await store.get_graph("diamond")
        assert len(diamond.nodes) == 4


class TestQueries:
    """Tests for read queries."""

    @pytest.mark.asyncio
    async def test_get_graph_not_found(self) -> None:
        store = InMemoryGraphStore()
        with pytest.raises(GraphNotFoundError, match="nope"):
            await store.get_graph("nope")

    @pytest.mark.asyncio
    async def test_get_graph_keeps_dangling_edges(self, store_factory, mind_graph) -> None:
        store = await store_factory(mind_graph)
        data = await store.get_graph("mind")
        assert any(e.source == "Ghost" for e in data.edges)

    @pytest.mark.asyncio
    async def test_list_graphs_newest_first(self, store_factory, chain_graph, diamond_graph) -> None:
        store = await store_factory(chain_graph, diamond_graph)
        graphs = await store.list_graphs()
        assert {g.id for g in graphs} == {"chain", "diamond"}
        assert graphs[0].updated_at >= graphs[1].updated_at

    @pytest.mark.asyncio
    async def test_get_nodes_by_names_order_and_unknown(self, store_factory, chain_graph) -> None:
        store = await store_factory(chain_graph)
        nodes = await store.get_nodes_by_names("chain", ["C", "missing", "A"])
        assert [n.name for n in nodes] == ["C", "A"]

    @pytest.mark.asyncio
    async def test_edges_by_direction(self, store_factory, chain_graph) -> None:
        store = await store_factory(chain_graph)
        outgoing = await store.get_edges_from("chain", ["B"])
        incoming = await store.get_edges_to("chain", ["B"])
        assert [e.id for e in outgoing] == ["B-LEADS_TO-C"]
        assert [e.id for e in incoming] == ["A-LEADS_TO-B"]

    @pytest.mark.asyncio
    async def test_search_case_insensitive_substring(self, store_factory, mind_graph) -> None:
        store = await store_factory(mind_graph)
        results = await store.search_nodes("mind", "STRAT")
        assert [n.name for n in results] == ["Strategy", "Strategic Planning"]

    @pytest.mark.asyncio
    async def test_search_limit_and_empty(self, store_factory, mind_graph) -> None:
        store = await store_factory(mind_graph)
        assert len(await store.search_nodes("mind", "t", limit=2)) == 2
        assert await store.search_nodes("mind", "") == []

    @pytest.mark.asyncio
    async def test_node_type_counts(self, store_factory, mind_graph) -> None:
        store = await store_factory(mind_graph)
        counts = dict(await store.get_node_type_counts("mind"))
        assert counts == {"Concept": 2, "Pattern": 1, "Action": 2}

    @pytest.mark.asyncio
    async def test_stats(self, store_factory, chain_graph, mind_graph) -> None:
        store = await store_factory(chain_graph, mind_graph)
        stats = await store.get_stats()
        assert stats.total_graphs == 2
        assert stats.total_nodes == 9
        assert stats.total_relationships == 9
        assert stats.last_sync is not None

    @pytest.mark.asyncio
    async def test_duplicate_names_first_wins(self) -> None:
        store = InMemoryGraphStore()
        await store.replace_graph(
            "g", [GraphNode(name="A", id="first"), GraphNode(name="A", id="second")], []
        )
        node = await store.get_node("g", "A")
        assert node is not None
        assert node.id == "first"
