"""Unit tests for ViewSession."""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from neo4j.exceptions import ServiceUnavailable

from mindmap.errors import GraphNotFoundError, StoreError
from mindmap.graph.expansion import NeighborExpander
from mindmap.graph.subgraph import build_render_graph
from mindmap.models import GraphNode, StoreStats
from mindmap.storage.neo4j_client import Neo4jGraphStore
from mindmap.view import GraphView, LocalGraphSource, TickScheduler, ViewSession, ViewState
from mindmap.view.session import (
    EMPTY_GRAPH_MESSAGE,
    MAX_LISTED_CONNECTIONS,
    describe_node,
    property_text,
)
from mindmap.view.sources import GraphSource


class GatedSource(LocalGraphSource):
    """Local source whose graph fetches can be held open or made to fail."""

    def __init__(self, store) -> None:
        super().__init__(store)
        self.gates: dict[str, asyncio.Event] = {}
        self.failing: set[str] = set()

    async def get_graph(self, graph_id: str):
        gate = self.gates.get(graph_id)
        if gate is not None:
            await gate.wait()
        if graph_id in self.failing:
            raise StoreError("connection reset")
        return await super().get_graph(graph_id)


def make_session(source, **kwargs) -> ViewSession:
    return ViewSession(source, GraphView(800, 600, seed=1), fit_delay=0.0, **kwargs)


class TestNodeDetails:
    """Tests for the inspector data."""

    def test_property_text(self) -> None:
        assert property_text(True) == "true"
        assert property_text(3) == "3"
        assert property_text({"a": 1}) == '{\n  "a": 1\n}'
        assert property_text(["x"]) == '[\n  "x"\n]'

    def test_describe_node(self, mind_graph) -> None:
        graph = build_render_graph(mind_graph.nodes, mind_graph.edges)
        strategy = graph.get("Strategy")
        connections = [
            e for e in graph.edges if "Strategy" in (e.source.name, e.target.name)
        ]
        details = describe_node(strategy, connections, "mind")

        rows = {row.key: row for row in details.properties}
        assert rows["summary"].value == "Long-range plan"
        assert not rows["summary"].is_block
        assert rows["notes"].is_block
        assert rows["weight"].value == "3"
        assert details.created == "Mar 4, 2025 09:15 AM"
        assert details.updated is None
        assert details.connection_count == 3

        arrows = {(c.arrow, c.type, c.other) for c in details.connections}
        assert ("→", "INCLUDES", "Strategic Planning") in arrows
        assert ("←", "REFINES", "Review") in arrows
        assert details.hidden_connections == 0

    def test_none_properties_skipped(self) -> None:
        node = GraphNode(name="A", properties={"empty": None, "kept": "x"})
        graph = build_render_graph([node], [])
        details = describe_node(graph.get("A"), [], "g")
        assert [row.key for row in details.properties] == ["kept"]

    def test_connection_list_capped(self, graph_builder) -> None:
        leaves = [(f"leaf-{i}", "Idea") for i in range(35)]
        data = graph_builder(
            "star", [("hub", "Concept")] + leaves, [("hub", "HAS", name) for name, _ in leaves]
        )
        graph = build_render_graph(data.nodes, data.edges)
        details = describe_node(graph.get("hub"), graph.edges, "star")
        assert len(details.connections) == MAX_LISTED_CONNECTIONS
        assert details.hidden_connections == 5
        assert details.to_dict()["connection_count"] == 35


class TestLoading:
    """Tests for graph loading."""

    @pytest.mark.asyncio
    async def test_default_graph_preferred(self, store_factory, chain_graph, mind_graph) -> None:
        store = await store_factory(chain_graph, mind_graph)
        session = make_session(LocalGraphSource(store))
        await session.load_default_graph()
        assert session.graph_id == "mind"
        assert session.state == ViewState.READY
        assert len(session.view.nodes) == 5
        assert len(session.graphs) == 2

    @pytest.mark.asyncio
    async def test_first_graph_without_default(self, store_factory, chain_graph) -> None:
        store = await store_factory(chain_graph)
        session = make_session(LocalGraphSource(store))
        await session.load_default_graph()
        assert session.graph_id == "chain"

    @pytest.mark.asyncio
    async def test_no_graphs(self, store_factory) -> None:
        session = make_session(LocalGraphSource(await store_factory()))
        assert await session.load_default_graph() is None
        assert session.state == ViewState.EMPTY
        assert session.message == EMPTY_GRAPH_MESSAGE

    @pytest.mark.asyncio
    async def test_unknown_graph(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")
        await session.load_graph("missing")
        assert session.state == ViewState.EMPTY
        assert session.message == "Graph 'missing' not found"
        assert session.view.nodes == []

    @pytest.mark.asyncio
    async def test_same_graph_not_refetched(self, store_factory, mind_graph) -> None:
        source = LocalGraphSource(await store_factory(mind_graph))
        session = make_session(source)
        first = await session.load_graph("mind")
        source.store = AsyncMock()
        assert await session.load_graph("mind") is first
        source.store.get_graph.assert_not_called()

    @pytest.mark.asyncio
    async def test_fit_without_scheduler_is_immediate(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")
        view = session.view
        assert view.viewport.transition is None
        assert view.viewport.transform == view.viewport.fit_transform(
            view.simulation.bounds(include_radius=False)
        )

    @pytest.mark.asyncio
    async def test_fit_deferred_with_scheduler(self, store_factory, mind_graph) -> None:
        view = GraphView(800, 600, seed=1)
        session = ViewSession(
            LocalGraphSource(await store_factory(mind_graph)),
            view,
            scheduler=TickScheduler(view, interval=0.001),
            fit_delay=0.0,
        )
        await session.load_graph("mind")
        assert view.viewport.transition is None
        await asyncio.sleep(0.01)
        assert view.viewport.transition is not None
        await session.scheduler.stop()


class TestFailures:
    """Transport failures and out-of-order responses."""

    @pytest.mark.asyncio
    async def test_failed_load_keeps_previous_graph(self, store_factory, chain_graph, mind_graph) -> None:
        source = GatedSource(await store_factory(chain_graph, mind_graph))
        source.failing.add("chain")
        session = make_session(source)
        await session.load_graph("mind")

        assert await session.load_graph("chain") is None
        assert session.state == ViewState.READY
        assert session.graph_id == "mind"
        assert session.view.graph_id == "mind"
        assert session.message == "Failed to load graph 'chain'"

    @pytest.mark.asyncio
    async def test_dropped_database_keeps_previous_graph(self, store_factory, mind_graph) -> None:
        source = LocalGraphSource(await store_factory(mind_graph))
        session = make_session(source)
        await session.load_graph("mind")

        db_session = MagicMock()
        db_session.run = AsyncMock(side_effect=ServiceUnavailable("connection refused"))

        @asynccontextmanager
        async def dropped_session():
            yield db_session

        neo4j_store = Neo4jGraphStore(uri="bolt://test:7687", user="neo4j", password="pw")
        neo4j_store.session = dropped_session
        source.store = neo4j_store
        source.expander = NeighborExpander(neo4j_store)

        assert await session.load_graph("chain") is None
        assert session.state == ViewState.READY
        assert session.graph_id == "mind"
        assert len(session.view.nodes) == 5

        assert await session.expand("Strategy") is None
        assert await session.search("strat") is None
        assert len(session.view.nodes) == 5

    @pytest.mark.asyncio
    async def test_failed_first_load_is_error(self, store_factory, chain_graph) -> None:
        source = GatedSource(await store_factory(chain_graph))
        source.failing.add("chain")
        session = make_session(source)
        await session.load_graph("chain")
        assert session.state == ViewState.ERROR

    @pytest.mark.asyncio
    async def test_failed_graph_list_kept(self, store_factory, mind_graph) -> None:
        source = LocalGraphSource(await store_factory(mind_graph))
        session = make_session(source)
        await session.load_graph_list()
        source.store = AsyncMock()
        source.store.list_graphs.side_effect = StoreError("down")
        graphs = await session.load_graph_list()
        assert [g.id for g in graphs] == ["mind"]

    @pytest.mark.asyncio
    async def test_stale_load_ignored(self, store_factory, chain_graph, mind_graph) -> None:
        source = GatedSource(await store_factory(chain_graph, mind_graph))
        source.gates["chain"] = asyncio.Event()
        session = make_session(source)

        slow = asyncio.create_task(session.load_graph("chain"))
        await asyncio.sleep(0)
        await session.load_graph("mind")
        source.gates["chain"].set()

        assert await slow is None
        assert session.graph_id == "mind"
        assert session.view.graph_id == "mind"

    @pytest.mark.asyncio
    async def test_stale_not_found_ignored(self, store_factory, mind_graph) -> None:
        source = GatedSource(await store_factory(mind_graph))
        source.gates["missing"] = asyncio.Event()
        session = make_session(source)

        slow = asyncio.create_task(session.load_graph("missing"))
        await asyncio.sleep(0)
        await session.load_graph("mind")
        source.gates["missing"].set()

        assert await slow is None
        assert session.state == ViewState.READY
        assert len(session.view.nodes) == 5

    @pytest.mark.asyncio
    async def test_sources_are_protocol_compatible(self, store_factory) -> None:
        assert isinstance(LocalGraphSource(await store_factory()), GraphSource)


class TestSearch:
    """Tests for search and highlight."""

    @pytest.mark.asyncio
    async def test_search_highlights(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")

        results = await session.search("strat")
        assert {n.name for n in results} == {"Strategy", "Strategic Planning"}
        partition = session.view.highlight_partition()
        assert partition.highlighted == {"Strategy", "Strategic Planning"}
        assert "Tactics" in partition.faded_nodes

    @pytest.mark.asyncio
    async def test_empty_query_clears(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")
        await session.search("strat")
        assert await session.search("   ") == []
        assert session.view.highlight_partition().neutral

    @pytest.mark.asyncio
    async def test_superseded_search_dropped(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")

        first = asyncio.create_task(session.search("strat", debounce=0.05))
        await asyncio.sleep(0)
        second = await session.search("tactics")

        assert await first is None
        assert [n.name for n in second] == ["Tactics"]
        assert session.view.highlight_partition().highlighted == {"Tactics"}

    @pytest.mark.asyncio
    async def test_search_failure_keeps_highlight(self, store_factory, mind_graph) -> None:
        source = LocalGraphSource(await store_factory(mind_graph))
        session = make_session(source)
        await session.load_graph("mind")
        await session.search("tactics")

        source.store = AsyncMock()
        source.store.search_nodes.side_effect = StoreError("down")
        assert await session.search("review") is None
        assert session.view.highlight_partition().highlighted == {"Tactics"}

    @pytest.mark.asyncio
    async def test_graph_change_clears_search(self, store_factory, chain_graph, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(chain_graph, mind_graph)))
        await session.load_graph("mind")
        await session.search("strat")
        await session.load_graph("chain")
        assert session.search_results == []
        assert session.view.highlight_partition().neutral


class TestSelectionAndExpansion:
    """Tests for selection, expansion and the legend."""

    @pytest.mark.asyncio
    async def test_click_selects(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")

        session.view.click("Strategy")
        assert session.selected is not None
        assert session.selected.name == "Strategy"
        assert session.selected.graph_id == "mind"

        session.view.click(None)
        assert session.selected is None

    @pytest.mark.asyncio
    async def test_focus_connection(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")
        details = session.focus_connection("Review")
        assert details is not None and details.name == "Review"
        assert session.view.viewport.transition is not None
        assert session.focus_connection("Nobody") is None

    @pytest.mark.asyncio
    async def test_expand(self, store_factory, chain_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(chain_graph)))
        await session.load_graph("chain")

        expansion = await session.expand("B")
        assert expansion is not None
        assert {n.name for n in session.view.nodes} == {"A", "B", "C"}
        assert session.selected is not None and session.selected.name == "B"
        assert session.graph_id == "chain"

    @pytest.mark.asyncio
    async def test_expand_unknown_node_keeps_view(self, store_factory, chain_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(chain_graph)))
        await session.load_graph("chain")

        assert await session.expand("Z") is None
        assert session.message == "Node 'Z' not found in graph 'chain'"
        assert len(session.view.nodes) == 4
        assert session.state == ViewState.READY

    @pytest.mark.asyncio
    async def test_reload_after_expand_restores_full_graph(self, store_factory, chain_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(chain_graph)))
        await session.load_graph("chain")
        await session.expand("A", 1)
        assert {n.name for n in session.view.nodes} == {"A", "B"}
        assert session.expanded

        data = await session.load_graph("chain")
        assert data is not None
        assert {n.name for n in session.view.nodes} == {"A", "B", "C", "D"}
        assert not session.expanded

    @pytest.mark.asyncio
    async def test_legend(self, store_factory, mind_graph) -> None:
        session = make_session(LocalGraphSource(await store_factory(mind_graph)))
        await session.load_graph("mind")
        legend = session.legend()
        assert [(t, c) for t, c, _ in legend] == [("Concept", 2), ("Action", 2), ("Pattern", 1)]

    @pytest.mark.asyncio
    async def test_stats(self, store_factory, mind_graph) -> None:
        source = LocalGraphSource(await store_factory(mind_graph))
        session = make_session(source)
        stats = await session.load_stats()
        assert stats.total_graphs == 1
        assert session.last_sync_ago == "just now"

        session.stats = StoreStats()
        assert session.last_sync_ago == "—"


def test_graph_not_found_message() -> None:
    assert str(GraphNotFoundError("x")) == "Graph 'x' not found"
