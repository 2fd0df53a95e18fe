"""Unit tests for the HTTP graph client."""

import httpx
import pytest

from mindmap.api.client import GraphApiClient
from mindmap.api.main import create_app
from mindmap.errors import GraphNotFoundError, NodeNotFoundError, StoreError
from mindmap.view import GraphView, ViewSession, ViewState
from mindmap.view.sources import GraphSource


@pytest.fixture
def make_client(store_factory, test_settings):
    """Factory for a client talking to an in-process app over ASGI."""

    async def _create(*graphs) -> GraphApiClient:
        app = create_app(store=await store_factory(*graphs), config=test_settings)
        transport = httpx.ASGITransport(app=app)
        return GraphApiClient(
            base_url="http://test",
            client=httpx.AsyncClient(transport=transport, base_url="http://test"),
        )

    return _create


def failing_client(handler) -> GraphApiClient:
    transport = httpx.MockTransport(handler)
    return GraphApiClient(
        base_url="http://test",
        client=httpx.AsyncClient(transport=transport, base_url="http://test"),
    )


class TestGraphApiClient:
    """Tests for GraphApiClient against the real routes."""

    @pytest.mark.asyncio
    async def test_is_graph_source(self, make_client) -> None:
        assert isinstance(await make_client(), GraphSource)

    @pytest.mark.asyncio
    async def test_list_and_get(self, make_client, mind_graph) -> None:
        client = await make_client(mind_graph)
        graphs = await client.list_graphs()
        assert [g.id for g in graphs] == ["mind"]

        data = await client.get_graph("mind")
        assert len(data.nodes) == 5
        assert len(data.edges) == 6
        assert data.nodes[0].properties["notes"] == "line one\nline two"

    @pytest.mark.asyncio
    async def test_missing_graph(self, make_client) -> None:
        client = await make_client()
        with pytest.raises(GraphNotFoundError):
            await client.get_graph("nope")

    @pytest.mark.asyncio
    async def test_search(self, make_client, mind_graph) -> None:
        client = await make_client(mind_graph)
        assert [n.name for n in await client.search_nodes("mind", "tact")] == ["Tactics"]
        assert await client.search_nodes("mind", "") == []

    @pytest.mark.asyncio
    async def test_neighbors(self, make_client, mind_graph) -> None:
        client = await make_client(mind_graph)
        expansion = await client.get_neighbors("mind", "Strategic Planning")
        assert expansion.focus_node.name == "Strategic Planning"
        assert {n.name for n in expansion.nodes} == {"Strategic Planning", "Strategy"}
        assert expansion.depth == 1

        with pytest.raises(NodeNotFoundError):
            await client.get_neighbors("mind", "Nobody")

    @pytest.mark.asyncio
    async def test_stats(self, make_client, mind_graph) -> None:
        client = await make_client(mind_graph)
        stats = await client.get_stats()
        assert stats.total_graphs == 1
        assert stats.total_nodes == 5

        graph_stats = await client.get_graph_stats("mind")
        assert graph_stats["rel_count"] == 6
        with pytest.raises(GraphNotFoundError):
            await client.get_graph_stats("nope")

    @pytest.mark.asyncio
    async def test_layout(self, make_client, chain_graph) -> None:
        client = await make_client(chain_graph)
        layout = await client.get_layout("chain", width=400, height=300, seed=2)
        assert len(layout["nodes"]) == 4
        assert layout["settled"] is True

    @pytest.mark.asyncio
    async def test_drives_a_session(self, make_client, chain_graph, mind_graph) -> None:
        client = await make_client(chain_graph, mind_graph)
        session = ViewSession(client, GraphView(800, 600, seed=1), fit_delay=0.0)

        await session.load_default_graph()
        assert session.graph_id == "mind"
        assert session.state == ViewState.READY

        await session.search("strat")
        assert session.view.highlight_partition().highlighted == {"Strategy", "Strategic Planning"}

        await session.expand("Tactics")
        assert {n.name for n in session.view.nodes} == {"Tactics", "Strategy", "Execution"}
        await client.close()


class TestTransportErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        client = failing_client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(StoreError, match="returned 500"):
            await client.list_graphs()

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = failing_client(refuse)
        with pytest.raises(StoreError, match="failed"):
            await client.get_graph("mind")

    @pytest.mark.asyncio
    async def test_names_are_quoted(self) -> None:
        seen = []

        def record(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path.decode())
            return httpx.Response(404)

        client = failing_client(record)
        with pytest.raises(NodeNotFoundError):
            await client.get_neighbors("mind", "a/b c", depth=2)
        assert seen == ["/api/graph/mind/node/a%2Fb%20c?depth=2"]
