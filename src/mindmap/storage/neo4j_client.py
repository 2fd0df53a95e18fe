"""Neo4j-backed graph store."""

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncManagedTransaction, AsyncSession
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable

from mindmap.config import settings
from mindmap.errors import GraphNotFoundError, StoreError
from mindmap.models import (
    GraphData,
    GraphEdge,
    GraphNode,
    GraphSummary,
    StoreStats,
    SyncResult,
)
from mindmap.models.timestamps import utc_now_iso
from mindmap.storage.base import check_unique_edge_ids
from mindmap.storage.schema import get_all_schema_queries

logger = logging.getLogger(__name__)


def _node_record(node: GraphNode, seq: int, now: str) -> dict[str, Any]:
    return {
        "id": node.id or node.name,
        "seq": seq,
        "name": node.name,
        "type": node.type,
        "properties": json.dumps(node.properties),
        "created_at": str(node.created_at or now),
        "updated_at": str(node.updated_at or now),
    }


def _edge_record(edge: GraphEdge, seq: int, now: str) -> dict[str, Any]:
    return {
        "id": edge.id,
        "seq": seq,
        "source": edge.source,
        "target": edge.target,
        "type": edge.type,
        "properties": json.dumps(edge.properties),
        "created_at": str(edge.created_at or now),
    }


class Neo4jGraphStore:
    """Async Neo4j client implementing the graph store queries."""

    def __init__(
        self,
        uri: str | None = None,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ) -> None:
        self.uri = uri or settings.neo4j_uri
        self.user = user or settings.neo4j_user
        self.password = password or settings.neo4j_password
        self.database = database or settings.neo4j_database
        self._driver: AsyncDriver | None = None

    async def connect(self) -> None:
        """Establish connection to Neo4j."""
        if self._driver is None:
            self._driver = AsyncGraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password),
            )
            # Verify connectivity
            try:
                await self._driver.verify_connectivity()
                logger.info(f"Connected to Neo4j at {self.uri}")
            except ServiceUnavailable as e:
                logger.error(f"Failed to connect to Neo4j: {e}")
                raise

    async def close(self) -> None:
        """Close the database connection."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Disconnected from Neo4j")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        if self._driver is None:
            await self.connect()
        assert self._driver is not None
        async with self._driver.session(database=self.database) as session:
            yield session

    async def setup_schema(self) -> None:
        """Create all constraints and indexes."""
        async with self.session() as session:
            for query in get_all_schema_queries():
                try:
                    await session.run(query)
                    logger.debug(f"Executed schema query: {query[:50]}...")
                except Neo4jError as e:
                    # Some indexes might already exist, that's ok
                    logger.warning(f"Schema query warning: {e}")
        logger.info("Schema setup completed")

    async def execute_query(self, query: str, **params: Any) -> list[dict[str, Any]]:
        """Execute a raw Cypher query."""
        results: list[dict[str, Any]] = []
        try:
            async with self.session() as session:
                result = await session.run(query, **params)
                async for record in result:
                    results.append(dict(record))
        except (Neo4jError, DriverError) as e:
            raise StoreError(f"Neo4j query failed: {e}") from e
        return results

    # ==========================================================================
    # Graph operations
    # ==========================================================================

    async def list_graphs(self) -> list[GraphSummary]:
        """List graphs with their most frequent node type, newest first."""
        rows = await self.execute_query(
            """
            MATCH (g:MindmapGraph)
            OPTIONAL MATCH (n:MindmapNode {graph_id: g.id})
            WITH g, n.type AS type, count(n) AS cnt
            ORDER BY cnt DESC
            WITH g, collect(type)[0] AS top_type
            RETURN g.id AS id, g.name AS name, g.node_count AS node_count,
                   g.rel_count AS rel_count, g.updated_at AS updated_at, top_type
            ORDER BY g.updated_at DESC
            """
        )
        return [GraphSummary.from_dict(row) for row in rows]

    async def get_graph_summary(self, graph_id: str) -> GraphSummary | None:
        rows = await self.execute_query(
            """
            MATCH (g:MindmapGraph {id: $graph_id})
            RETURN g.id AS id, g.name AS name, g.node_count AS node_count,
                   g.rel_count AS rel_count, g.updated_at AS updated_at
            """,
            graph_id=graph_id,
        )
        return GraphSummary.from_dict(rows[0]) if rows else None

    async def get_graph(self, graph_id: str) -> GraphData:
        summary = await self.get_graph_summary(graph_id)
        if summary is None:
            raise GraphNotFoundError(graph_id)

        node_rows = await self.execute_query(
            "MATCH (n:MindmapNode {graph_id: $graph_id}) RETURN n ORDER BY n.seq",
            graph_id=graph_id,
        )
        edge_rows = await self.execute_query(
            "MATCH (r:MindmapRelation {graph_id: $graph_id}) RETURN r ORDER BY r.seq",
            graph_id=graph_id,
        )
        return GraphData(
            id=summary.id,
            name=summary.name,
            nodes=[GraphNode.from_dict(dict(row["n"])) for row in node_rows],
            edges=[GraphEdge.from_dict(dict(row["r"])) for row in edge_rows],
        )

    # ==========================================================================
    # Node and edge queries
    # ==========================================================================

    async def get_node(self, graph_id: str, name: str) -> GraphNode | None:
        rows = await self.execute_query(
            """
            MATCH (n:MindmapNode {graph_id: $graph_id, name: $name})
            RETURN n ORDER BY n.seq LIMIT 1
            """,
            graph_id=graph_id,
            name=name,
        )
        return GraphNode.from_dict(dict(rows[0]["n"])) if rows else None

    async def get_nodes_by_names(
        self, graph_id: str, names: list[str]
    ) -> list[GraphNode]:
        """Resolve names in one query, returned in the order of `names`."""
        if not names:
            return []
        rows = await self.execute_query(
            """
            MATCH (n:MindmapNode {graph_id: $graph_id})
            WHERE n.name IN $names
            RETURN n ORDER BY n.seq
            """,
            graph_id=graph_id,
            names=names,
        )
        by_name: dict[str, GraphNode] = {}
        for row in rows:
            node = GraphNode.from_dict(dict(row["n"]))
            by_name.setdefault(node.name, node)
        return [by_name[name] for name in names if name in by_name]

    async def get_edges_from(
        self, graph_id: str, sources: list[str]
    ) -> list[GraphEdge]:
        return await self._edges_where(graph_id, "source", sources)

    async def get_edges_to(
        self, graph_id: str, targets: list[str]
    ) -> list[GraphEdge]:
        return await self._edges_where(graph_id, "target", targets)

    async def _edges_where(
        self, graph_id: str, endpoint: str, names: list[str]
    ) -> list[GraphEdge]:
        if not names:
            return []
        rows = await self.execute_query(
            f"""
            MATCH (r:MindmapRelation {{graph_id: $graph_id}})
            WHERE r.{endpoint} IN $names
            RETURN r ORDER BY r.seq
            """,
            graph_id=graph_id,
            names=names,
        )
        return [GraphEdge.from_dict(dict(row["r"])) for row in rows]

    async def search_nodes(
        self, graph_id: str, query: str, limit: int = 50
    ) -> list[GraphNode]:
        """Case-insensitive substring match on node names."""
        if not query:
            return []
        rows = await self.execute_query(
            """
            MATCH (n:MindmapNode {graph_id: $graph_id})
            WHERE toLower(n.name) CONTAINS toLower($query)
            RETURN n ORDER BY n.seq
            LIMIT $limit
            """,
            graph_id=graph_id,
            query=query,
            limit=limit,
        )
        return [GraphNode.from_dict(dict(row["n"])) for row in rows]

    async def get_node_type_counts(self, graph_id: str) -> list[tuple[str, int]]:
        rows = await self.execute_query(
            """
            MATCH (n:MindmapNode {graph_id: $graph_id})
            RETURN n.type AS type, count(*) AS count
            ORDER BY count DESC
            """,
            graph_id=graph_id,
        )
        return [(row["type"], row["count"]) for row in rows]

    async def get_stats(self) -> StoreStats:
        graphs = await self.execute_query(
            "MATCH (g:MindmapGraph) RETURN count(g) AS count, max(g.updated_at) AS last"
        )
        nodes = await self.execute_query("MATCH (n:MindmapNode) RETURN count(n) AS count")
        rels = await self.execute_query("MATCH (r:MindmapRelation) RETURN count(r) AS count")
        return StoreStats(
            total_graphs=graphs[0]["count"] if graphs else 0,
            total_nodes=nodes[0]["count"] if nodes else 0,
            total_relationships=rels[0]["count"] if rels else 0,
            last_sync=graphs[0]["last"] if graphs else None,
        )

    # ==========================================================================
    # Ingestion
    # ==========================================================================

    async def replace_graph(
        self,
        graph_id: str,
        nodes: list[GraphNode],
        edges: list[GraphEdge],
        name: str | None = None,
    ) -> SyncResult:
        """Swap a graph's node and edge set inside one write transaction."""
        if not graph_id:
            raise ValueError("Missing graph id")
        check_unique_edge_ids(edges)

        now = utc_now_iso()
        node_items = [_node_record(n, i, now) for i, n in enumerate(nodes)]
        edge_items = [_edge_record(e, i, now) for i, e in enumerate(edges)]

        try:
            async with self.session() as session:
                await session.execute_write(
                    self._replace_tx,
                    graph_id,
                    name or graph_id,
                    node_items,
                    edge_items,
                    now,
                )
        except (Neo4jError, DriverError) as e:
            raise StoreError(f"Failed to replace graph {graph_id}: {e}") from e

        logger.info(
            f"Replaced graph {graph_id}: {len(node_items)} nodes, "
            f"{len(edge_items)} relationships"
        )
        return SyncResult(
            graph_id=graph_id,
            nodes=len(node_items),
            relationships=len(edge_items),
            synced_at=now,
        )

    @staticmethod
    async def _replace_tx(
        tx: AsyncManagedTransaction,
        graph_id: str,
        name: str,
        node_items: list[dict[str, Any]],
        edge_items: list[dict[str, Any]],
        now: str,
    ) -> None:
        # Delete existing data for this graph
        await (await tx.run(
            "MATCH (n:MindmapNode {graph_id: $graph_id}) DETACH DELETE n",
            graph_id=graph_id,
        )).consume()
        await (await tx.run(
            "MATCH (r:MindmapRelation {graph_id: $graph_id}) DETACH DELETE r",
            graph_id=graph_id,
        )).consume()

        await (await tx.run(
            """
            UNWIND $items AS item
            CREATE (n:MindmapNode)
            SET n = item, n.graph_id = $graph_id
            """,
            items=node_items,
            graph_id=graph_id,
        )).consume()
        await (await tx.run(
            """
            UNWIND $items AS item
            CREATE (r:MindmapRelation)
            SET r = item, r.graph_id = $graph_id
            """,
            items=edge_items,
            graph_id=graph_id,
        )).consume()

        # Upsert graph metadata
        await (await tx.run(
            """
            MERGE (g:MindmapGraph {id: $graph_id})
            SET g.name = $name,
                g.node_count = $node_count,
                g.rel_count = $rel_count,
                g.updated_at = $now
            """,
            graph_id=graph_id,
            name=name,
            node_count=len(node_items),
            rel_count=len(edge_items),
            now=now,
        )).consume()
