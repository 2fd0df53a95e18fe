"""Storage layer for mindmap."""

from mindmap.config import Settings, settings
from mindmap.storage.base import GraphStore
from mindmap.storage.memory_store import InMemoryGraphStore
from mindmap.storage.neo4j_client import Neo4jGraphStore
from mindmap.storage.schema import get_all_schema_queries


def create_store(config: Settings | None = None) -> GraphStore:
    """Build the store backend selected by settings."""
    config = config or settings
    if config.store_backend == "memory":
        return InMemoryGraphStore()
    return Neo4jGraphStore(
        uri=config.neo4j_uri,
        user=config.neo4j_user,
        password=config.neo4j_password,
        database=config.neo4j_database,
    )


__all__ = [
    "GraphStore",
    "InMemoryGraphStore",
    "Neo4jGraphStore",
    "create_store",
    "get_all_schema_queries",
]
