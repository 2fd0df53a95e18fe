"""Neo4j schema setup - constraints and indexes for mindmap graphs."""

# Schema setup queries
SCHEMA_QUERIES = [
    # Uniqueness constraints
    "CREATE CONSTRAINT mindmap_graph_id IF NOT EXISTS FOR (g:MindmapGraph) REQUIRE g.id IS UNIQUE",
    # Lookup indexes (every query is scoped by graph_id)
    "CREATE INDEX mindmap_node_graph IF NOT EXISTS FOR (n:MindmapNode) ON (n.graph_id)",
    "CREATE INDEX mindmap_node_graph_name IF NOT EXISTS FOR (n:MindmapNode) ON (n.graph_id, n.name)",
    "CREATE INDEX mindmap_node_graph_type IF NOT EXISTS FOR (n:MindmapNode) ON (n.graph_id, n.type)",
    "CREATE INDEX mindmap_rel_graph_source IF NOT EXISTS FOR (r:MindmapRelation) ON (r.graph_id, r.source)",
    "CREATE INDEX mindmap_rel_graph_target IF NOT EXISTS FOR (r:MindmapRelation) ON (r.graph_id, r.target)",
]

# Record layout used in the database:
# (g:MindmapGraph {id, name, node_count, rel_count, updated_at})
# (n:MindmapNode {graph_id, id, seq, name, type, properties: json, created_at, updated_at})
# (r:MindmapRelation {graph_id, id, seq, source, target, type, properties: json, created_at})
#
# Relations are stored as records rather than graph relationships because
# their endpoints are names that may not resolve to a stored node.


def get_all_schema_queries() -> list[str]:
    """Get all schema setup queries."""
    return SCHEMA_QUERIES.copy()
