from content_graph.db.engine import get_engine
from content_graph.db.helpers import RelationshipRow, fields_to_json, relationship_rows
from content_graph.db.memory import InMemoryPersistence, InMemoryRecord
from content_graph.db.sql import SqlPersistence

__all__ = [
    "InMemoryPersistence",
    "InMemoryRecord",
    "RelationshipRow",
    "SqlPersistence",
    "fields_to_json",
    "get_engine",
    "relationship_rows",
]
