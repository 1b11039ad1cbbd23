"""Artifactor database layer."""

from artifactor.db.connection import Database
from artifactor.db.migrations import MIGRATIONS, VECTOR_MIGRATIONS, run_migrations
from artifactor.db.repository import NotFoundError, Repository
from artifactor.db.schema import initialize, initialize_vectors
from artifactor.db.vector_store import CollectionNotFoundError, QueryResult, VectorStore
from artifactor.db.vectors import ensure_vec_table, vec_table_name

__all__ = [
    "Database",
    "initialize",
    "initialize_vectors",
    "run_migrations",
    "MIGRATIONS",
    "VECTOR_MIGRATIONS",
    "Repository",
    "NotFoundError",
    "VectorStore",
    "QueryResult",
    "CollectionNotFoundError",
    "ensure_vec_table",
    "vec_table_name",
]
