"""Per-collection sqlite-vec virtual table management."""

from __future__ import annotations

import hashlib
import re
import sqlite3


def collection_slug(name: str) -> str:
    """Convert a collection name to a valid table name fragment.

    Examples:
        "project_3f2a-9c" -> "project_3f2a_9c"
    """
    return re.sub(r"[^a-z0-9]", "_", name.lower())


def vec_table_name(collection: str) -> str:
    """Return the vec table name for a collection.

    The slug alone is lossy ("a-b" and "a_b" share one), so a short digest of
    the exact name is appended.
    """
    digest = hashlib.sha1(collection.encode("utf-8")).hexdigest()[:8]
    return f"vec_{collection_slug(collection)}_{digest}"


def ensure_vec_table(conn: sqlite3.Connection, table: str, dimensions: int) -> str:
    """Create the *table* vec0 virtual table (cosine distance) if missing.

    Args:
        conn: Active database connection (sqlite-vec must be loaded).
        table: Table name (use vec_table_name() to generate).
        dimensions: Embedding vector dimensions (e.g. 1536 for text-embedding-3-small).

    Returns:
        The table name.
    """
    if not re.fullmatch(r"vec_[a-z0-9_]+", table):
        raise ValueError(
            f"Invalid vec table name '{table}'; use vec_table_name() to generate."
        )
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    existing = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone()

    if existing is None:
        conn.execute(
            f"CREATE VIRTUAL TABLE {table} USING vec0("
            f"embedding float[{dimensions}] distance_metric=cosine)"
        )
        conn.commit()

    return table


def drop_vec_table(conn: sqlite3.Connection, table: str) -> None:
    """Drop the *table* vec0 virtual table if it exists."""
    if not re.fullmatch(r"vec_[a-z0-9_]+", table):
        raise ValueError(f"Invalid vec table name '{table}'")
    conn.execute(f"DROP TABLE IF EXISTS {table}")
    conn.commit()
