"""Database schema initialization."""

from __future__ import annotations

import sqlite3

from artifactor.db.migrations import MIGRATIONS, VECTOR_MIGRATIONS, run_migrations

CURRENT_VERSION = MIGRATIONS[-1][0]
CURRENT_VECTOR_VERSION = VECTOR_MIGRATIONS[-1][0]


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the relational file-store schema (idempotent)."""
    run_migrations(conn, MIGRATIONS)


def initialize_vectors(conn: sqlite3.Connection) -> None:
    """Initialize the vector index bookkeeping schema (idempotent)."""
    run_migrations(conn, VECTOR_MIGRATIONS)
