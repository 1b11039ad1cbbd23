"""Forward-only migration runner for Artifactor's two SQLite schemas.

MIGRATIONS builds the relational file store (projects, files, chat history).
VECTOR_MIGRATIONS builds the vector index bookkeeping tables. The per-collection
vec0 tables are NOT migration-managed; use ensure_vec_table().
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS projects (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL,
    description     TEXT NOT NULL DEFAULT '',
    settings        TEXT NOT NULL DEFAULT '{}',
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    last_accessed   DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS files (
    id              TEXT PRIMARY KEY,
    project_id      TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    path            TEXT NOT NULL,
    content         TEXT NOT NULL DEFAULT '',
    language        TEXT NOT NULL DEFAULT 'text',
    size            INTEGER NOT NULL DEFAULT 0,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    UNIQUE (project_id, path)
);

CREATE INDEX IF NOT EXISTS idx_files_project ON files(project_id);

CREATE TABLE IF NOT EXISTS chat_sessions (
    id              TEXT PRIMARY KEY,
    project_id      TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS chat_messages (
    id              TEXT PRIMARY KEY,
    session_id      TEXT NOT NULL REFERENCES chat_sessions(id) ON DELETE CASCADE,
    role            TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
    content         TEXT NOT NULL,
    metadata        TEXT NOT NULL DEFAULT '{}',
    created_at      DATETIME NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_messages_session ON chat_messages(session_id, created_at);

CREATE TABLE IF NOT EXISTS generated_files_log (
    id              TEXT PRIMARY KEY,
    message_id      TEXT REFERENCES chat_messages(id) ON DELETE CASCADE,
    file_id         TEXT REFERENCES files(id) ON DELETE SET NULL,
    action          TEXT NOT NULL CHECK (action IN ('create', 'update', 'delete')),
    created_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);
"""

_VEC_V1_SQL = """
CREATE TABLE IF NOT EXISTS collections (
    name            TEXT PRIMARY KEY,
    vec_table       TEXT NOT NULL,
    dimensions      INTEGER NOT NULL,
    metadata        TEXT NOT NULL DEFAULT '{}',
    created_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS documents (
    rowid           INTEGER PRIMARY KEY,
    collection      TEXT NOT NULL REFERENCES collections(name) ON DELETE CASCADE,
    doc_id          TEXT NOT NULL,
    document        TEXT NOT NULL,
    metadata        TEXT NOT NULL DEFAULT '{}',
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    UNIQUE (collection, doc_id)
);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]

VECTOR_MIGRATIONS: list[tuple[int, str]] = [
    (1, _VEC_V1_SQL),
]


def run_migrations(
    conn: sqlite3.Connection,
    migrations: list[tuple[int, str]] | None = None,
) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.

    Args:
        conn: Open connection to the target database.
        migrations: Migration list to apply; defaults to the relational MIGRATIONS.
    """
    steps = MIGRATIONS if migrations is None else migrations

    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in steps:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
