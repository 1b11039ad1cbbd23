"""Repository pattern for all Artifactor relational-store operations.

Single interface for: projects, files, chat sessions, chat messages and the
generated-files log. The vector index lives in a separate database and is
handled by artifactor.db.vector_store.
"""

from __future__ import annotations

import json
import sqlite3
import uuid

from artifactor.db.models import ChatMessage, ChatSession, FileRecord, Project

_PROJECT_COLUMNS = """
    p.id, p.name, p.description, p.settings, p.created_at, p.updated_at,
    p.last_accessed,
    (SELECT COUNT(*) FROM files f WHERE f.project_id = p.id) AS file_count
"""

_FILE_COLUMNS = "id, project_id, path, content, language, size, created_at, updated_at"
_FILE_COLUMNS_NO_CONTENT = (
    "id, project_id, path, NULL AS content, language, size, created_at, updated_at"
)

_GENERATION_ACTIONS = frozenset(["create", "update", "delete"])


class NotFoundError(LookupError):
    """Raised when a project, file or chat session does not exist."""


def _new_id() -> str:
    return str(uuid.uuid4())


class Repository:
    """Data access layer for all Artifactor relational entities.

    Wraps an open sqlite3.Connection and provides typed methods for projects,
    files, chat sessions/messages and the generated-files log. The connection
    is owned by the caller and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see artifactor.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(
        self, name: str, description: str = "", settings: dict | None = None
    ) -> Project:
        """Insert a new project and return it.

        Args:
            name: Display name.
            description: Optional free-text description.
            settings: Optional JSON-serialisable settings dict.

        Returns:
            The persisted Project (file_count 0).
        """
        project_id = _new_id()
        self._conn.execute(
            "INSERT INTO projects (id, name, description, settings) VALUES (?, ?, ?, ?)",
            (project_id, name, description, json.dumps(settings or {})),
        )
        self._conn.commit()
        return self.get_project(project_id)

    def get_project(self, project_id: str) -> Project:
        """Return a project by ID, including its file count.

        Raises:
            NotFoundError: If no project has *project_id*.
        """
        row = self._conn.execute(
            f"SELECT {_PROJECT_COLUMNS} FROM projects p WHERE p.id = ?", (project_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Project '{project_id}' not found")
        return _row_to_project(row)

    def list_projects(self) -> list[Project]:
        """Return all projects, most recently updated first."""
        rows = self._conn.execute(
            f"SELECT {_PROJECT_COLUMNS} FROM projects p ORDER BY p.updated_at DESC, p.name"
        ).fetchall()
        return [_row_to_project(r) for r in rows]

    def update_project(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        settings: dict | None = None,
    ) -> Project:
        """Update the given fields of a project and return the new state.

        Args:
            project_id: UUID of the project.
            name: New name, or None to keep.
            description: New description, or None to keep.
            settings: New settings dict, or None to keep.

        Raises:
            NotFoundError: If the project does not exist.
        """
        assignments: list[str] = []
        params: list[object] = []
        if name is not None:
            assignments.append("name = ?")
            params.append(name)
        if description is not None:
            assignments.append("description = ?")
            params.append(description)
        if settings is not None:
            assignments.append("settings = ?")
            params.append(json.dumps(settings))
        assignments.append("updated_at = datetime('now')")

        cur = self._conn.execute(
            f"UPDATE projects SET {', '.join(assignments)} WHERE id = ?",
            (*params, project_id),
        )
        self._conn.commit()
        if cur.rowcount == 0:
            raise NotFoundError(f"Project '{project_id}' not found")
        return self.get_project(project_id)

    def touch_project(self, project_id: str) -> None:
        """Set last_accessed to now (no-op for unknown IDs)."""
        self._conn.execute(
            "UPDATE projects SET last_accessed = datetime('now') WHERE id = ?",
            (project_id,),
        )
        self._conn.commit()

    def delete_project(self, project_id: str) -> None:
        """Delete a project; files, sessions and messages cascade.

        Raises:
            NotFoundError: If the project does not exist.
        """
        cur = self._conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        self._conn.commit()
        if cur.rowcount == 0:
            raise NotFoundError(f"Project '{project_id}' not found")

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def save_file(
        self, project_id: str, path: str, content: str, language: str = "text"
    ) -> FileRecord:
        """Create or replace the file at (*project_id*, *path*).

        Saving the same content twice leaves exactly one record.

        Returns:
            The stored FileRecord, content included.

        Raises:
            sqlite3.IntegrityError: If the project does not exist (FOREIGN KEY).
        """
        try:
            self._conn.execute(
                """
                INSERT INTO files (id, project_id, path, content, language, size)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(project_id, path) DO UPDATE SET
                    content = excluded.content,
                    language = excluded.language,
                    size = excluded.size,
                    updated_at = datetime('now')
                """,
                (_new_id(), project_id, path, content, language, len(content.encode("utf-8"))),
            )
        except sqlite3.IntegrityError:
            self._conn.rollback()
            raise
        self._conn.execute(
            "UPDATE projects SET updated_at = datetime('now') WHERE id = ?", (project_id,)
        )
        self._conn.commit()
        return self.read_file(project_id, path)

    def file_exists(self, project_id: str, path: str) -> bool:
        return (
            self._conn.execute(
                "SELECT 1 FROM files WHERE project_id = ? AND path = ?", (project_id, path)
            ).fetchone()
            is not None
        )

    def read_file(self, project_id: str, path: str) -> FileRecord:
        """Return the file at (*project_id*, *path*).

        Raises:
            NotFoundError: If the path is absent.
        """
        row = self._conn.execute(
            f"SELECT {_FILE_COLUMNS} FROM files WHERE project_id = ? AND path = ?",
            (project_id, path),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"File '{path}' not found in project '{project_id}'")
        return _row_to_file(row)

    def delete_file(self, project_id: str, path: str) -> FileRecord:
        """Delete the file at (*project_id*, *path*) and return the removed record.

        Raises:
            NotFoundError: If the path is absent.
        """
        record = self.read_file(project_id, path)
        self._conn.execute("DELETE FROM files WHERE id = ?", (record.id,))
        self._conn.commit()
        return record

    def list_files(self, project_id: str, include_content: bool = False) -> list[FileRecord]:
        """Return all files of a project ordered by path.

        Args:
            project_id: UUID of the project.
            include_content: Load file bodies too (False leaves content None).
        """
        columns = _FILE_COLUMNS if include_content else _FILE_COLUMNS_NO_CONTENT
        rows = self._conn.execute(
            f"SELECT {columns} FROM files WHERE project_id = ? ORDER BY path",
            (project_id,),
        ).fetchall()
        return [_row_to_file(r) for r in rows]

    def rename_file(self, project_id: str, old_path: str, new_path: str) -> FileRecord:
        """Move a file to *new_path* in a single UPDATE.

        Raises:
            NotFoundError: If *old_path* is absent.
            sqlite3.IntegrityError: If *new_path* is already taken (UNIQUE).
        """
        try:
            cur = self._conn.execute(
                """
                UPDATE files SET path = ?, updated_at = datetime('now')
                WHERE project_id = ? AND path = ?
                """,
                (new_path, project_id, old_path),
            )
        except sqlite3.IntegrityError:
            self._conn.rollback()
            raise
        self._conn.commit()
        if cur.rowcount == 0:
            raise NotFoundError(f"File '{old_path}' not found in project '{project_id}'")
        return self.read_file(project_id, new_path)

    # ------------------------------------------------------------------
    # Chat sessions + messages
    # ------------------------------------------------------------------

    def get_or_create_session(self, project_id: str) -> ChatSession:
        """Return the project's most recent chat session, creating one if none exists."""
        row = self._conn.execute(
            """
            SELECT id, project_id, created_at, updated_at FROM chat_sessions
            WHERE project_id = ? ORDER BY updated_at DESC, rowid DESC LIMIT 1
            """,
            (project_id,),
        ).fetchone()
        if row is not None:
            return _row_to_session(row)

        session_id = _new_id()
        self._conn.execute(
            "INSERT INTO chat_sessions (id, project_id) VALUES (?, ?)",
            (session_id, project_id),
        )
        self._conn.commit()
        row = self._conn.execute(
            "SELECT id, project_id, created_at, updated_at FROM chat_sessions WHERE id = ?",
            (session_id,),
        ).fetchone()
        return _row_to_session(row)

    def add_message(
        self, session_id: str, role: str, content: str, metadata: dict | None = None
    ) -> ChatMessage:
        """Append a message to a session and bump the session's updated_at.

        Args:
            session_id: UUID of the chat session.
            role: 'user' or 'assistant' (enforced by a CHECK constraint).
            content: Message text.
            metadata: Optional JSON-serialisable dict (e.g. generated file paths).
        """
        message_id = _new_id()
        self._conn.execute(
            """
            INSERT INTO chat_messages (id, session_id, role, content, metadata)
            VALUES (?, ?, ?, ?, ?)
            """,
            (message_id, session_id, role, content, json.dumps(metadata or {})),
        )
        self._conn.execute(
            "UPDATE chat_sessions SET updated_at = datetime('now') WHERE id = ?",
            (session_id,),
        )
        self._conn.commit()
        row = self._conn.execute(
            """
            SELECT id, session_id, role, content, metadata, created_at
            FROM chat_messages WHERE id = ?
            """,
            (message_id,),
        ).fetchone()
        return _row_to_message(row)

    def list_messages(
        self, project_id: str, limit: int = 50, offset: int = 0
    ) -> list[ChatMessage]:
        """Return a page of a project's chat history in chronological order.

        The page is taken from the newest end: offset 0 returns the latest
        *limit* messages, oldest first.
        """
        rows = self._conn.execute(
            """
            SELECT m.id, m.session_id, m.role, m.content, m.metadata, m.created_at
            FROM chat_messages m
            JOIN chat_sessions s ON s.id = m.session_id
            WHERE s.project_id = ?
            ORDER BY m.created_at DESC, m.rowid DESC
            LIMIT ? OFFSET ?
            """,
            (project_id, limit, offset),
        ).fetchall()
        return [_row_to_message(r) for r in reversed(rows)]

    def delete_session(self, session_id: str) -> None:
        """Delete a chat session and its messages.

        Raises:
            NotFoundError: If the session does not exist.
        """
        cur = self._conn.execute("DELETE FROM chat_sessions WHERE id = ?", (session_id,))
        self._conn.commit()
        if cur.rowcount == 0:
            raise NotFoundError(f"Chat session '{session_id}' not found")

    # ------------------------------------------------------------------
    # Generated files log
    # ------------------------------------------------------------------

    def log_generated_file(self, message_id: str, file_id: str, action: str) -> str:
        """Record that an assistant message created/updated/deleted a file.

        Returns:
            The new log entry ID.

        Raises:
            ValueError: If *action* is not create, update or delete.
        """
        if action not in _GENERATION_ACTIONS:
            raise ValueError(f"Unknown generation action '{action}'")
        entry_id = _new_id()
        self._conn.execute(
            "INSERT INTO generated_files_log (id, message_id, file_id, action) VALUES (?, ?, ?, ?)",
            (entry_id, message_id, file_id, action),
        )
        self._conn.commit()
        return entry_id

    def list_generated_files(self, message_id: str) -> list[tuple[str, str]]:
        """Return [(file_id, action), ...] logged for *message_id*, in insertion order."""
        rows = self._conn.execute(
            "SELECT file_id, action FROM generated_files_log WHERE message_id = ? ORDER BY rowid",
            (message_id,),
        ).fetchall()
        return [(r["file_id"], r["action"]) for r in rows]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        settings=row["settings"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_accessed=row["last_accessed"],
        file_count=row["file_count"],
    )


def _row_to_file(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        id=row["id"],
        project_id=row["project_id"],
        path=row["path"],
        content=row["content"],
        language=row["language"],
        size=row["size"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_session(row: sqlite3.Row) -> ChatSession:
    return ChatSession(
        id=row["id"],
        project_id=row["project_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_message(row: sqlite3.Row) -> ChatMessage:
    return ChatMessage(
        id=row["id"],
        session_id=row["session_id"],
        role=row["role"],
        content=row["content"],
        metadata=row["metadata"],
        created_at=row["created_at"],
    )
