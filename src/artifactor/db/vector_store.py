"""Collection-oriented vector store on top of sqlite-vec.

Each collection owns one vec0 table (cosine distance). Document text and
metadata live in the ``documents`` table; its integer rowid is the key of the
matching vec0 row. Documents are embedded through an injected callable so the
store never talks to a model provider itself.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from artifactor.db.vectors import drop_vec_table, ensure_vec_table, vec_table_name

logger = logging.getLogger(__name__)

Embedder = Callable[[list[str]], list[list[float]]]


class CollectionNotFoundError(LookupError):
    """Raised when an operation targets a collection that does not exist."""


@dataclass
class QueryResult:
    """Parallel lists describing matched documents.

    ``distances`` is empty for plain get() calls.
    """

    ids: list[str] = field(default_factory=list)
    documents: list[str] = field(default_factory=list)
    metadatas: list[dict] = field(default_factory=list)
    distances: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ids)


class VectorStore:
    """Vector index operations over an open vector-store connection.

    The connection is owned by the caller and must have the vector schema
    initialised (see artifactor.db.schema.initialize_vectors).
    """

    def __init__(self, conn: sqlite3.Connection, embedder: Embedder, dimensions: int) -> None:
        """Initialise the store.

        Args:
            conn: Open connection with sqlite-vec loaded.
            embedder: Callable turning a list of texts into a list of vectors.
            dimensions: Vector size used for newly created collections.
        """
        self._conn = conn
        self._embedder = embedder
        self._dimensions = dimensions

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def get_or_create_collection(self, name: str, metadata: dict | None = None) -> str:
        """Return *name*, creating the collection and its vec table if needed."""
        if self.has_collection(name):
            return name
        table = ensure_vec_table(self._conn, vec_table_name(name), self._dimensions)
        self._conn.execute(
            "INSERT INTO collections (name, vec_table, dimensions, metadata) VALUES (?, ?, ?, ?)",
            (name, table, self._dimensions, json.dumps({"distance": "cosine", **(metadata or {})})),
        )
        self._conn.commit()
        logger.debug("Created vector collection %s (%s)", name, table)
        return name

    def has_collection(self, name: str) -> bool:
        return (
            self._conn.execute("SELECT 1 FROM collections WHERE name = ?", (name,)).fetchone()
            is not None
        )

    def delete_collection(self, name: str) -> None:
        """Drop a collection, its documents and its vec table.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
        """
        table = self._vec_table(name)
        self._conn.execute("DELETE FROM documents WHERE collection = ?", (name,))
        self._conn.execute("DELETE FROM collections WHERE name = ?", (name,))
        self._conn.commit()
        drop_vec_table(self._conn, table)

    def count(self, collection: str) -> int:
        self._vec_table(collection)
        return self._conn.execute(
            "SELECT COUNT(*) FROM documents WHERE collection = ?", (collection,)
        ).fetchone()[0]

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def upsert(
        self,
        collection: str,
        documents: Sequence[str],
        metadatas: Sequence[dict],
        ids: Sequence[str],
        embed_texts: Sequence[str] | None = None,
    ) -> None:
        """Insert or replace documents by ID.

        Upserting an existing ID replaces its text, metadata and embedding, so
        repeating the same upsert leaves exactly one entry per ID. When
        *embed_texts* is given it is embedded in place of *documents*; the
        stored document text is unchanged.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
            ValueError: If the sequences differ in length.
        """
        if not (len(documents) == len(metadatas) == len(ids)):
            raise ValueError("documents, metadatas and ids must have the same length")
        if embed_texts is not None and len(embed_texts) != len(ids):
            raise ValueError("embed_texts must match documents in length")
        table = self._vec_table(collection)
        if not ids:
            return

        embeddings = self._embedder(list(documents if embed_texts is None else embed_texts))
        if len(embeddings) != len(ids):
            raise ValueError(
                f"Embedder returned {len(embeddings)} vectors for {len(ids)} documents"
            )

        try:
            for doc_id, document, metadata, embedding in zip(ids, documents, metadatas, embeddings):
                row = self._conn.execute(
                    "SELECT rowid FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, doc_id),
                ).fetchone()
                if row is None:
                    cur = self._conn.execute(
                        "INSERT INTO documents (collection, doc_id, document, metadata) VALUES (?, ?, ?, ?)",
                        (collection, doc_id, document, json.dumps(metadata)),
                    )
                    rowid = cur.lastrowid
                else:
                    rowid = row["rowid"]
                    self._conn.execute(
                        """
                        UPDATE documents SET document = ?, metadata = ?, updated_at = datetime('now')
                        WHERE rowid = ?
                        """,
                        (document, json.dumps(metadata), rowid),
                    )
                    # vec0 rows are replaced rather than updated in place
                    self._conn.execute(f"DELETE FROM {table} WHERE rowid = ?", (rowid,))
                self._conn.execute(
                    f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
                    (rowid, json.dumps(embedding)),
                )
        except sqlite3.Error:
            self._conn.rollback()
            raise
        self._conn.commit()

    def query(self, collection: str, query_text: str, k: int) -> QueryResult:
        """Nearest-neighbour search. Returns at most *k* matches by ascending distance.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
            ValueError: If *k* < 1.
        """
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        table = self._vec_table(collection)
        if self.count(collection) == 0:
            return QueryResult()

        embedding = self._embedder([query_text])[0]
        vec_rows = self._conn.execute(
            f"SELECT rowid, distance FROM {table} WHERE embedding MATCH ? ORDER BY distance LIMIT ?",
            (json.dumps(embedding), k),
        ).fetchall()

        result = QueryResult()
        for vec_row in vec_rows:
            doc = self._conn.execute(
                "SELECT doc_id, document, metadata FROM documents WHERE rowid = ?",
                (vec_row["rowid"],),
            ).fetchone()
            if doc is None:
                continue
            result.ids.append(doc["doc_id"])
            result.documents.append(doc["document"])
            result.metadatas.append(json.loads(doc["metadata"]))
            result.distances.append(vec_row["distance"])
        return result

    def get(self, collection: str, ids: Sequence[str] | None = None) -> QueryResult:
        """Return stored documents, all of them or only *ids*, in insertion order.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
        """
        self._vec_table(collection)
        sql = "SELECT doc_id, document, metadata FROM documents WHERE collection = ?"
        params: list[object] = [collection]
        if ids is not None:
            if not ids:
                return QueryResult()
            sql += f" AND doc_id IN ({','.join('?' * len(ids))})"
            params.extend(ids)
        rows = self._conn.execute(sql + " ORDER BY rowid", params).fetchall()

        result = QueryResult()
        for row in rows:
            result.ids.append(row["doc_id"])
            result.documents.append(row["document"])
            result.metadatas.append(json.loads(row["metadata"]))
        return result

    def delete(self, collection: str, ids: Sequence[str]) -> int:
        """Delete documents by ID. Unknown IDs are ignored.

        Returns:
            Number of documents removed.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
        """
        table = self._vec_table(collection)
        if not ids:
            return 0
        placeholders = ",".join("?" * len(ids))
        rowids = [
            r["rowid"]
            for r in self._conn.execute(
                f"SELECT rowid FROM documents WHERE collection = ? AND doc_id IN ({placeholders})",
                (collection, *ids),
            ).fetchall()
        ]
        if not rowids:
            return 0
        row_placeholders = ",".join("?" * len(rowids))
        try:
            self._conn.execute(f"DELETE FROM {table} WHERE rowid IN ({row_placeholders})", rowids)
            self._conn.execute(
                f"DELETE FROM documents WHERE rowid IN ({row_placeholders})", rowids
            )
        except sqlite3.Error:
            self._conn.rollback()
            raise
        self._conn.commit()
        return len(rowids)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _vec_table(self, collection: str) -> str:
        row = self._conn.execute(
            "SELECT vec_table FROM collections WHERE name = ?", (collection,)
        ).fetchone()
        if row is None:
            raise CollectionNotFoundError(f"Collection '{collection}' does not exist")
        return row["vec_table"]
