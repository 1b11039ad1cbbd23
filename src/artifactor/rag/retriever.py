"""Context retriever: top-K similar project files plus a structure outline.

Retrieval is best-effort. Any vector-store failure (missing collection,
database error, embedding error) yields an empty context and a WARNING log;
the chat turn then proceeds without project context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from artifactor.db.vector_store import VectorStore
from artifactor.rag.indexer import collection_name
from artifactor.rag.structure import render_structure

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


@dataclass
class ContextFile:
    """A retrieved file snippet.

    Attributes:
        path: Project-relative file path.
        language: Language tag from the index metadata ('text' if unknown).
        content: Indexed document text.
        relevance_score: Cosine distance to the query (lower = more relevant).
    """

    path: str
    language: str
    content: str
    relevance_score: float


@dataclass
class RetrievedContext:
    files: list[ContextFile] = field(default_factory=list)
    structure: str = ""


class ContextRetriever:
    """Queries a project's collection for files relevant to a message."""

    def __init__(self, store: VectorStore) -> None:
        self._store = store

    def retrieve(
        self, project_id: str, query_text: str, top_k: int = DEFAULT_TOP_K
    ) -> RetrievedContext:
        """Return up to *top_k* files by ascending distance and the project outline.

        Args:
            project_id: Project whose collection is searched.
            query_text: Text to embed and match (usually the user's message).
            top_k: Maximum number of files; must be a positive integer.

        Returns:
            RetrievedContext; empty (no files, blank structure) on any store failure.

        Raises:
            ValueError: If *top_k* is not a positive integer.
        """
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
            raise ValueError(f"top_k must be a positive integer, got {top_k!r}")

        collection = collection_name(project_id)
        try:
            result = self._store.query(collection, query_text, top_k)
            structure = render_structure(
                m.get("path", "") for m in self._store.get(collection).metadatas
            )
        except Exception as exc:  # retrieval degrades to an empty context
            logger.warning("Context retrieval failed for project %s: %s", project_id, exc)
            return RetrievedContext()

        files: list[ContextFile] = []
        for document, metadata, distance in zip(
            result.documents, result.metadatas, result.distances
        ):
            path = metadata.get("path")
            if not path:
                continue
            files.append(
                ContextFile(
                    path=path,
                    language=metadata.get("language") or "text",
                    content=document,
                    relevance_score=float(distance),
                )
            )

        logger.debug("Found %d relevant files for project %s", len(files), project_id)
        return RetrievedContext(files=files, structure=structure)
