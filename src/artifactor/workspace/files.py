"""File operations that keep the relational store and the vector index in step.

The relational store is the source of truth. Every mutation here writes it
first, then updates the index through ContextIndexer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from artifactor.db.models import FileRecord
from artifactor.db.repository import Repository
from artifactor.rag.indexer import ContextIndexer, ReconcileReport
from artifactor.rag.retriever import ContextRetriever, RetrievedContext
from artifactor.rag.structure import build_file_tree
from artifactor.workspace.paths import normalize_path

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "text"


@dataclass
class FileInput:
    path: str
    content: str
    language: str | None = None


class FileService:
    def __init__(
        self, repo: Repository, indexer: ContextIndexer, retriever: ContextRetriever
    ) -> None:
        self._repo = repo
        self._indexer = indexer
        self._retriever = retriever

    def list_files(self, project_id: str) -> list[FileRecord]:
        """Return the project's files (no content), ordered by path."""
        self._repo.get_project(project_id)
        return self._repo.list_files(project_id)

    def tree(self, project_id: str) -> dict:
        return build_file_tree(self.list_files(project_id))

    def read(self, project_id: str, path: str) -> FileRecord:
        return self._repo.read_file(project_id, normalize_path(path))

    def save(
        self, project_id: str, path: str, content: str, language: str | None = None
    ) -> FileRecord:
        """Create or update one file and re-index it."""
        return self.save_batch(project_id, [FileInput(path, content, language)])[0]

    def save_batch(self, project_id: str, files: list[FileInput]) -> list[FileRecord]:
        """Create or update several files, then index them in one upsert.

        All paths are validated before anything is written.

        Raises:
            NotFoundError: If the project does not exist.
            ValueError: If any path is empty or escapes the project.
        """
        self._repo.get_project(project_id)
        normalized = [(normalize_path(f.path), f) for f in files]
        saved = [
            self._repo.save_file(project_id, path, f.content, f.language or DEFAULT_LANGUAGE)
            for path, f in normalized
        ]
        self._indexer.index(project_id, saved)
        logger.info("Saved %d file(s) in project %s", len(saved), project_id)
        return saved

    def delete(self, project_id: str, path: str) -> FileRecord:
        record = self._repo.delete_file(project_id, normalize_path(path))
        self._indexer.remove(project_id, [record.path])
        logger.info("Deleted %s from project %s", record.path, project_id)
        return record

    def rename(self, project_id: str, old_path: str, new_path: str) -> FileRecord:
        """Move a file, keeping store and index consistent.

        The relational rename is a single UPDATE. If re-indexing then fails,
        the rename is reverted and the error re-raised.

        Raises:
            NotFoundError: If *old_path* does not exist.
            sqlite3.IntegrityError: If *new_path* is already taken.
        """
        old = normalize_path(old_path)
        new = normalize_path(new_path)
        if old == new:
            return self._repo.read_file(project_id, old)

        record = self._repo.rename_file(project_id, old, new)
        try:
            self._indexer.rename(project_id, old, record)
        except Exception:
            logger.error("Index update failed while renaming %s -> %s; reverting", old, new)
            self._repo.rename_file(project_id, new, old)
            raise
        logger.info("Renamed %s -> %s in project %s", old, new, project_id)
        return record

    def search(self, project_id: str, query: str, limit: int = 5) -> RetrievedContext:
        if not query or not query.strip():
            raise ValueError("Search query is required")
        return self._retriever.retrieve(project_id, query, top_k=limit)

    def reconcile(self, project_id: str) -> ReconcileReport:
        """Bring the project's vector index back in line with its stored files."""
        self._repo.get_project(project_id)
        return self._indexer.reconcile(
            project_id, self._repo.list_files(project_id, include_content=True)
        )
