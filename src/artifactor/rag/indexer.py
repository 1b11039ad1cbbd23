"""Context indexer: keeps a project's vector collection in step with its files.

This module is the only writer of the vector index. One entry per
(project_id, path); entry IDs are ``"<project_id>::<path>"`` and the project's
collection is ``project_<project_id>``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from artifactor.db.vector_store import CollectionNotFoundError, VectorStore

logger = logging.getLogger(__name__)

_ID_SEPARATOR = "::"


class IndexableFile(Protocol):
    path: str
    language: str
    content: str | None


@dataclass
class ReconcileReport:
    """Paths changed by a reconcile pass."""

    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return len(self.added) + len(self.updated) + len(self.removed)


def collection_name(project_id: str) -> str:
    return f"project_{project_id}"


def entry_id(project_id: str, path: str) -> str:
    """Return the index entry ID for a project-relative *path*."""
    return f"{project_id}{_ID_SEPARATOR}{path}"


def _embedding_text(f: IndexableFile) -> str:
    """Text sent to the embedder; blank files embed as their path."""
    content = f.content or ""
    return content if content.strip() else f.path


def _metadata(f: IndexableFile) -> dict:
    return {
        "path": f.path,
        "language": f.language or "text",
        "last_modified": int(time.time() * 1000),
    }


class ContextIndexer:
    """Writes project files into, and removes them from, the vector index."""

    def __init__(self, store: VectorStore) -> None:
        self._store = store

    def index(self, project_id: str, files: Sequence[IndexableFile]) -> None:
        """Upsert one entry per file. An empty list is a no-op.

        Raises:
            Any vector-store error; indexing failures are not absorbed.
        """
        if not files:
            return
        collection = self._store.get_or_create_collection(collection_name(project_id))
        self._store.upsert(
            collection,
            documents=[f.content or "" for f in files],
            metadatas=[_metadata(f) for f in files],
            ids=[entry_id(project_id, f.path) for f in files],
            embed_texts=[_embedding_text(f) for f in files],
        )
        logger.info("Indexed %d file(s) for project %s", len(files), project_id)

    def remove(self, project_id: str, paths: Iterable[str]) -> None:
        """Delete the entries for *paths*. Unknown paths and a missing collection are no-ops."""
        ids = [entry_id(project_id, p) for p in paths]
        if not ids:
            return
        try:
            removed = self._store.delete(collection_name(project_id), ids)
        except CollectionNotFoundError:
            return
        logger.info("Removed %d index entr(ies) for project %s", removed, project_id)

    def drop_project(self, project_id: str) -> None:
        """Delete the project's whole collection. Never raises."""
        try:
            self._store.delete_collection(collection_name(project_id))
        except CollectionNotFoundError:
            logger.debug("No vector collection for project %s", project_id)
            return
        except Exception as exc:  # project deletion must not fail on index cleanup
            logger.error("Could not drop vector collection for project %s: %s", project_id, exc)
            return
        logger.info("Dropped vector collection for project %s", project_id)

    def rename(self, project_id: str, old_path: str, new_file: IndexableFile) -> None:
        """Move an entry from *old_path* to ``new_file.path``.

        The new entry is written first. If removing the old entry then fails,
        the new entry is removed again and the error re-raised, so the index
        never ends up holding the file under both paths.
        """
        self.index(project_id, [new_file])
        try:
            self.remove(project_id, [old_path])
        except Exception:
            logger.error(
                "Rename %s -> %s failed in index for project %s; rolling back",
                old_path,
                new_file.path,
                project_id,
            )
            self.remove(project_id, [new_file.path])
            raise

    def indexed_paths(self, project_id: str) -> set[str]:
        """Return the paths currently indexed for a project (empty if no collection)."""
        try:
            result = self._store.get(collection_name(project_id))
        except CollectionNotFoundError:
            return set()
        return {m["path"] for m in result.metadatas if m.get("path")}

    def reconcile(self, project_id: str, files: Sequence[IndexableFile]) -> ReconcileReport:
        """Repair drift between the file store and the index.

        Files missing from the index, or indexed with different content or
        language, are upserted; index entries with no matching file are removed.

        Args:
            project_id: Project to repair.
            files: Every file of the project, content included.
        """
        report = ReconcileReport()
        try:
            current = self._store.get(collection_name(project_id))
            indexed = {
                m.get("path"): (doc, m.get("language"))
                for doc, m in zip(current.documents, current.metadatas)
            }
        except CollectionNotFoundError:
            indexed = {}

        stale: list[IndexableFile] = []
        for f in files:
            known = indexed.get(f.path)
            if known is None:
                report.added.append(f.path)
                stale.append(f)
            elif known != (f.content or "", f.language or "text"):
                report.updated.append(f.path)
                stale.append(f)

        wanted = {f.path for f in files}
        report.removed = sorted(p for p in indexed if p and p not in wanted)

        self.index(project_id, stale)
        self.remove(project_id, report.removed)
        logger.info(
            "Reconciled project %s: %d added, %d updated, %d removed",
            project_id,
            len(report.added),
            len(report.updated),
            len(report.removed),
        )
        return report
