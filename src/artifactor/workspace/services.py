"""Wiring: open both databases and build the service set on top of them."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from artifactor.config import ArtifactorConfig
from artifactor.db.connection import Database
from artifactor.db.repository import Repository
from artifactor.db.schema import initialize, initialize_vectors
from artifactor.db.vector_store import Embedder, VectorStore
from artifactor.rag.indexer import ContextIndexer
from artifactor.rag.orchestrator import Orchestrator
from artifactor.rag.retriever import ContextRetriever
from artifactor.workspace.chat import ChatService
from artifactor.workspace.files import FileService
from artifactor.workspace.projects import ProjectService


@dataclass
class Services:
    repo: Repository
    store: VectorStore
    indexer: ContextIndexer
    projects: ProjectService
    files: FileService
    chat: ChatService


def initialize_databases(config: ArtifactorConfig) -> None:
    """Create or migrate the relational and vector databases."""
    with Database(config.database_path) as conn:
        initialize(conn)
    with Database(config.vectors_path) as conn:
        initialize_vectors(conn)


@contextmanager
def open_services(
    config: ArtifactorConfig,
    orchestrator: Orchestrator,
    embedder: Embedder,
    *,
    check_same_thread: bool = True,
) -> Iterator[Services]:
    """Open connections to both databases and yield services bound to them.

    Connections are closed on exit. Schemas must already be initialised
    (see initialize_databases).
    """
    conn = Database(config.database_path, check_same_thread=check_same_thread).connect()
    try:
        vconn = Database(config.vectors_path, check_same_thread=check_same_thread).connect()
    except Exception:
        conn.close()
        raise
    try:
        repo = Repository(conn)
        store = VectorStore(vconn, embedder, config.embedding.dimensions)
        indexer = ContextIndexer(store)
        retriever = ContextRetriever(store)
        yield Services(
            repo=repo,
            store=store,
            indexer=indexer,
            projects=ProjectService(repo, indexer, orchestrator),
            files=FileService(repo, indexer, retriever),
            chat=ChatService(
                repo,
                retriever,
                indexer,
                orchestrator,
                model=config.orchestrator.model,
                top_k=config.retrieval.top_k,
                top_k_all=config.retrieval.top_k_all,
            ),
        )
    finally:
        vconn.close()
        conn.close()
