"""Shared pytest fixtures."""

from __future__ import annotations

import logging
import re
import zlib

import pytest

from artifactor.config import ArtifactorConfig
from artifactor.db.connection import Database
from artifactor.db.repository import Repository
from artifactor.db.schema import initialize, initialize_vectors
from artifactor.db.vector_store import VectorStore
from artifactor.log import ROOT_LOGGER
from artifactor.rag.indexer import ContextIndexer

FAKE_DIMS = 17


def fake_embed(texts: list[str]) -> list[list[float]]:
    """Deterministic bag-of-words embedding; the last slot is a constant bias."""
    vectors = []
    for text in texts:
        vec = [0.0] * FAKE_DIMS
        vec[-1] = 1.0
        for word in re.findall(r"\w+", text.lower()):
            vec[zlib.crc32(word.encode("utf-8")) % (FAKE_DIMS - 1)] += 1.0
        vectors.append(vec)
    return vectors


def strict_embed(texts: list[str]) -> list[list[float]]:
    """Like fake_embed, but rejects blank input the way hosted embedding APIs do."""
    if any(not t.strip() for t in texts):
        raise ValueError("input must not be an empty string")
    return fake_embed(texts)


class FakeOrchestrator:
    """Records chat calls and answers with a canned reply."""

    def __init__(self, reply: str = "Done.") -> None:
        self.reply = reply
        self.calls: list[dict] = []
        self.workspaces: list[tuple[str, str]] = []

    def chat(self, workspace_id: str, prompt_text: str, mode: str, model: str) -> str:
        self.calls.append(
            {"workspace_id": workspace_id, "prompt": prompt_text, "mode": mode, "model": model}
        )
        return self.reply

    def ensure_workspace(self, workspace_id: str, name: str) -> None:
        self.workspaces.append((workspace_id, name))


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo configure_logging() so caplog sees artifactor records in every test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(autouse=True)
def _isolated_global_config(tmp_path, monkeypatch):
    """Keep load_config() away from the real ~/.artifactor/config.yaml."""
    monkeypatch.setattr("artifactor.config._GLOBAL_CONFIG_PATH", tmp_path / "home" / "config.yaml")


@pytest.fixture
def tmp_db(tmp_path):
    """File-based relational DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".artifactor.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def vec_db(tmp_path):
    """File-based vector DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".artifactor-vectors.db")
    conn = db.connect()
    initialize_vectors(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def vector_store(vec_db):
    return VectorStore(vec_db, fake_embed, FAKE_DIMS)


@pytest.fixture
def indexer(vector_store):
    return ContextIndexer(vector_store)


@pytest.fixture
def strict_vector_store(vec_db):
    """Vector store whose embedder refuses blank text."""
    return VectorStore(vec_db, strict_embed, FAKE_DIMS)


@pytest.fixture
def fake_orchestrator():
    return FakeOrchestrator()


@pytest.fixture
def config(tmp_path):
    """Config rooted at tmp_path, sized for the fake embedder."""
    cfg = ArtifactorConfig(project_dir=tmp_path)
    cfg.embedding.dimensions = FAKE_DIMS
    return cfg


@pytest.fixture
def embed():
    """The deterministic fake embedder."""
    return fake_embed


@pytest.fixture
def orchestrator_factory():
    """Build a FakeOrchestrator with a custom reply."""
    return FakeOrchestrator


@pytest.fixture
def client_factory(config):
    """Build a TestClient over a fresh app; returns (client, orchestrator)."""
    from fastapi.testclient import TestClient

    from artifactor.api.app import create_app

    def _make(reply: str = "Done.", orchestrator=None):
        orchestrator = orchestrator or FakeOrchestrator(reply)
        app = create_app(config, orchestrator=orchestrator, embedder=fake_embed)
        return TestClient(app), orchestrator

    return _make
