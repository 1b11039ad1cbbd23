"""Tests for the context retriever."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from artifactor.rag.retriever import ContextRetriever, RetrievedContext


def _files(*specs):
    return [SimpleNamespace(path=p, language=lang, content=c) for p, lang, c in specs]


@pytest.fixture
def retriever(vector_store):
    return ContextRetriever(vector_store)


def test_retrieve_orders_by_relevance(indexer, retriever):
    indexer.index("p1", _files(
        ("src/Button.jsx", "javascript", "button"),
        ("db/schema.sql", "sql", "create table users"),
        ("README.md", "markdown", "project readme notes"),
    ))
    context = retriever.retrieve("p1", "button", top_k=3)

    assert context.files[0].path == "src/Button.jsx"
    assert context.files[0].language == "javascript"
    assert context.files[0].content == "button"
    scores = [f.relevance_score for f in context.files]
    assert scores == sorted(scores)


def test_retrieve_respects_top_k(indexer, retriever):
    indexer.index("p1", _files(*[(f"f{i}.py", "python", f"text {i}") for i in range(6)]))
    assert len(retriever.retrieve("p1", "text", top_k=2).files) == 2


def test_retrieve_includes_structure_of_all_indexed_files(indexer, retriever):
    indexer.index("p1", _files(
        ("a/b.js", "javascript", "b"),
        ("a/c.js", "javascript", "c"),
        ("d.js", "javascript", "d"),
    ))
    context = retriever.retrieve("p1", "b", top_k=1)

    assert len(context.files) == 1
    assert context.structure == "📁 a\n  📄 b.js\n  📄 c.js\n📄 d.js"


def test_retrieve_unknown_project_is_empty(retriever):
    context = retriever.retrieve("nobody", "anything")
    assert context == RetrievedContext()


def test_retrieve_is_scoped_to_project(indexer, retriever):
    indexer.index("p1", _files(("secret.py", "python", "button")))
    indexer.index("p2", _files(("other.py", "python", "unrelated")))

    paths = [f.path for f in retriever.retrieve("p2", "button").files]
    assert paths == ["other.py"]


@pytest.mark.parametrize("top_k", [0, -1, 1.5, True, "3"])
def test_retrieve_rejects_bad_top_k(retriever, top_k):
    with pytest.raises(ValueError, match="top_k"):
        retriever.retrieve("p1", "x", top_k=top_k)


def test_retrieve_degrades_on_store_failure(caplog):
    class BrokenStore:
        def query(self, *args, **kwargs):
            raise RuntimeError("embedding service down")

        def get(self, *args, **kwargs):
            raise RuntimeError("unreachable")

    with caplog.at_level("WARNING", logger="artifactor.rag.retriever"):
        context = ContextRetriever(BrokenStore()).retrieve("p1", "hello")

    assert context.files == [] and context.structure == ""
    assert "embedding service down" in caplog.text
