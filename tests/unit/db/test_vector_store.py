"""Tests for the collection-oriented VectorStore."""

from __future__ import annotations

import pytest

from artifactor.db.vector_store import CollectionNotFoundError, QueryResult, VectorStore

FAKE_DIMS = 17


@pytest.fixture
def store(vector_store):
    vector_store.get_or_create_collection("project_p1")
    return vector_store


def _seed(store, docs: dict[str, str]) -> None:
    store.upsert(
        "project_p1",
        documents=list(docs.values()),
        metadatas=[{"path": doc_id} for doc_id in docs],
        ids=list(docs),
    )


# ------------------------------------------------------------------
# Collections
# ------------------------------------------------------------------

def test_get_or_create_collection_idempotent(vector_store, vec_db):
    vector_store.get_or_create_collection("project_a")
    vector_store.get_or_create_collection("project_a")
    assert vector_store.has_collection("project_a")
    assert vec_db.execute("SELECT COUNT(*) FROM collections").fetchone()[0] == 1


def test_collection_metadata_records_cosine(vector_store, vec_db):
    vector_store.get_or_create_collection("project_a", {"owner": "me"})
    row = vec_db.execute("SELECT metadata, dimensions FROM collections").fetchone()
    assert '"distance": "cosine"' in row["metadata"]
    assert '"owner": "me"' in row["metadata"]
    assert row["dimensions"] == FAKE_DIMS


def test_delete_collection(store):
    _seed(store, {"a": "alpha"})
    store.delete_collection("project_p1")
    assert not store.has_collection("project_p1")


def test_delete_missing_collection_raises(vector_store):
    with pytest.raises(CollectionNotFoundError):
        vector_store.delete_collection("project_missing")


@pytest.mark.parametrize("call", [
    lambda s: s.count("nope"),
    lambda s: s.get("nope"),
    lambda s: s.query("nope", "text", 3),
    lambda s: s.delete("nope", ["a"]),
    lambda s: s.upsert("nope", ["d"], [{}], ["a"]),
])
def test_missing_collection_raises(vector_store, call):
    with pytest.raises(CollectionNotFoundError):
        call(vector_store)


# ------------------------------------------------------------------
# Upsert
# ------------------------------------------------------------------

def test_upsert_is_idempotent(store):
    _seed(store, {"a": "alpha"})
    _seed(store, {"a": "alpha"})
    assert store.count("project_p1") == 1


def test_upsert_replaces_document_and_metadata(store):
    _seed(store, {"a": "alpha"})
    store.upsert("project_p1", ["beta"], [{"path": "a", "language": "js"}], ["a"])

    result = store.get("project_p1")
    assert result.documents == ["beta"]
    assert result.metadatas == [{"path": "a", "language": "js"}]


def test_upsert_replaces_embedding(store):
    _seed(store, {"a": "alpha"})
    store.upsert("project_p1", ["gamma"], [{"path": "a"}], ["a"])
    hit = store.query("project_p1", "gamma", 1)
    assert hit.distances[0] == pytest.approx(0.0, abs=1e-5)


def test_upsert_length_mismatch(store):
    with pytest.raises(ValueError, match="same length"):
        store.upsert("project_p1", ["a", "b"], [{}], ["a", "b"])


def test_upsert_embeds_embed_texts_but_stores_documents(vec_db):
    seen = []

    def recording_embed(texts):
        seen.extend(texts)
        return [[1.0] + [0.0] * (FAKE_DIMS - 1) for _ in texts]

    store = VectorStore(vec_db, recording_embed, FAKE_DIMS)
    store.get_or_create_collection("project_p1")
    store.upsert(
        "project_p1",
        [""],
        [{"path": "pkg/__init__.py"}],
        ["a"],
        embed_texts=["pkg/__init__.py"],
    )

    assert seen == ["pkg/__init__.py"]
    assert store.get("project_p1").documents == [""]


def test_upsert_embed_texts_length_mismatch(store):
    with pytest.raises(ValueError, match="embed_texts"):
        store.upsert("project_p1", ["a"], [{}], ["a"], embed_texts=[])


def test_upsert_empty_is_noop(store):
    store.upsert("project_p1", [], [], [])
    assert store.count("project_p1") == 0


def test_upsert_embedder_count_mismatch(vec_db):
    store = VectorStore(vec_db, lambda texts: [], FAKE_DIMS)
    store.get_or_create_collection("project_p1")
    with pytest.raises(ValueError, match="Embedder returned"):
        store.upsert("project_p1", ["a"], [{}], ["a"])


# ------------------------------------------------------------------
# Query
# ------------------------------------------------------------------

def test_query_orders_by_ascending_distance(store):
    _seed(store, {
        "button": "button",
        "schema": "database migration schema",
        "style": "stylesheet colors fonts",
    })
    result = store.query("project_p1", "button", 3)

    assert result.ids[0] == "button"
    assert result.distances == sorted(result.distances)
    assert len(result) == 3


def test_query_limits_to_k(store):
    _seed(store, {f"d{i}": f"document number {i}" for i in range(6)})
    assert len(store.query("project_p1", "document", 2)) == 2


def test_query_empty_collection(store):
    assert store.query("project_p1", "anything", 5) == QueryResult()


def test_query_rejects_non_positive_k(store):
    with pytest.raises(ValueError):
        store.query("project_p1", "x", 0)


# ------------------------------------------------------------------
# Get / delete
# ------------------------------------------------------------------

def test_get_all_in_insertion_order(store):
    _seed(store, {"b": "bee", "a": "ay"})
    result = store.get("project_p1")
    assert result.ids == ["b", "a"]
    assert result.distances == []


def test_get_by_ids(store):
    _seed(store, {"a": "ay", "b": "bee", "c": "see"})
    assert store.get("project_p1", ids=["c", "a"]).ids == ["a", "c"]
    assert len(store.get("project_p1", ids=[])) == 0


def test_delete_returns_removed_count(store):
    _seed(store, {"a": "ay", "b": "bee"})
    assert store.delete("project_p1", ["a", "unknown"]) == 1
    assert store.get("project_p1").ids == ["b"]
    assert len(store.query("project_p1", "ay", 5)) == 1


def test_delete_empty_ids(store):
    assert store.delete("project_p1", []) == 0


def test_collections_are_isolated(vector_store):
    vector_store.get_or_create_collection("project_a")
    vector_store.get_or_create_collection("project_b")
    vector_store.upsert("project_a", ["shared text"], [{"path": "x"}], ["x"])

    assert vector_store.count("project_a") == 1
    assert vector_store.count("project_b") == 0
    assert len(vector_store.query("project_b", "shared text", 5)) == 0


def test_fake_embedder_dimensions(embed):
    assert all(len(v) == FAKE_DIMS for v in embed(["a b", ""]))
