"""Tests for the file service."""

from __future__ import annotations

import sqlite3

import pytest

from artifactor.db.repository import NotFoundError
from artifactor.rag.indexer import ContextIndexer
from artifactor.rag.retriever import ContextRetriever
from artifactor.workspace.files import FileInput, FileService


@pytest.fixture
def project(repo):
    return repo.create_project("demo")


@pytest.fixture
def service(repo, indexer, vector_store):
    return FileService(repo, indexer, ContextRetriever(vector_store))


def test_save_writes_store_and_index(service, repo, indexer, project):
    record = service.save(project.id, "/src/App.jsx", "export default App;", "javascript")

    assert record.path == "src/App.jsx"
    assert repo.read_file(project.id, "src/App.jsx").content == "export default App;"
    assert indexer.indexed_paths(project.id) == {"src/App.jsx"}


def test_save_empty_file_with_strict_embedder(repo, strict_vector_store, project):
    indexer = ContextIndexer(strict_vector_store)
    service = FileService(repo, indexer, ContextRetriever(strict_vector_store))

    record = service.save(project.id, "pkg/__init__.py", "", "python")

    assert record.size == 0
    assert repo.read_file(project.id, "pkg/__init__.py").content == ""
    assert indexer.indexed_paths(project.id) == {"pkg/__init__.py"}


def test_save_defaults_language(service, project):
    assert service.save(project.id, "notes.txt", "hi").language == "text"


def test_save_twice_keeps_one_record(service, repo, vector_store, project):
    service.save(project.id, "a.js", "v1")
    service.save(project.id, "a.js", "v2")

    assert len(repo.list_files(project.id)) == 1
    assert vector_store.get(f"project_{project.id}").documents == ["v2"]


def test_save_unknown_project(service):
    with pytest.raises(NotFoundError):
        service.save("nope", "a.js", "x")


def test_save_batch_validates_all_paths_first(service, repo, project):
    with pytest.raises(ValueError):
        service.save_batch(project.id, [FileInput("ok.js", "x"), FileInput("../evil.js", "y")])
    assert len(repo.list_files(project.id)) == 0


def test_save_batch(service, indexer, project):
    saved = service.save_batch(project.id, [
        FileInput("a.js", "a", "javascript"),
        FileInput("b/c.py", "c", "python"),
    ])
    assert [r.path for r in saved] == ["a.js", "b/c.py"]
    assert indexer.indexed_paths(project.id) == {"a.js", "b/c.py"}


def test_list_and_tree(service, project):
    service.save(project.id, "src/b.js", "b")
    service.save(project.id, "a.md", "a")

    assert [f.path for f in service.list_files(project.id)] == ["a.md", "src/b.js"]
    tree = service.tree(project.id)
    assert [c["name"] for c in tree["children"]] == ["src", "a.md"]


def test_list_unknown_project(service):
    with pytest.raises(NotFoundError):
        service.list_files("nope")


def test_read_normalizes_path(service, project):
    service.save(project.id, "src/a.js", "x")
    assert service.read(project.id, "./src//a.js").content == "x"


def test_delete_removes_from_index(service, indexer, project):
    service.save(project.id, "a.js", "x")
    deleted = service.delete(project.id, "a.js")

    assert deleted.path == "a.js"
    assert indexer.indexed_paths(project.id) == set()


def test_delete_missing(service, project):
    with pytest.raises(NotFoundError):
        service.delete(project.id, "missing.js")


def test_rename(service, repo, indexer, project):
    service.save(project.id, "old.js", "x")
    record = service.rename(project.id, "old.js", "lib/new.js")

    assert record.path == "lib/new.js"
    assert not repo.file_exists(project.id, "old.js")
    assert indexer.indexed_paths(project.id) == {"lib/new.js"}


def test_rename_to_same_path_is_noop(service, project):
    service.save(project.id, "a.js", "x")
    assert service.rename(project.id, "a.js", "/a.js").path == "a.js"


def test_rename_onto_existing_path(service, repo, indexer, project):
    service.save(project.id, "a.js", "a")
    service.save(project.id, "b.js", "b")

    with pytest.raises(sqlite3.IntegrityError):
        service.rename(project.id, "a.js", "b.js")

    assert repo.read_file(project.id, "a.js").content == "a"
    assert indexer.indexed_paths(project.id) == {"a.js", "b.js"}


def test_rename_reverted_when_index_fails(repo, vector_store, project):
    class FailingIndexer:
        def index(self, project_id, files):
            pass

        def rename(self, project_id, old_path, new_file):
            raise RuntimeError("index offline")

    service = FileService(repo, FailingIndexer(), ContextRetriever(vector_store))
    service.save(project.id, "old.js", "x")

    with pytest.raises(RuntimeError, match="index offline"):
        service.rename(project.id, "old.js", "new.js")

    assert repo.file_exists(project.id, "old.js")
    assert not repo.file_exists(project.id, "new.js")


def test_search(service, project):
    service.save(project.id, "src/Button.jsx", "button")
    service.save(project.id, "db/schema.sql", "create table users")

    context = service.search(project.id, "button", limit=1)
    assert [f.path for f in context.files] == ["src/Button.jsx"]
    assert "📁 db" in context.structure


def test_search_requires_query(service, project):
    with pytest.raises(ValueError, match="query"):
        service.search(project.id, "  ")


def test_reconcile_repairs_drift(service, repo, indexer, project):
    service.save(project.id, "a.js", "a")
    repo.save_file(project.id, "unindexed.js", "u")
    repo.delete_file(project.id, "a.js")

    report = service.reconcile(project.id)

    assert report.added == ["unindexed.js"]
    assert report.removed == ["a.js"]
    assert indexer.indexed_paths(project.id) == {"unindexed.js"}
