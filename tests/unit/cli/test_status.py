"""Tests for artifactor status and the version commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from artifactor.cli.main import app
from artifactor.db.connection import Database
from artifactor.db.repository import Repository
from artifactor.db.schema import initialize, initialize_vectors
from artifactor.db.vector_store import VectorStore
from artifactor.rag.indexer import ContextIndexer

runner = CliRunner()


def _seed(tmp_path: Path, embed, dims: int, *, indexed: bool) -> str:
    with Database(tmp_path / ".artifactor.db") as conn, Database(
        tmp_path / ".artifactor-vectors.db"
    ) as vconn:
        initialize(conn)
        initialize_vectors(vconn)
        repo = Repository(conn)
        project = repo.create_project("Webshop")
        records = [repo.save_file(project.id, p, "x") for p in ("a.js", "b.js")]
        if indexed:
            ContextIndexer(VectorStore(vconn, embed, dims)).index(project.id, records)
    return project.id


# ---------------------------------------------------------------------------
# artifactor --version / version
# ---------------------------------------------------------------------------


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "artifactor" in result.output.lower()


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("artifactor ")


# ---------------------------------------------------------------------------
# artifactor status
# ---------------------------------------------------------------------------


def test_status_without_db_exits_1(tmp_path: Path) -> None:
    result = runner.invoke(app, ["status", "--dir", str(tmp_path)])
    assert result.exit_code == 1
    assert "No database found" in result.output


def test_status_no_projects(tmp_path: Path) -> None:
    with Database(tmp_path / ".artifactor.db") as conn:
        initialize(conn)

    result = runner.invoke(app, ["status", "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "No projects yet." in result.output


def test_status_in_sync(tmp_path: Path, embed) -> None:
    _seed(tmp_path, embed, 17, indexed=True)

    result = runner.invoke(app, ["status", "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Webshop" in result.output
    assert "Index drift detected" not in result.output


def test_status_reports_drift(tmp_path: Path, embed) -> None:
    _seed(tmp_path, embed, 17, indexed=False)

    result = runner.invoke(app, ["status", "--dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Index drift detected" in result.output
    assert "artifactor reindex --all" in result.output
