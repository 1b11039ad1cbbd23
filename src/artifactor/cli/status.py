"""artifactor status: projects, file counts and index drift."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from artifactor.cli.errors import err_config, err_no_db
from artifactor.config import ConfigError, load_config
from artifactor.db.connection import Database
from artifactor.db.repository import Repository
from artifactor.db.schema import initialize, initialize_vectors
from artifactor.db.vector_store import VectorStore
from artifactor.rag.indexer import ContextIndexer
from artifactor.rag.llm_client import make_embedder

console = Console()


def status_cmd(
    project_dir: Annotated[
        Path,
        typer.Option("--dir", help="Project directory (holds artifactor.yaml and the databases)."),
    ] = Path("."),
) -> None:
    """Show projects with their stored files, indexed entries and drift."""
    try:
        cfg = load_config(project_dir.resolve())
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    if not cfg.database_path.exists():
        console.print(err_no_db(str(cfg.database_path)))
        raise typer.Exit(1)

    with Database(cfg.database_path) as conn, Database(cfg.vectors_path) as vconn:
        initialize(conn)
        initialize_vectors(vconn)
        repo = Repository(conn)
        # Status only reads stored entries; the embedder is never called.
        indexer = ContextIndexer(
            VectorStore(vconn, make_embedder(cfg.embedding.model), cfg.embedding.dimensions)
        )
        projects = repo.list_projects()

        table = Table(title="Artifactor projects")
        table.add_column("Project", style="bold")
        table.add_column("ID", style="dim")
        table.add_column("Files", justify="right")
        table.add_column("Indexed", justify="right")
        table.add_column("Drift", justify="right")

        total_drift = 0
        for project in projects:
            stored = {f.path for f in repo.list_files(project.id)}
            indexed = indexer.indexed_paths(project.id)
            drift = len(stored ^ indexed)
            total_drift += drift
            table.add_row(
                project.name,
                project.id,
                str(len(stored)),
                str(len(indexed)),
                f"[yellow]{drift}[/]" if drift else "[green]0[/]",
            )

    console.print(f"Database: {cfg.database_path}")
    console.print(f"Vectors:  {cfg.vectors_path}")
    if not projects:
        console.print("[dim]No projects yet.[/]")
        return
    console.print(table)
    if total_drift:
        console.print("[yellow]⚠[/] Index drift detected.  Run:  artifactor reindex --all")
