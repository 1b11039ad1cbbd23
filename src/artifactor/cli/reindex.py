"""artifactor reindex: repair drift between stored files and the vector index."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from artifactor.cli.errors import (
    err_config,
    err_no_api_key,
    err_no_db,
    err_project_not_found,
    err_reindex_target,
)
from artifactor.config import ConfigError, load_config
from artifactor.db.repository import NotFoundError
from artifactor.rag.llm_client import make_embedder, validate_api_key
from artifactor.rag.orchestrator import LiteLLMOrchestrator
from artifactor.workspace.services import initialize_databases, open_services

console = Console()


def reindex_cmd(
    project_dir: Annotated[
        Path,
        typer.Option("--dir", help="Project directory (holds artifactor.yaml and the databases)."),
    ] = Path("."),
    project: Annotated[
        str | None,
        typer.Option("--project", "-p", help="Reindex one project by ID."),
    ] = None,
    all_projects: Annotated[
        bool,
        typer.Option("--all", help="Reindex every project."),
    ] = False,
) -> None:
    """Re-embed missing or stale files and drop index entries without a file."""
    if (project is None) == (not all_projects):
        console.print(err_reindex_target())
        raise typer.Exit(1)

    try:
        cfg = load_config(project_dir.resolve())
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    if not cfg.database_path.exists():
        console.print(err_no_db(str(cfg.database_path)))
        raise typer.Exit(1)

    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError:
        model = cfg.embedding.model
        console.print(err_no_api_key(model.split("/")[0] if "/" in model else "openai"))
        raise typer.Exit(1)

    initialize_databases(cfg)
    # Reconciliation never calls the model, so a plain litellm orchestrator suffices.
    with open_services(cfg, LiteLLMOrchestrator(), make_embedder(cfg.embedding.model)) as services:
        if project is not None:
            try:
                targets = [services.repo.get_project(project)]
            except NotFoundError:
                console.print(err_project_not_found(project))
                raise typer.Exit(1)
        else:
            targets = services.repo.list_projects()

        for target in targets:
            report = services.files.reconcile(target.id)
            console.print(
                f"  [green]✓[/] {target.name}: "
                f"+{len(report.added)} added, ~{len(report.updated)} updated, "
                f"-{len(report.removed)} removed"
            )

    console.print(f"\n[bold green]✓ Reindexed {len(targets)} project(s).[/]")
