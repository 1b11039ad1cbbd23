"""artifactor init: create the project databases and config.

Creates:
  .artifactor.db               relational file store (projects, files, chat)
  .artifactor-vectors.db       vector index
  artifactor.yaml              project config
  ~/.artifactor/config.yaml    global model config (created once, mode 0o600)
and adds both databases to .gitignore.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from artifactor.cli.errors import err_config
from artifactor.config import PROJECT_CONFIG_NAME, ConfigError, ensure_global_config, load_config
from artifactor.workspace.services import initialize_databases

console = Console()

_PROJECT_YAML = """\
# Artifactor project configuration.
# API keys are read from the environment, never from this file.

server:
  host: 127.0.0.1
  port: 4000

orchestrator:
  backend: litellm          # litellm | anythingllm
  model: anthropic/claude-sonnet-4-20250514
  # url: http://localhost:3001   # anythingllm backend only

embedding:
  model: openai/text-embedding-3-small
  dimensions: 1536

retrieval:
  top_k: 5
  top_k_all: 10

logging:
  level: INFO
  # file: logs/artifactor.log
"""


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Option("--dir", help="Directory to initialize. Defaults to current directory."),
    ] = Path("."),
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override global config path (for testing)."),
    ] = None,
) -> None:
    """Initialize an Artifactor project: databases, artifactor.yaml, global config."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    console.print(f"\n[bold]Initializing Artifactor in {project_dir} …[/]\n")

    cfg_file = project_dir / PROJECT_CONFIG_NAME
    if cfg_file.exists():
        console.print(f"  [yellow]⚠[/]  {PROJECT_CONFIG_NAME} already exists, kept as is.")
    else:
        cfg_file.write_text(_PROJECT_YAML, encoding="utf-8")
        console.print(f"  [green]✓[/] {PROJECT_CONFIG_NAME}")

    global_path = ensure_global_config(global_config)
    console.print(f"  [green]✓[/] {global_path} (global config)")

    try:
        cfg = load_config(project_dir, global_config_path=global_path)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    initialize_databases(cfg)
    console.print(f"  [green]✓[/] {cfg.database_path.name}")
    console.print(f"  [green]✓[/] {cfg.vectors_path.name}")

    _update_gitignore(project_dir, [cfg.database.path, cfg.vectors.path])

    console.print("\n[bold green]✓ Project initialized.[/]")
    console.print("\nNext steps:")
    console.print("  1. export ANTHROPIC_API_KEY=...  and  OPENAI_API_KEY=...")
    console.print("  2. artifactor serve")


def _update_gitignore(project_dir: Path, entries: list[str]) -> None:
    gitignore = project_dir / ".gitignore"
    existing = gitignore.read_text(encoding="utf-8").splitlines() if gitignore.exists() else []
    wanted = [e for e in entries if not Path(e).is_absolute()]
    wanted += [f"{e}-wal" for e in wanted] + [f"{e}-shm" for e in wanted]
    missing = [e for e in wanted if e not in existing]
    if not missing:
        return
    lines = existing + ([""] if existing and existing[-1] else []) + ["# Artifactor"] + missing
    gitignore.write_text("\n".join(lines) + "\n", encoding="utf-8")
    console.print("  [green]✓[/] .gitignore")
