"""artifactor serve: run the HTTP API with uvicorn."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
import uvicorn
from rich.console import Console

from artifactor.api.app import create_app
from artifactor.cli.errors import err_config, err_no_api_key, warn_no_anythingllm_key
from artifactor.config import ConfigError, load_config
from artifactor.log import configure_logging
from artifactor.rag.llm_client import validate_api_key

console = Console()


def serve_cmd(
    project_dir: Annotated[
        Path,
        typer.Option("--dir", help="Project directory (holds artifactor.yaml and the databases)."),
    ] = Path("."),
    host: Annotated[
        str | None,
        typer.Option("--host", help="Bind address. Overrides server.host."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", help="Bind port. Overrides server.port."),
    ] = None,
) -> None:
    """Start the Artifactor API server."""
    project_dir = project_dir.resolve()
    try:
        cfg = load_config(project_dir)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    if host is not None:
        cfg.server.host = host
    if port is not None:
        cfg.server.port = port

    models = [cfg.embedding.model]
    if cfg.orchestrator.backend == "litellm":
        models.append(cfg.orchestrator.model)
    elif not os.environ.get("ANYTHINGLLM_API_KEY"):
        console.print(warn_no_anythingllm_key())

    for model in models:
        try:
            validate_api_key(model)
        except EnvironmentError:
            provider = model.split("/")[0] if "/" in model else "openai"
            console.print(err_no_api_key(provider))
            raise typer.Exit(1)

    log_file = project_dir / cfg.logging.file if cfg.logging.file else None
    configure_logging(cfg.logging.level, log_file)

    console.print(
        f"[bold]Artifactor[/] serving on http://{cfg.server.host}:{cfg.server.port}  "
        f"[dim](backend: {cfg.orchestrator.backend}, model: {cfg.orchestrator.model})[/]"
    )
    uvicorn.run(
        create_app(cfg),
        host=cfg.server.host,
        port=cfg.server.port,
        log_level=cfg.logging.level.lower(),
    )
