"""Artifactor CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from artifactor.cli.init import init_cmd
from artifactor.cli.reindex import reindex_cmd
from artifactor.cli.serve import serve_cmd
from artifactor.cli.status import status_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("artifactor")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"artifactor {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="artifactor",
    help=(
        "Artifactor: chat with an AI assistant that writes files into your project.\n\n"
        "  artifactor init     Create databases and artifactor.yaml.\n"
        "  artifactor serve    Run the HTTP API."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Artifactor: AI code generation over a project workspace."""


app.command("init")(init_cmd)
app.command("serve")(serve_cmd)
app.command("status")(status_cmd)
app.command("reindex")(reindex_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Artifactor version."""
    typer.echo(f"artifactor {_installed_version()}")


if __name__ == "__main__":
    app()
