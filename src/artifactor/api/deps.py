"""Per-request dependencies."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from fastapi import Request

from artifactor.config import ArtifactorConfig
from artifactor.db.vector_store import Embedder
from artifactor.rag.orchestrator import Orchestrator
from artifactor.workspace.services import Services, open_services


@dataclass(frozen=True)
class AppContext:
    """Immutable state shared by all requests of one application."""

    config: ArtifactorConfig
    orchestrator: Orchestrator
    embedder: Embedder


def get_services(request: Request) -> Iterator[Services]:
    """Yield services on fresh connections; they are closed once the response is done.

    Sync dependencies run in the threadpool and teardown may land on another
    worker thread, so connections are opened with check_same_thread=False.
    """
    ctx: AppContext = request.app.state.ctx
    with open_services(
        ctx.config, ctx.orchestrator, ctx.embedder, check_same_thread=False
    ) as services:
        yield services
