"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from artifactor.api.deps import AppContext
from artifactor.api.errors import register_error_handlers
from artifactor.api.routes import chat, files, projects
from artifactor.config import ArtifactorConfig
from artifactor.db.vector_store import Embedder
from artifactor.rag.llm_client import make_embedder
from artifactor.rag.orchestrator import Orchestrator, build_orchestrator
from artifactor.workspace.services import initialize_databases

logger = logging.getLogger(__name__)


def create_app(
    config: ArtifactorConfig,
    orchestrator: Orchestrator | None = None,
    embedder: Embedder | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Loaded configuration (database paths, CORS origins, models).
        orchestrator: Model orchestrator; built from ``config.orchestrator`` if omitted.
            Its ``close()``, when it has one, runs at application shutdown.
        embedder: Embedding callable; litellm with ``config.embedding.model`` if omitted.
    """
    initialize_databases(config)
    orchestrator = orchestrator or build_orchestrator(config.orchestrator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        close = getattr(orchestrator, "close", None)
        if callable(close):
            close()
            logger.debug("Closed orchestrator client")

    app = FastAPI(
        title="Artifactor",
        description="AI code generation over a project workspace",
        lifespan=lifespan,
    )
    app.state.ctx = AppContext(
        config=config,
        orchestrator=orchestrator,
        embedder=embedder or make_embedder(config.embedding.model),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    app.include_router(projects.router, prefix="/api")
    app.include_router(files.router, prefix="/api")
    app.include_router(chat.router, prefix="/api")

    logger.info(
        "App ready (db=%s, vectors=%s, backend=%s)",
        config.database_path,
        config.vectors_path,
        config.orchestrator.backend,
    )
    return app
