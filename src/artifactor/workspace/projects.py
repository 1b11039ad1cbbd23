"""Project lifecycle: relational record, orchestrator workspace, vector collection."""

from __future__ import annotations

import logging

from artifactor.db.models import Project
from artifactor.db.repository import Repository
from artifactor.rag.indexer import ContextIndexer
from artifactor.rag.orchestrator import Orchestrator

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, repo: Repository, indexer: ContextIndexer, orchestrator: Orchestrator) -> None:
        self._repo = repo
        self._indexer = indexer
        self._orchestrator = orchestrator

    def list_projects(self) -> list[Project]:
        return self._repo.list_projects()

    def get(self, project_id: str) -> Project:
        """Return a project (with file count) and mark it as accessed."""
        project = self._repo.get_project(project_id)
        self._repo.touch_project(project_id)
        return project

    def create(self, name: str, description: str = "", settings: dict | None = None) -> Project:
        """Create a project and its orchestrator workspace.

        If the workspace cannot be prepared the new project is deleted again
        and the orchestrator error propagates.

        Raises:
            ValueError: If *name* is blank.
        """
        if not name or not name.strip():
            raise ValueError("Project name is required")
        project = self._repo.create_project(name.strip(), description or "", settings)
        try:
            self._orchestrator.ensure_workspace(project.id, project.name)
        except Exception:
            self._repo.delete_project(project.id)
            raise
        logger.info("Created project %s (%s)", project.id, project.name)
        return project

    def update(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        settings: dict | None = None,
    ) -> Project:
        if name is None and description is None and settings is None:
            raise ValueError("No fields to update")
        if name is not None and not name.strip():
            raise ValueError("Project name must not be blank")
        return self._repo.update_project(
            project_id,
            name=name.strip() if name is not None else None,
            description=description,
            settings=settings,
        )

    def delete(self, project_id: str) -> None:
        """Drop the project's vector collection, then the project and everything it owns."""
        self._repo.get_project(project_id)
        self._indexer.drop_project(project_id)
        self._repo.delete_project(project_id)
        logger.info("Deleted project %s", project_id)
