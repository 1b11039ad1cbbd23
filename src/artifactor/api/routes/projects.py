"""/api/projects routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from artifactor.api.deps import get_services
from artifactor.api.schemas import ProjectCreate, ProjectUpdate, project_out
from artifactor.workspace.services import Services

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
def list_projects(services: Services = Depends(get_services)):
    return {
        "success": True,
        "projects": [project_out(p) for p in services.projects.list_projects()],
    }


@router.get("/{project_id}")
def get_project(project_id: str, services: Services = Depends(get_services)):
    return {"success": True, "project": project_out(services.projects.get(project_id))}


@router.post("", status_code=201)
def create_project(body: ProjectCreate, services: Services = Depends(get_services)):
    project = services.projects.create(body.name, body.description, body.settings)
    return {"success": True, "project": project_out(project)}


@router.put("/{project_id}")
def update_project(
    project_id: str, body: ProjectUpdate, services: Services = Depends(get_services)
):
    project = services.projects.update(
        project_id, name=body.name, description=body.description, settings=body.settings
    )
    return {"success": True, "project": project_out(project)}


@router.delete("/{project_id}")
def delete_project(project_id: str, services: Services = Depends(get_services)):
    services.projects.delete(project_id)
    return {"success": True, "message": "Project deleted successfully"}
