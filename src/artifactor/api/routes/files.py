"""/api/files routes."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from artifactor.api.deps import get_services
from artifactor.api.schemas import (
    FileBatch,
    FileRename,
    FileSearch,
    FileUpdate,
    Reindex,
    context_file_out,
    file_out,
)
from artifactor.workspace.files import FileInput
from artifactor.workspace.services import Services

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/update")
def update_file(body: FileUpdate, services: Services = Depends(get_services)):
    record = services.files.save(body.project_id, body.path, body.content, body.language)
    return {"success": True, "file": file_out(record)}


@router.post("/batch")
def batch_update(body: FileBatch, services: Services = Depends(get_services)):
    saved = services.files.save_batch(
        body.project_id,
        [FileInput(f.path, f.content, f.language) for f in body.files],
    )
    return {"success": True, "files": [file_out(r) for r in saved], "count": len(saved)}


@router.post("/search")
def search_files(body: FileSearch, services: Services = Depends(get_services)):
    context = services.files.search(body.project_id, body.query, body.limit)
    return {
        "success": True,
        "results": [context_file_out(f) for f in context.files],
        "structure": context.structure,
    }


@router.post("/rename")
def rename_file(body: FileRename, services: Services = Depends(get_services)):
    record = services.files.rename(body.project_id, body.old_path, body.new_path)
    return {"success": True, "file": file_out(record)}


@router.post("/reindex")
def reindex(body: Reindex, services: Services = Depends(get_services)):
    report = services.files.reconcile(body.project_id)
    return {"success": True, "report": asdict(report)}


@router.get("/{project_id}")
def list_files(project_id: str, tree: bool = False, services: Services = Depends(get_services)):
    if tree:
        return {"success": True, "tree": services.files.tree(project_id)}
    return {"success": True, "files": [file_out(r) for r in services.files.list_files(project_id)]}


@router.get("/{project_id}/{path:path}")
def read_file(project_id: str, path: str, services: Services = Depends(get_services)):
    return {"success": True, "file": file_out(services.files.read(project_id, path))}


@router.delete("/{project_id}/{path:path}")
def delete_file(project_id: str, path: str, services: Services = Depends(get_services)):
    return {"success": True, "file": file_out(services.files.delete(project_id, path))}
