from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel

from makeable.agent.generator import Generator
from makeable.services.files import UploadedFile, to_attachments
from makeable.services.generation import iterate_project, run_generation
from makeable.services.projects import ProjectStore, generate_project_name, new_project, new_project_id
from makeable.utils.deps import get_generator, get_project_store
from makeable.utils.session import require_user


router = APIRouter(prefix="/api", tags=["projects"])


class GenerateRequest(BaseModel):
    prompt: str
    projectId: Optional[str] = None
    files: List[UploadedFile] = []


class IterateRequest(BaseModel):
    prompt: str
    files: List[UploadedFile] = []


class RenameRequest(BaseModel):
    name: str


def owned_project(store: ProjectStore, project_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    try:
        project = store.get(project_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if project["userId"] != str(user["id"]):
        raise HTTPException(status_code=403, detail="Access denied")
    return project


@router.get("/projects")
async def list_projects(
    user: Dict[str, Any] = Depends(require_user),
    store: ProjectStore = Depends(get_project_store),
):
    projects = [
        {"id": p["id"], "name": p["name"], "prompt": p["prompt"], "createdAt": p["createdAt"]}
        for p in store.list()
        if p.get("userId") == str(user["id"])
    ]
    return {"projects": projects}


@router.get("/projects/{project_id}")
async def get_project(
    project_id: str,
    user: Dict[str, Any] = Depends(require_user),
    store: ProjectStore = Depends(get_project_store),
):
    return owned_project(store, project_id, user)


@router.delete("/projects/{project_id}")
async def delete_project(
    project_id: str,
    user: Dict[str, Any] = Depends(require_user),
    store: ProjectStore = Depends(get_project_store),
):
    """Owners may delete their projects; admins may delete any."""
    try:
        project = store.get(project_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if project["userId"] != str(user["id"]) and user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Access denied")
    store.delete(project_id)
    return {"success": True, "message": "Project deleted"}


@router.patch("/projects/{project_id}/rename")
async def rename_project(
    project_id: str,
    payload: RenameRequest,
    user: Dict[str, Any] = Depends(require_user),
    store: ProjectStore = Depends(get_project_store),
):
    project = owned_project(store, project_id, user)
    project["name"] = payload.name
    store.put(project_id, project)
    return {"success": True, "project": {"id": project["id"], "name": project["name"]}}


@router.post("/generate")
async def generate(
    payload: GenerateRequest,
    background_tasks: BackgroundTasks,
    user: Dict[str, Any] = Depends(require_user),
    store: ProjectStore = Depends(get_project_store),
    generator: Generator = Depends(get_generator),
):
    """Store a placeholder project, answer immediately, and generate in the background.

    Clients poll GET /api/projects/{id} until ``files`` is non-empty.
    """
    if not payload.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")
    project_id = payload.projectId or new_project_id()
    project = new_project(project_id, generate_project_name(payload.prompt), payload.prompt, str(user["id"]))
    try:
        existing = store.get(project_id)
        if existing and existing["userId"] != str(user["id"]):
            raise HTTPException(status_code=403, detail="Access denied")
        store.put(project_id, project)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    background_tasks.add_task(
        run_generation, store, generator, project_id, payload.prompt, to_attachments(payload.files)
    )
    return {
        "success": True,
        "project": {"id": project_id, "name": project["name"], "files": []},
        "message": "Project created, generating app...",
    }


@router.post("/projects/{project_id}/iterate")
async def iterate(
    project_id: str,
    payload: IterateRequest,
    user: Dict[str, Any] = Depends(require_user),
    store: ProjectStore = Depends(get_project_store),
    generator: Generator = Depends(get_generator),
):
    if not payload.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")
    project = owned_project(store, project_id, user)
    project = await iterate_project(store, generator, project, payload.prompt, to_attachments(payload.files))
    return {
        "success": True,
        "project": {"id": project["id"], "name": project["name"], "files": project["files"]},
        "message": "Project updated successfully",
    }
