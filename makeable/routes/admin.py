from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from makeable.services import auth
from makeable.services.analytics import collect_stats, describe_owner
from makeable.services.projects import ProjectStore
from makeable.utils.deps import get_project_store
from makeable.utils.session import require_admin

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def users_by_id() -> Dict[str, Dict[str, Any]]:
    return {str(user["id"]): user for user in auth.list_users()}


@router.get("/users")
async def admin_users():
    users = [auth.public_user(user) for user in auth.list_users()]
    return {"users": users}


@router.get("/projects")
async def admin_projects(store: ProjectStore = Depends(get_project_store)):
    owners = users_by_id()
    projects = [
        {
            "id": p["id"],
            "name": p["name"],
            "prompt": p["prompt"],
            "createdAt": p["createdAt"],
            "userId": p["userId"],
            **describe_owner(p, owners),
        }
        for p in store.list()
    ]
    return {"projects": projects}


@router.get("/projects/{project_id}")
async def admin_project(project_id: str, store: ProjectStore = Depends(get_project_store)):
    try:
        project = store.get(project_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return {**project, **describe_owner(project, users_by_id())}


@router.get("/stats")
async def admin_stats(store: ProjectStore = Depends(get_project_store)):
    return collect_stats(auth.list_users(), store.list())
