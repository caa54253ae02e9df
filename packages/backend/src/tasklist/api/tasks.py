"""Task API routes.

Learn: These routes are the HTTP interface to TaskService. Every path
starts with the owner's id, /tasks/{user_id}/..., and the whole router
is guarded by require_path_owner (see api/__init__.py). By the time a
handler runs, the token has been proven to belong to {user_id}.

Routing is by path shape, then method:
- /tasks/{user_id}            GET (list), POST (create)
- /tasks/{user_id}/{task_id}  GET, PUT (partial merge), DELETE
Any other method on those shapes is a 405, answered before auth runs.
"""

import uuid

from fastapi import APIRouter, Depends

from tasklist.auth.dependencies import owner_body, require_path_owner
from tasklist.db.models import User
from tasklist.errors import ValidationError
from tasklist.schemas.task import TaskBody, TaskRead
from tasklist.services.task_service import TaskService
from tasklist.store import Storage, get_store

router = APIRouter()

# Parsed only after require_path_owner has accepted the request
_task_body = owner_body(TaskBody)


def _task_svc(store: Storage = Depends(get_store)) -> TaskService:
    return TaskService(store)


def parse_task_id(task_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(task_id)
    except ValueError:
        raise ValidationError(f"invalid task ID: {task_id}")


@router.get("/tasks/{user_id}", response_model=list[TaskRead])
async def list_tasks(
    owner: User = Depends(require_path_owner),
    svc: TaskService = Depends(_task_svc),
):
    """List the owner's tasks, earliest deadline first."""
    return await svc.list_tasks(owner)


@router.post("/tasks/{user_id}", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskBody = Depends(_task_body),
    owner: User = Depends(require_path_owner),
    svc: TaskService = Depends(_task_svc),
):
    """Create a task. deadline is a YYYY-MM-DD date, due at 23:59 UTC."""
    return await svc.create_task(owner, body)


@router.get("/tasks/{user_id}/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: str,
    owner: User = Depends(require_path_owner),
    svc: TaskService = Depends(_task_svc),
):
    return await svc.get_task(owner, parse_task_id(task_id))


@router.put("/tasks/{user_id}/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: str,
    body: TaskBody = Depends(_task_body),
    owner: User = Depends(require_path_owner),
    svc: TaskService = Depends(_task_svc),
):
    """Partial update: only non-empty fields overwrite the stored task."""
    return await svc.update_task(owner, parse_task_id(task_id), body)


@router.delete("/tasks/{user_id}/{task_id}")
async def delete_task(
    task_id: str,
    owner: User = Depends(require_path_owner),
    svc: TaskService = Depends(_task_svc),
):
    tid = parse_task_id(task_id)
    await svc.delete_task(owner, tid)
    return {"deleted": str(tid)}
