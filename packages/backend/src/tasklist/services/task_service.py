"""Task service: business logic for a user's own tasks.

Learn: Every method takes the owner (the User that require_path_owner
resolved) and scopes the store call to owner.id. The auth dependency
already guarantees the caller IS that owner; passing owner_id down to
the store means a task id belonging to someone else simply isn't found,
even if a route ever forgot the dependency.

Updates are a partial merge: fetch the stored task, overwrite only the
fields the client actually filled in, write it back. "" and missing
both mean "unchanged", so a field can't be cleared through the API.
"""

import uuid
from typing import Any

import structlog

from tasklist.db.models import Task, User
from tasklist.errors import NotFoundError
from tasklist.schemas.task import TaskBody, parse_deadline, parse_due_date
from tasklist.store import Storage

logger = structlog.get_logger()


def apply_partial_update(entity: Any, fields: dict[str, Any]) -> list[str]:
    """Set each non-empty value on entity. Returns the names that were set."""
    changed = []
    for name, value in fields.items():
        if value is None or value == "":
            continue
        setattr(entity, name, value)
        changed.append(name)
    return changed


class TaskService:
    """Task CRUD for a single owner."""

    def __init__(self, store: Storage):
        self.store = store

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(self, owner: User) -> list[Task]:
        return await self.store.get_tasks_by_user(owner.id)

    async def get_task(self, owner: User, task_id: uuid.UUID) -> Task:
        task = await self.store.get_task_by_id(task_id, owner_id=owner.id)
        if task is None:
            raise NotFoundError("task not found")
        return task

    # ─── Create ──────────────────────────────────────────

    async def create_task(self, owner: User, body: TaskBody) -> Task:
        """Create a task. The deadline is required and pinned to 23:59 UTC."""
        task = Task(
            title=body.title or "",
            description=body.description or "",
            deadline=parse_due_date(body.deadline),
            user_id=owner.id,
        )
        created = await self.store.create_task(task)
        logger.info("task.created", task_id=str(created.task_id), user_id=str(owner.id))
        return created

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self, owner: User, task_id: uuid.UUID, body: TaskBody
    ) -> Task:
        task = await self.get_task(owner, task_id)
        changed = apply_partial_update(
            task,
            {
                "title": body.title,
                "description": body.description,
                "deadline": parse_deadline(body.deadline) if body.deadline else None,
            },
        )
        if not changed:
            return task
        updated = await self.store.update_task(task)
        logger.info("task.updated", task_id=str(task_id), fields=changed)
        return updated

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, owner: User, task_id: uuid.UUID) -> None:
        if not await self.store.delete_task(task_id, owner_id=owner.id):
            raise NotFoundError("task not found")
        logger.info("task.deleted", task_id=str(task_id), user_id=str(owner.id))
