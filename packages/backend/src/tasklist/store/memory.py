"""In-memory Storage implementation.

Learn: Behaves like SQLStore as far as callers can tell: same return
types (transient ORM instances), same ConflictError on duplicate email,
same cascade on user delete. Every read hands out a copy, so a caller
that mutates a fetched entity changes nothing until it calls update_*.

No locks: every method mutates the dicts without awaiting in between,
so on a single event loop each call is atomic.
"""

import uuid
from typing import Optional, TypeVar

import structlog

from tasklist.db.models import Base, Task, User, utcnow
from tasklist.errors import ConflictError, NotFoundError

logger = structlog.get_logger()

M = TypeVar("M", bound=Base)


def _copy(entity: M) -> M:
    values = {col.key: getattr(entity, col.key) for col in entity.__table__.columns}
    return type(entity)(**values)


def _touch(new: M, old: M) -> None:
    """Bump updated_at only when a column actually changed, like an ORM flush."""
    for col in new.__table__.columns:
        if col.key != "updated_at" and getattr(new, col.key) != getattr(old, col.key):
            new.updated_at = utcnow()
            return


class InMemoryStore:
    """Dict-backed store keyed by UUID."""

    def __init__(self):
        self._users: dict[uuid.UUID, User] = {}
        self._tasks: dict[uuid.UUID, Task] = {}

    # ─── Tasks ───────────────────────────────────────────

    async def get_tasks(self) -> list[Task]:
        return [_copy(t) for t in self._tasks.values()]

    async def get_task_by_id(
        self, task_id: uuid.UUID, owner_id: Optional[uuid.UUID] = None
    ) -> Optional[Task]:
        task = self._owned_task(task_id, owner_id)
        return _copy(task) if task else None

    async def get_tasks_by_user(self, user_id: uuid.UUID) -> list[Task]:
        owned = [t for t in self._tasks.values() if t.user_id == user_id]
        owned.sort(key=lambda t: (t.deadline, t.created_at))
        return [_copy(t) for t in owned]

    async def create_task(self, task: Task) -> Task:
        if task.user_id not in self._users:
            # Same outcome as the FK violation in Postgres
            raise ConflictError(f"user {task.user_id} does not exist")
        stored = _copy(task)
        self._tasks[stored.task_id] = stored
        return _copy(stored)

    async def update_task(self, task: Task) -> Task:
        if task.task_id not in self._tasks:
            raise NotFoundError("task not found")
        stored = _copy(task)
        _touch(stored, self._tasks[stored.task_id])
        self._tasks[stored.task_id] = stored
        return _copy(stored)

    async def delete_task(
        self, task_id: uuid.UUID, owner_id: Optional[uuid.UUID] = None
    ) -> bool:
        if not self._owned_task(task_id, owner_id):
            return False
        del self._tasks[task_id]
        return True

    def _owned_task(
        self, task_id: uuid.UUID, owner_id: Optional[uuid.UUID]
    ) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or (owner_id is not None and task.user_id != owner_id):
            return None
        return task

    # ─── Users ───────────────────────────────────────────

    async def get_users(self) -> list[User]:
        return [_copy(u) for u in self._users.values()]

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        user = self._users.get(user_id)
        return _copy(user) if user else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return _copy(user)
        return None

    async def create_user(self, user: User) -> User:
        self._check_email_free(user.email, exclude=None)
        stored = _copy(user)
        self._users[stored.id] = stored
        return _copy(stored)

    async def update_user(self, user: User) -> User:
        if user.id not in self._users:
            raise NotFoundError("user not found")
        self._check_email_free(user.email, exclude=user.id)
        stored = _copy(user)
        _touch(stored, self._users[stored.id])
        self._users[stored.id] = stored
        return _copy(stored)

    async def delete_user(self, user_id: uuid.UUID) -> bool:
        if self._users.pop(user_id, None) is None:
            return False
        owned = [tid for tid, t in self._tasks.items() if t.user_id == user_id]
        for tid in owned:
            del self._tasks[tid]
        logger.debug("store.user_cascade", user_id=str(user_id), tasks=len(owned))
        return True

    def _check_email_free(self, email: str, exclude: Optional[uuid.UUID]) -> None:
        for uid, existing in self._users.items():
            if existing.email == email and uid != exclude:
                raise ConflictError("email already registered")

    async def ping(self) -> None:
        return None
