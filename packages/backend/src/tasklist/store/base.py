"""Storage capability: what the routes and the auth layer need from a backend.

Learn: Two implementations satisfy this Protocol:
- SQLStore: Postgres via SQLAlchemy async, one instance per request session
- InMemoryStore: dicts, used by tests and `TASKLIST_STORE_BACKEND=memory`

Contract shared by both:
- lookups return the entity or None (never raise for "not there")
- deletes return True if something was removed
- a duplicate email raises ConflictError
- any other backend fault raises StoreError
- deleting a user deletes their tasks
- task lookups accept an owner_id filter; when given, a task owned by
  anyone else behaves exactly like a missing one
"""

import uuid
from typing import Optional, Protocol

from tasklist.db.models import Task, User


class Storage(Protocol):
    # ─── Tasks ───────────────────────────────────────────

    async def get_tasks(self) -> list[Task]: ...

    async def get_task_by_id(
        self, task_id: uuid.UUID, owner_id: Optional[uuid.UUID] = None
    ) -> Optional[Task]: ...

    async def get_tasks_by_user(self, user_id: uuid.UUID) -> list[Task]: ...

    async def create_task(self, task: Task) -> Task: ...

    async def update_task(self, task: Task) -> Task: ...

    async def delete_task(
        self, task_id: uuid.UUID, owner_id: Optional[uuid.UUID] = None
    ) -> bool: ...

    # ─── Users ───────────────────────────────────────────

    async def get_users(self) -> list[User]: ...

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]: ...

    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    async def create_user(self, user: User) -> User: ...

    async def update_user(self, user: User) -> User: ...

    async def delete_user(self, user_id: uuid.UUID) -> bool: ...

    # ─── Health ──────────────────────────────────────────

    async def ping(self) -> None:
        """Raise StoreError if the backend is unreachable."""
        ...
