"""Postgres-backed Storage over an AsyncSession.

Learn: One SQLStore per request, wrapping the request's session from
get_store(). Every write commits immediately; there are no multi-statement
units of work, so a failed request never leaves partial state behind.

Coordination is the database's job:
- users.email UNIQUE → IntegrityError → ConflictError
- tasks.user_id FK ON DELETE CASCADE → user delete removes tasks
Nothing here locks, retries or waits. A failure (including a statement
timeout from asyncpg's command_timeout) surfaces as StoreError.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasklist.db.models import Task, User
from tasklist.errors import ConflictError, NotFoundError, StoreError

logger = structlog.get_logger()


class SQLStore:
    """Storage implementation for a single AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, op: str, conflict: str = "conflicting write"):
        """Translate SQLAlchemy/driver failures into the store's error types."""
        try:
            yield
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("store.conflict", op=op, error=str(e.orig))
            raise ConflictError(conflict) from e
        except (SQLAlchemyError, OSError) as e:
            await self.db.rollback()
            logger.error("store.error", op=op, error=str(e))
            raise StoreError(str(e)) from e

    # ─── Tasks ───────────────────────────────────────────

    async def get_tasks(self) -> list[Task]:
        async with self._guard("get_tasks"):
            result = await self.db.execute(
                select(Task).order_by(Task.deadline, Task.created_at)
            )
            return list(result.scalars().all())

    async def get_task_by_id(
        self, task_id: uuid.UUID, owner_id: Optional[uuid.UUID] = None
    ) -> Optional[Task]:
        q = select(Task).where(Task.task_id == task_id)
        if owner_id is not None:
            q = q.where(Task.user_id == owner_id)
        async with self._guard("get_task_by_id"):
            result = await self.db.execute(q)
            return result.scalars().first()

    async def get_tasks_by_user(self, user_id: uuid.UUID) -> list[Task]:
        q = (
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.deadline, Task.created_at)
        )
        async with self._guard("get_tasks_by_user"):
            result = await self.db.execute(q)
            return list(result.scalars().all())

    async def create_task(self, task: Task) -> Task:
        async with self._guard("create_task", conflict=f"user {task.user_id} does not exist"):
            self.db.add(task)
            await self.db.commit()
            await self.db.refresh(task)
        return task

    async def update_task(self, task: Task) -> Task:
        async with self._guard("update_task"):
            if await self.db.get(Task, task.task_id) is None:
                raise NotFoundError("task not found")
            merged = await self.db.merge(task)
            await self.db.commit()
            await self.db.refresh(merged)
        return merged

    async def delete_task(
        self, task_id: uuid.UUID, owner_id: Optional[uuid.UUID] = None
    ) -> bool:
        stmt = delete(Task).where(Task.task_id == task_id)
        if owner_id is not None:
            stmt = stmt.where(Task.user_id == owner_id)
        async with self._guard("delete_task"):
            result = await self.db.execute(stmt)
            await self.db.commit()
        return result.rowcount > 0

    # ─── Users ───────────────────────────────────────────

    async def get_users(self) -> list[User]:
        async with self._guard("get_users"):
            result = await self.db.execute(select(User).order_by(User.created_at))
            return list(result.scalars().all())

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        async with self._guard("get_user_by_id"):
            return await self.db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with self._guard("get_user_by_email"):
            result = await self.db.execute(select(User).where(User.email == email))
            return result.scalars().first()

    async def create_user(self, user: User) -> User:
        async with self._guard("create_user", conflict="email already registered"):
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        return user

    async def update_user(self, user: User) -> User:
        async with self._guard("update_user", conflict="email already registered"):
            if await self.db.get(User, user.id) is None:
                raise NotFoundError("user not found")
            merged = await self.db.merge(user)
            await self.db.commit()
            await self.db.refresh(merged)
        return merged

    async def delete_user(self, user_id: uuid.UUID) -> bool:
        # Tasks go with the user via ON DELETE CASCADE
        async with self._guard("delete_user"):
            result = await self.db.execute(delete(User).where(User.id == user_id))
            await self.db.commit()
        return result.rowcount > 0

    # ─── Health ──────────────────────────────────────────

    async def ping(self) -> None:
        async with self._guard("ping"):
            await self.db.execute(text("SELECT 1"))
