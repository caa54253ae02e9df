"""SQLAlchemy ORM models, the single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror these definitions.

Key concepts:
- UUID primary keys for both users and tasks
- tasks.user_id → users.id with ON DELETE CASCADE: deleting a user
  removes their tasks in the same statement
- email uniqueness is a DB constraint, not an application check
- timestamps are timezone-aware (stored as TIMESTAMPTZ, UTC)

These classes double as the entity type of the in-memory store: it keeps
transient (never-flushed) instances, so defaults are applied in __init__
rather than left to the database.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class User(Base):
    """A registered user. Owns zero or more tasks.

    Learn: password_hash is a bcrypt digest. It never leaves the server:
    UserRead has no field for it.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=new_uuid
    )
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    tasks: Mapped[list["Task"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("id", new_uuid())
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)


class Task(Base):
    """A personal task. Exactly one owner, visible only to that owner.

    Learn: the deadline is always an absolute UTC timestamp. Clients send
    a bare date and the API pins it to 23:59 UTC (see schemas/task.py).
    Title (5-30 chars) and description (≤100 chars) limits are advisory;
    the columns are sized generously and nothing enforces them.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_user", "user_id"),
    )

    task_id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=new_uuid
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    user: Mapped[Optional["User"]] = relationship(back_populates="tasks")

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("task_id", new_uuid())
        kwargs.setdefault("title", "")
        kwargs.setdefault("description", "")
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)
