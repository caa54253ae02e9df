"""Storage backends and the FastAPI dependency that picks one.

Learn: Routes and the auth layer depend on get_store, never on a concrete
backend. Tests override get_store with a fresh InMemoryStore.
"""

from typing import AsyncIterator

from tasklist.config import settings
from tasklist.store.base import Storage
from tasklist.store.memory import InMemoryStore

__all__ = ["InMemoryStore", "Storage", "get_store"]

# Process-wide instance for TASKLIST_STORE_BACKEND=memory
_memory_store = InMemoryStore()


async def get_store() -> AsyncIterator[Storage]:
    """FastAPI dependency: a Storage for the duration of one request."""
    if settings.store_backend == "memory":
        yield _memory_store
        return

    from tasklist.db.engine import async_session_factory
    from tasklist.store.sql import SQLStore

    async with async_session_factory() as session:
        yield SQLStore(session)
