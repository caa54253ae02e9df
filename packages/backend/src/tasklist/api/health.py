"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
configured store answers. Open route, no token needed. The store error
itself is logged, not returned.
"""

import structlog
from fastapi import APIRouter, Depends

from tasklist import __version__
from tasklist.config import settings
from tasklist.errors import StoreError
from tasklist.store import Storage, get_store

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(store: Storage = Depends(get_store)):
    """Check server health and store connectivity."""
    checks = {"server": "ok", "version": __version__, "backend": settings.store_backend}

    try:
        await store.ping()
        checks["store"] = "ok"
    except StoreError as e:
        logger.warning("health.store_unavailable", error=e.message)
        checks["store"] = "unavailable"

    status = "healthy" if checks["store"] == "ok" else "degraded"
    return {"status": status, **checks}
