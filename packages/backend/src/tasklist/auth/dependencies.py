"""FastAPI auth dependencies.

Learn: require_path_owner is the ownership boundary of the whole API.
It is attached to the per-user routers in api/__init__.py, so every
/users/{user_id} and /tasks/{user_id}/... route runs it before the
handler. It checks, in order:

1. Authorization header is exactly "<scheme> <token>" with the configured
   scheme tag (JWT by default)
2. the token verifies (signature, algorithm, expiry)
3. the {user_id} path segment is a UUID
4. that user exists in the store (a store fault counts as "no")
5. the token's user_id claim is that same user

Any failure raises AuthError, which api/errors.py renders as a bare 403
{"error": "permission denied"}. The failing step is only logged.

Handlers can also declare `owner: User = Depends(require_path_owner)`.
FastAPI caches dependencies per request, so the checks run once.
"""

import uuid
from datetime import timedelta
from functools import lru_cache
from typing import Callable, Optional, TypeVar

import structlog
from fastapi import Depends, Header, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tasklist.auth.jwt import TokenService
from tasklist.config import settings
from tasklist.db.models import User
from tasklist.errors import AuthError, StoreError
from tasklist.store import Storage, get_store

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


@lru_cache
def get_token_service() -> TokenService:
    """The app-wide TokenService, built once from settings."""
    return TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(hours=settings.token_expire_hours),
    )


def extract_bearer(authorization: Optional[str], scheme: str) -> str:
    """Pull the token out of "<scheme> <token>"."""
    if not authorization:
        raise AuthError(AuthError.MISSING_OR_MALFORMED_HEADER)
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != scheme or not parts[1]:
        raise AuthError(AuthError.MISSING_OR_MALFORMED_HEADER)
    return parts[1]


async def require_path_owner(
    user_id: str,
    authorization: Optional[str] = Header(None),
    store: Storage = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """Authenticate the request as the user named in the path."""
    token = extract_bearer(authorization, settings.auth_scheme)
    claimed_id = tokens.verify(token)

    try:
        path_id = uuid.UUID(user_id)
    except ValueError:
        raise AuthError(AuthError.INVALID_PATH_IDENTITY)

    try:
        user = await store.get_user_by_id(path_id)
    except StoreError as e:
        logger.error("auth.store_failed", error=e.message)
        raise AuthError(AuthError.UNKNOWN_USER) from e
    if user is None:
        raise AuthError(AuthError.UNKNOWN_USER)

    if user.id != claimed_id:
        raise AuthError(AuthError.IDENTITY_MISMATCH)

    return user


def owner_body(model: type[M]) -> Callable:
    """Dependency that parses the JSON body into `model` after the owner check.

    Learn: a plain `body: Model` parameter is decoded by FastAPI before any
    dependency runs, so a broken body would answer 400 to a caller with no
    token at all. Reading the body here, behind require_path_owner, keeps
    every auth failure a 403.
    """

    async def _parse(
        request: Request, owner: User = Depends(require_path_owner)
    ) -> M:
        raw = await request.body()
        try:
            return model.model_validate_json(raw)
        except PydanticValidationError as e:
            raise RequestValidationError(e.errors(include_url=False), body=raw)

    return _parse
