"""User service: registration, login and profile edits.

Learn: bcrypt is deliberately slow (~100ms), so hashing runs in
Starlette's threadpool instead of blocking the event loop.

Login never says which part was wrong. An unknown email and a bad
password raise the same AuthError, and an unknown email still pays for
one bcrypt check against a dummy digest, so response timing doesn't
give it away either.
"""

import secrets
from functools import lru_cache

import structlog
from starlette.concurrency import run_in_threadpool

from tasklist.auth.jwt import TokenService
from tasklist.auth.password import hash_password, verify_password
from tasklist.db.models import User
from tasklist.errors import AuthError, NotFoundError
from tasklist.schemas.user import LoginResponse, RegisterRequest, UserUpdate
from tasklist.services.task_service import apply_partial_update
from tasklist.store import Storage

logger = structlog.get_logger()


@lru_cache
def _dummy_hash() -> str:
    """bcrypt digest of a random string nobody knows."""
    return hash_password(secrets.token_urlsafe(16))


async def warm_login_guard() -> None:
    """Compute the dummy digest at startup, off the event loop."""
    await run_in_threadpool(_dummy_hash)


class UserService:
    def __init__(self, store: Storage, tokens: TokenService):
        self.store = store
        self.tokens = tokens

    async def register(self, body: RegisterRequest) -> User:
        """Create a user. A taken email surfaces as ConflictError (400)."""
        digest = await run_in_threadpool(hash_password, body.password)
        user = await self.store.create_user(
            User(username=body.username, email=body.email, password_hash=digest)
        )
        logger.info("user.registered", user_id=str(user.id))
        return user

    async def login(self, email: str, password: str) -> LoginResponse:
        user = await self.store.get_user_by_email(email)
        digest = user.password_hash if user else await run_in_threadpool(_dummy_hash)
        valid = await run_in_threadpool(verify_password, password, digest)
        if user is None or not valid:
            raise AuthError(AuthError.INVALID_CREDENTIALS)

        logger.info("user.login", user_id=str(user.id))
        return LoginResponse(username=user.username, token=self.tokens.issue(user.id))

    async def list_users(self) -> list[User]:
        return await self.store.get_users()

    async def update_user(self, user: User, body: UserUpdate) -> User:
        """Partial merge. A new password is re-hashed before it is stored."""
        digest = None
        if body.password:
            digest = await run_in_threadpool(hash_password, body.password)
        changed = apply_partial_update(
            user,
            {
                "username": body.username,
                "email": body.email,
                "password_hash": digest,
            },
        )
        if not changed:
            return user
        updated = await self.store.update_user(user)
        logger.info("user.updated", user_id=str(user.id), fields=changed)
        return updated

    async def delete_user(self, user: User) -> None:
        """Delete a user. Their tasks go with them."""
        if not await self.store.delete_user(user.id):
            raise NotFoundError("user not found")
        logger.info("user.deleted", user_id=str(user.id))
