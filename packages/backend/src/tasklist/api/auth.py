"""Auth API: registration and login.

Learn: Both routes are open (no token needed, there isn't one yet):
- POST /register → create a user, returns the user (201)
- POST /login → email/password → {username, token}

A wrong password and an unknown email get the identical 403
{"error": "permission denied"}, so the endpoint can't be used to
find out which emails are registered.
"""

from fastapi import APIRouter, Depends

from tasklist.auth.dependencies import get_token_service
from tasklist.auth.jwt import TokenService
from tasklist.schemas.user import LoginRequest, LoginResponse, RegisterRequest, UserRead
from tasklist.services.user_service import UserService
from tasklist.store import Storage, get_store

router = APIRouter()


def user_service(
    store: Storage = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
) -> UserService:
    return UserService(store, tokens)


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, svc: UserService = Depends(user_service)):
    """Create a new user account."""
    return await svc.register(body)


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, svc: UserService = Depends(user_service)):
    """Login with email and password → a 24h token."""
    return await svc.login(body.email, body.password)
