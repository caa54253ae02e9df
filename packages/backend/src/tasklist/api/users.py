"""User API routes.

Learn: Two routers with different auth:
- router: GET /users, the public listing (no token required)
- owner_router: GET/PUT/DELETE /users/{user_id}, guarded by
  require_path_owner in api/__init__.py. A token only opens the
  profile of the user it was issued to.

PUT is a partial merge: fields left empty keep their stored value.
DELETE removes the user and, through the FK cascade, all their tasks.
"""

from fastapi import APIRouter, Depends

from tasklist.api.auth import user_service
from tasklist.auth.dependencies import owner_body, require_path_owner
from tasklist.db.models import User
from tasklist.schemas.user import UserRead, UserUpdate
from tasklist.services.user_service import UserService

router = APIRouter()
owner_router = APIRouter()


@router.get("/users", response_model=list[UserRead])
async def list_users(svc: UserService = Depends(user_service)):
    """List all users (public)."""
    return await svc.list_users()


@owner_router.get("/users/{user_id}", response_model=UserRead)
async def get_user(owner: User = Depends(require_path_owner)):
    return owner


@owner_router.put("/users/{user_id}", response_model=UserRead)
async def update_user(
    body: UserUpdate = Depends(owner_body(UserUpdate)),
    owner: User = Depends(require_path_owner),
    svc: UserService = Depends(user_service),
):
    """Partially update the profile. A new password is re-hashed."""
    return await svc.update_user(owner, body)


@owner_router.delete("/users/{user_id}")
async def delete_user(
    owner: User = Depends(require_path_owner),
    svc: UserService = Depends(user_service),
):
    """Delete the account and every task it owns."""
    await svc.delete_user(owner)
    return {"deleted": str(owner.id)}
