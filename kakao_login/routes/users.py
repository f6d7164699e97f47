"""
User administration routes.

Read/delete access to the persisted kakao_users rows, plus a database
status probe for the admin page.
"""
from fastapi import APIRouter, Depends

from kakao_login.database import check_connection, describe_database
from kakao_login.dependencies.auth import get_user_repository
from kakao_login.exceptions import NotFound
from kakao_login.services.user_repository import UserRepository

router = APIRouter(prefix="/api", tags=["Users"])


@router.get("/users")
async def list_users(repository: UserRepository = Depends(get_user_repository)):
    """All users, most recent login first."""
    users = await repository.list()
    return {
        "success": True,
        "count": len(users),
        "users": [user.model_dump(mode="json", by_alias=True) for user in users],
    }


@router.get("/users/{user_id}")
async def get_user(user_id: int, repository: UserRepository = Depends(get_user_repository)):
    """One user by Kakao identity. 404 when unknown."""
    user = await repository.get(user_id)
    if user is None:
        raise NotFound(f"No user with identity {user_id}")
    return {"success": True, "user": user.model_dump(mode="json", by_alias=True)}


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, repository: UserRepository = Depends(get_user_repository)):
    """Delete one user. 404 when unknown."""
    if not await repository.delete(user_id):
        raise NotFound(f"No user with identity {user_id}")
    return {"success": True, "message": "User deleted."}


@router.get("/db/status")
async def database_status():
    """Connectivity probe; never exposes credentials."""
    connected = await check_connection()
    return {"success": True, "connected": connected, **describe_database()}
