from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...core import require_user
from ...db import ProjectRepository
from ..deps import get_current_user_id, get_repository

router = APIRouter(prefix="/users", tags=["users"])


class UserSync(BaseModel):
    email: Optional[str] = None


def _user_body(user) -> dict:
    return {
        "id": user.id,
        "externalId": user.external_id,
        "email": user.email,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


@router.post("/sync")
async def sync_user(
    payload: UserSync,
    user_id: str = Depends(get_current_user_id),
    repo: ProjectRepository = Depends(get_repository),
):
    """Create the caller's user record, or refresh its email."""
    user = await repo.upsert_user(user_id, payload.email)
    return _user_body(user)


@router.get("/me")
async def current_user(
    user_id: str = Depends(get_current_user_id),
    repo: ProjectRepository = Depends(get_repository),
):
    user = await require_user(repo, user_id)
    projects = await repo.list_projects(user.id)
    return {**_user_body(user), "projects": [p.to_api() for p in projects]}
