from fastapi import APIRouter, Depends

from ...core import delete_project_record, require_user
from ...db import ProjectRepository
from ...models import AppConfig
from ...services import DeploymentPlatform
from ..deps import get_config, get_current_user_id, get_platform, get_repository

router = APIRouter(prefix="/vercel", tags=["projects"])


@router.get("/projects")
async def list_projects(
    user_id: str = Depends(get_current_user_id),
    repo: ProjectRepository = Depends(get_repository),
):
    user = await require_user(repo, user_id)
    rows = await repo.list_projects(user.id)
    return [row.to_api() for row in rows]


@router.delete("/projects/{project_id}")
async def delete_project(
    project_id: int,
    user_id: str = Depends(get_current_user_id),
    repo: ProjectRepository = Depends(get_repository),
    platform: DeploymentPlatform = Depends(get_platform),
    config: AppConfig = Depends(get_config),
):
    deleted = await delete_project_record(
        repo, platform, user_id, project_id, config.deploy.domain
    )
    return {"success": True, "vercelDeleted": deleted}
