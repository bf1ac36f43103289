"""Reconcile stage - keep project records consistent with deployed sites."""

import logging
from typing import Optional, Tuple
from urllib.parse import urlparse

from ..db.repository import ProjectRepository
from ..errors import ProjectNotFoundError, UserNotFoundError
from ..models import DeploymentResult, ProjectRecord, UserRecord
from ..services import DeploymentPlatform
from .deployer import SiteDeployer

logger = logging.getLogger(__name__)


async def require_user(repo: ProjectRepository, external_id: str) -> UserRecord:
    """Look up the owning user; identity sync must already have created it."""
    user = await repo.find_user_by_external_id(external_id)
    if user is None:
        raise UserNotFoundError("User not found")
    return user


async def record_deployment(
    repo: ProjectRepository,
    user: UserRecord,
    result: DeploymentResult,
    template_id: Optional[str],
    title: Optional[str] = None,
) -> ProjectRecord:
    """Persist the project record for a successful deploy."""
    record = await repo.create_project(
        user_id=user.id,
        title=title or result.original_name,
        prompt=template_id,
        content_json={
            "templateId": template_id,
            "originalName": result.original_name,
            "finalName": result.final_name,
            "deploymentId": result.deployment_id,
        },
        deployed_url=result.url,
    )
    logger.info(f"Recorded project {record.id} for user {user.id}: {result.url}")
    return record


def resolve_remote_name(record: ProjectRecord, domain: str) -> Optional[str]:
    """Site name to delete remotely.

    Prefers ``finalName`` from the stored metadata; falls back to the
    hostname of the deployed URL when it sits under ``domain``.
    """
    content = record.content_json or {}
    final_name = content.get("finalName") if isinstance(content, dict) else None
    if final_name:
        return final_name

    if not record.deployed_url:
        return None

    host = urlparse(record.deployed_url).hostname or ""
    suffix = f".{domain}"
    if host.endswith(suffix) and len(host) > len(suffix):
        return host[: -len(suffix)]
    return None


async def delete_project_record(
    repo: ProjectRepository,
    platform: DeploymentPlatform,
    external_id: str,
    project_id: int,
    domain: str,
) -> bool:
    """Delete a project remotely, then locally.

    The remote site is removed first; any remote failure other than
    "not found" aborts before the local record is touched.

    Returns:
        Whether the remote site is known to be gone.

    Raises:
        UserNotFoundError: If the caller has no user record
        ProjectNotFoundError: If the project is missing or not theirs
        DeploymentDeleteError: If the remote deletion fails
    """
    user = await require_user(repo, external_id)

    record = await repo.find_project(project_id)
    if record is None or record.user_id != user.id:
        raise ProjectNotFoundError("Project not found")

    remote_deleted = False
    remote_name = resolve_remote_name(record, domain)
    if remote_name and platform.is_configured:
        remote_deleted = await platform.delete_project(remote_name)
    elif remote_name:
        logger.warning(
            f"No deployment credential configured; leaving remote site {remote_name}"
        )
    else:
        logger.info(f"Project {project_id} has no resolvable remote site")

    await repo.delete_project(project_id)
    logger.info(f"Deleted project {project_id} (remote deleted: {remote_deleted})")
    return remote_deleted


async def _discard_unrecorded_site(platform: DeploymentPlatform, result: DeploymentResult) -> None:
    if not result.project_created:
        logger.warning(
            f"Recording {result.final_name} failed; project existed before, leaving it in place"
        )
        return
    try:
        await platform.delete_project(result.final_name)
        logger.warning(f"Recording {result.final_name} failed; removed the new site")
    except Exception as e:
        logger.error(f"Recording {result.final_name} failed and the site could not be removed: {e}")


async def publish_portfolio(
    repo: ProjectRepository,
    deployer: SiteDeployer,
    external_id: str,
    html: str,
    project_name: str,
    template_id: Optional[str],
) -> Tuple[DeploymentResult, ProjectRecord]:
    """Deploy a confirmed artifact and record it for its owner.

    The owner is checked before anything is published so an unknown user
    never leaves a remote site without a record. If the record cannot be
    written, a site created by this deploy is removed again and the
    original error is raised.
    """
    user = await require_user(repo, external_id)
    result = await deployer.deploy(html, project_name)
    try:
        record = await record_deployment(repo, user, result, template_id)
    except Exception:
        await _discard_unrecorded_site(deployer.platform, result)
        raise
    return result, record
