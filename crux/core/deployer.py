"""Deploy stage - site naming and publishing through the platform."""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from ..errors import InvalidNameError
from ..models import DeployConfig, DeploymentResult, DeploymentTarget
from ..services import DeploymentPlatform
from .validator import MIN_ARTIFACT_LENGTH, validate_artifact

logger = logging.getLogger(__name__)

MAX_SITE_NAME_LENGTH = 100
_DISALLOWED_RE = re.compile(r"[^a-z0-9-]+")


def derive_site_name(base_name: str, suffix: str = "crux-ai") -> str:
    """Canonicalize ``base_name`` into a platform-safe, branded site name.

    Lowercases, collapses every run of characters outside ``[a-z0-9-]``
    into a single ``-`` and appends ``-<suffix>``. Pure and deterministic.

    Raises:
        InvalidNameError: If the result is empty, longer than 100
            characters, or starts/ends with ``-``.
    """
    sanitized = _DISALLOWED_RE.sub("-", (base_name or "").lower())
    name = f"{sanitized}-{suffix}" if suffix else sanitized

    if not name:
        raise InvalidNameError("Project name is empty")
    if len(name) > MAX_SITE_NAME_LENGTH:
        raise InvalidNameError(
            f"Project name must be at most {MAX_SITE_NAME_LENGTH} characters",
            details={"name": name, "length": len(name)},
        )
    if name.startswith("-") or name.endswith("-"):
        raise InvalidNameError(
            "Project name cannot start or end with '-'",
            details={"name": name},
        )
    return name


def build_target(base_name: str, config: DeployConfig) -> DeploymentTarget:
    return DeploymentTarget(
        original_name=base_name,
        final_name=derive_site_name(base_name, config.branding_suffix),
        team_id=config.team_id,
    )


def site_url(final_name: str, domain: str) -> str:
    """Public URL of a deployed site, built from the derived name."""
    return f"https://{final_name}.{domain}"


class SiteDeployer:
    """Publishes validated artifacts to the deployment platform.

    Deploys that derive the same site name are serialized within the
    process so concurrent uploads cannot interleave.

    Usage:
        deployer = SiteDeployer(platform, config.deploy)
        result = await deployer.deploy(html, "Jane Doe")
    """

    def __init__(
        self,
        platform: DeploymentPlatform,
        config: DeployConfig,
        min_length: int = MIN_ARTIFACT_LENGTH,
    ):
        self.platform = platform
        self.config = config
        self.min_length = min_length
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def _hold(self, name: str) -> AsyncIterator[None]:
        """Serialize work on ``name``; the lock is dropped once nobody holds or awaits it."""
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        self._waiters[name] = self._waiters.get(name, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[name] -= 1
            if not self._waiters[name]:
                del self._waiters[name]
                del self._locks[name]

    async def deploy(self, html: str, base_name: str) -> DeploymentResult:
        """Validate, ensure the project exists, upload, and return the URL.

        Raises:
            EmptyArtifactError: If ``html`` fails the publish gate
            InvalidNameError: If ``base_name`` cannot be made into a site name
            DeploymentProjectError: If the hosting project cannot be created
            DeploymentUploadError: If the upload fails
        """
        validate_artifact(html, self.min_length)
        target = build_target(base_name, self.config)

        async with self._hold(target.final_name):
            logger.info(
                f"Deploying {target.original_name!r} as {target.final_name}"
            )
            created = await self.platform.create_project(target.final_name)
            payload = await self.platform.upload_artifact(target.final_name, html)

        deployment_id: Optional[str] = payload.get("id") or payload.get("deploymentId")
        url = site_url(target.final_name, self.config.domain)
        logger.info(f"Deployed {target.final_name} to {url}")

        return DeploymentResult(
            url=url,
            original_name=target.original_name,
            final_name=target.final_name,
            deployment_id=deployment_id,
            project_created=created,
        )
