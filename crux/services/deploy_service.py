"""Deployment platform API service for publishing single-page sites.

Uses httpx for async HTTP requests and tenacity for retrying the
idempotent calls (project create/delete) on transport failures.
Artifact uploads are never retried.
"""

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote
import logging

from ..errors import (
    DeploymentError,
    DeploymentProjectError,
    DeploymentUploadError,
    DeploymentDeleteError,
)
from ..models import DeployConfig

logger = logging.getLogger(__name__)


class DeploymentPlatform(Protocol):
    """The three deployment operations the pipeline consumes."""

    @property
    def is_configured(self) -> bool:
        ...

    async def create_project(self, name: str) -> bool:
        ...

    async def upload_artifact(self, name: str, html: str) -> Dict[str, Any]:
        ...

    async def delete_project(self, name: str) -> bool:
        ...


def _detail(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


_transport_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(httpx.TransportError),
    reraise=True,
)


class DeploymentService:
    """Async client for a Vercel-style deployment REST API.

    Responsibilities:
    - Create a hosting project (409 conflict counts as success)
    - Upload a single index.html as a production deployment
    - Delete a project (404 counts as already deleted)

    Usage:
        async with DeploymentService(config) as platform:
            await platform.create_project("jane-doe-crux-ai")
            payload = await platform.upload_artifact("jane-doe-crux-ai", html)
    """

    def __init__(
        self,
        config: DeployConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.config.token)

    async def __aenter__(self) -> "DeploymentService":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self) -> None:
        if self._client is not None:
            return
        headers = {"Content-Type": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        if self.config.team_id:
            headers["X-Vercel-Team-Id"] = self.config.team_id
        self._client = httpx.AsyncClient(
            base_url=self.config.api_base,
            headers=headers,
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise DeploymentError("Service not initialized. Use async context manager.")
        return self._client

    @_transport_retry
    async def _post_project(self, name: str) -> httpx.Response:
        return await self._require_client().post(
            "/v9/projects",
            json={"name": name, "framework": None},
        )

    async def create_project(self, name: str) -> bool:
        """Ensure a hosting project named ``name`` exists.

        Returns:
            True if it was created, False if it already existed.

        Raises:
            DeploymentProjectError: For any other upstream failure.
        """
        if not self.is_configured:
            raise DeploymentProjectError("Deployment token is not configured")

        try:
            response = await self._post_project(name)
        except httpx.TransportError as e:
            raise DeploymentProjectError(
                f"Failed to reach deployment platform: {e}"
            ) from e

        if response.status_code == 409:
            logger.info(f"Project already exists: {name}")
            return False
        if response.is_error:
            detail = _detail(response)
            logger.error(f"Project creation failed for {name}: {detail}")
            raise DeploymentProjectError(
                f"Failed to create deployment project '{name}'",
                details=detail,
            )

        logger.info(f"Project created: {name}")
        return True

    async def upload_artifact(self, name: str, html: str) -> Dict[str, Any]:
        """Deploy ``html`` as the root document of project ``name``.

        Returns:
            The platform's deployment payload.

        Raises:
            DeploymentUploadError: If the upload fails for any reason.
        """
        payload = {
            "name": name,
            "files": [{"file": "index.html", "data": html}],
            "target": "production",
        }
        try:
            response = await self._require_client().post("/v13/deployments", json=payload)
        except httpx.TransportError as e:
            raise DeploymentUploadError(
                f"Failed to reach deployment platform: {e}"
            ) from e

        if response.is_error:
            detail = _detail(response)
            logger.error(f"Deployment upload failed for {name}: {detail}")
            raise DeploymentUploadError("Failed to deploy", details=detail)

        data = _detail(response)
        if not isinstance(data, dict):
            data = {}
        logger.info(f"Deployment started for {name}: {data.get('id')}")
        return data

    @_transport_retry
    async def _delete(self, name: str) -> httpx.Response:
        return await self._require_client().delete(f"/v9/projects/{quote(name, safe='')}")

    async def delete_project(self, name: str) -> bool:
        """Remove project ``name``; a missing project counts as deleted.

        Raises:
            DeploymentDeleteError: For any upstream failure other than 404.
        """
        try:
            response = await self._delete(name)
        except httpx.TransportError as e:
            raise DeploymentDeleteError(
                f"Failed to reach deployment platform: {e}"
            ) from e

        if response.status_code == 404:
            logger.info(f"Project not found (treated as deleted): {name}")
            return True
        if response.is_error:
            detail = _detail(response)
            logger.error(f"Failed to delete project {name}: {detail}")
            raise DeploymentDeleteError(
                "Failed to delete project from deployment platform",
                details=detail,
            )

        logger.info(f"Project deleted: {name}")
        return True
