from typing import Optional, Protocol

from fastapi import Request

from ..core import PipelineDeps, SiteDeployer
from ..db import ProjectRepository
from ..errors import AuthenticationError
from ..models import AppConfig
from ..services import CompletionClient, DeploymentPlatform, TemplateLibrary


class IdentityResolver(Protocol):
    """Yields the caller's stable user id, or None if unauthenticated."""

    def resolve(self, request: Request) -> Optional[str]:
        ...


class HeaderIdentity:
    """Trusts a user id forwarded by an authenticating proxy."""

    def __init__(self, header: str = "X-User-Id"):
        self.header = header

    def resolve(self, request: Request) -> Optional[str]:
        value = request.headers.get(self.header, "").strip()
        return value or None


# -------------------------------------------------------
# FastAPI dependencies (collaborators live on app.state)
# -------------------------------------------------------
def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_repository(request: Request) -> ProjectRepository:
    return request.app.state.repository


def get_completion(request: Request) -> CompletionClient:
    return request.app.state.completion


def get_platform(request: Request) -> DeploymentPlatform:
    return request.app.state.platform


def get_templates(request: Request) -> TemplateLibrary:
    return request.app.state.templates


def get_deployer(request: Request) -> SiteDeployer:
    return request.app.state.deployer


def get_pipeline_deps(request: Request) -> PipelineDeps:
    state = request.app.state
    return PipelineDeps(
        config=state.config,
        completion=state.completion,
        templates=state.templates,
    )


def get_current_user_id(request: Request) -> str:
    """
    Usage in routes:
        def endpoint(user_id: str = Depends(get_current_user_id)):
            ...
    """
    user_id = request.app.state.identity.resolve(request)
    if not user_id:
        raise AuthenticationError("Unauthorized")
    return user_id
