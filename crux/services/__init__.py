"""External service integrations."""

from .deploy_service import DeploymentService, DeploymentPlatform
from .llm_service import LLMService, CompletionClient
from .template_library import TemplateLibrary, TemplateEntry

__all__ = [
    "DeploymentService",
    "DeploymentPlatform",
    "LLMService",
    "CompletionClient",
    "TemplateLibrary",
    "TemplateEntry",
]
