"""Pydantic models for Crux AI."""

from .state import (
    UploadedDocument,
    TemplateReference,
    PortfolioState,
    PipelineStage,
    DeploymentTarget,
    DeploymentResult,
    UserRecord,
    ProjectRecord,
)
from .profile import (
    ExtractedProfile,
    PersonalInfo,
    Experience,
    ProjectEntry,
    ProjectLinks,
    Education,
    Certification,
)
from .config import (
    AppConfig,
    LLMConfig,
    DeployConfig,
    IntakeConfig,
    TemplateConfig,
    DatabaseConfig,
    PipelineConfig,
)

__all__ = [
    "UploadedDocument",
    "TemplateReference",
    "PortfolioState",
    "PipelineStage",
    "DeploymentTarget",
    "DeploymentResult",
    "UserRecord",
    "ProjectRecord",
    "ExtractedProfile",
    "PersonalInfo",
    "Experience",
    "ProjectEntry",
    "ProjectLinks",
    "Education",
    "Certification",
    "AppConfig",
    "LLMConfig",
    "DeployConfig",
    "IntakeConfig",
    "TemplateConfig",
    "DatabaseConfig",
    "PipelineConfig",
]
