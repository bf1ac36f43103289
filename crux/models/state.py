from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from pathlib import Path
from datetime import datetime

from .profile import ExtractedProfile


class UploadedDocument(BaseModel):
    """A validated upload spooled to temporary storage.

    Only valid inside the intake scope that created it; the file at
    ``path`` is removed when that scope exits.
    """
    path: Path
    filename: str
    media_type: str
    size: int


class TemplateReference(BaseModel):
    """Identifier plus an optional caller-supplied template body."""
    template_id: str
    body: Optional[str] = Field(
        default=None,
        description="Used verbatim when non-blank, overriding the library"
    )

    @property
    def is_inline(self) -> bool:
        return bool(self.body and self.body.strip())


class PortfolioState(BaseModel):
    """Central state object passed through the generation pipeline.

    This is the "traveling context" that accumulates data as it flows
    through: EXTRACT → STRUCTURE → RENDER → VALIDATE stages.
    """
    # === Input Stage ===
    document: Optional[UploadedDocument] = None
    template: TemplateReference
    avatar: Optional[str] = Field(
        default=None,
        description="Validated avatar image as a data URI"
    )

    # === Extraction Stage ===
    extracted_text: str = ""

    # === Structure Stage (LLM Output) ===
    profile: Optional[ExtractedProfile] = None

    # === Render Stage ===
    html: str = ""


class PipelineStage(BaseModel):
    """Tracks the current stage of the pipeline for state machine logic."""
    current: str = "IDLE"
    completed: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class DeploymentTarget(BaseModel):
    original_name: str
    final_name: str
    team_id: Optional[str] = None


class DeploymentResult(BaseModel):
    url: str
    original_name: str
    final_name: str
    deployment_id: Optional[str] = None
    project_created: bool = Field(
        default=False,
        description="The hosting project did not exist before this deploy"
    )


class UserRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    external_id: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class ProjectRecord(BaseModel):
    """Persisted link between a user, a template and a deployed site."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    prompt: Optional[str] = None
    content_json: Dict[str, Any] = Field(default_factory=dict)
    deployed_url: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "prompt": self.prompt,
            "contentJSON": self.content_json,
            "deployedUrl": self.deployed_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
