from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional
from pathlib import Path


class LLMConfig(BaseModel):
    """Completion provider configuration."""
    provider: Literal["openai", "ollama", "groq", "gemini"] = Field(
        default="openai",
        description="Which LLM backend to use"
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for cloud providers (not needed for Ollama)"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Custom API endpoint (e.g., for Ollama: http://localhost:11434)"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Lower = more deterministic outputs"
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Upper bound for a single completion call"
    )


class DeployConfig(BaseModel):
    """Deployment platform configuration."""
    api_base: str = Field(
        default="https://api.vercel.com",
        description="REST endpoint of the deployment platform"
    )
    token: Optional[str] = Field(
        default=None,
        description="Bearer token; remote deletion is skipped without it"
    )
    team_id: Optional[str] = Field(
        default=None,
        description="Optional team/namespace scope"
    )
    domain: str = Field(
        default="vercel.app",
        description="Public domain sites are served under"
    )
    branding_suffix: str = Field(
        default="crux-ai",
        description="Appended to every derived site name"
    )
    timeout_seconds: float = Field(default=30.0, gt=0)


class IntakeConfig(BaseModel):
    """Upload limits and temporary storage."""
    upload_dir: Optional[Path] = Field(
        default=None,
        description="Where uploads are spooled (system temp dir if None)"
    )
    max_document_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    max_image_bytes: int = Field(default=5 * 1024 * 1024, gt=0)


class TemplateConfig(BaseModel):
    template_dir: Path = Field(
        default=Path("templates"),
        description="Directory holding manifest.yaml and the HTML templates"
    )


class DatabaseConfig(BaseModel):
    url: str = Field(
        default="sqlite+aiosqlite:///./data/crux.sqlite3",
        description="Async SQLAlchemy URL"
    )


class PipelineConfig(BaseModel):
    artifact_min_length: int = Field(
        default=80,
        ge=1,
        description="Minimum trimmed length of a publishable artifact"
    )


class AppConfig(BaseSettings):
    """Root application configuration.

    Loads from environment variables with the CRUX_ prefix.
    Example: CRUX_DEPLOY__TOKEN for deploy.token
    """
    llm: LLMConfig = Field(default_factory=LLMConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)
    intake: IntakeConfig = Field(default_factory=IntakeConfig)
    templates: TemplateConfig = Field(default_factory=TemplateConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )
    debug: bool = Field(
        default=False,
        description="Enable verbose logging"
    )

    model_config = SettingsConfigDict(
        env_prefix="CRUX_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
