import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from ...core import (
    PipelineDeps,
    PortfolioOrchestrator,
    SiteDeployer,
    accept_document,
    accept_image,
    generate_landing_page,
    publish_portfolio,
)
from ...db import ProjectRepository
from ...errors import ValidationError
from ...models import AppConfig, PortfolioState, TemplateReference
from ...services import CompletionClient, TemplateLibrary
from ..deps import (
    get_completion,
    get_config,
    get_current_user_id,
    get_deployer,
    get_pipeline_deps,
    get_repository,
    get_templates,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generate", tags=["generate"])

DEFAULT_TEMPLATE_ID = "modern-professional"
TEXT_PREVIEW_CHARS = 500


class PromptRequest(BaseModel):
    prompt: str = ""


class DeployRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    html: str = ""
    project_name: str = Field(default="", alias="projectName")
    template_id: Optional[str] = Field(default=None, alias="templateId")


async def _read_upload(upload: Optional[UploadFile], limit: int) -> Optional[bytes]:
    """Read at most ``limit + 1`` bytes so oversize files are detectable."""
    if upload is None:
        return None
    return await upload.read(limit + 1)


def _preview(text: str) -> str:
    if len(text) <= TEXT_PREVIEW_CHARS:
        return text
    return text[:TEXT_PREVIEW_CHARS] + "..."


@router.post("")
async def generate_page(
    payload: PromptRequest,
    completion: CompletionClient = Depends(get_completion),
):
    html = await generate_landing_page(payload.prompt, completion)
    return {"html": html}


@router.post("/upload-resume")
async def upload_resume(
    resume: Optional[UploadFile] = File(None),
    avatar: Optional[UploadFile] = File(None),
    templateId: str = Form(DEFAULT_TEMPLATE_ID),
    templateHtml: Optional[str] = Form(None),
    config: AppConfig = Depends(get_config),
    deps: PipelineDeps = Depends(get_pipeline_deps),
):
    """Resume upload → structured profile → rendered, validated HTML."""
    if resume is None:
        raise ValidationError("Resume file is required")

    content = await _read_upload(resume, config.intake.max_document_bytes)
    avatar_content = await _read_upload(avatar, config.intake.max_image_bytes)
    avatar_uri = accept_image(
        avatar.filename if avatar else None,
        avatar.content_type if avatar else None,
        avatar_content,
        config.intake,
    )

    reference = TemplateReference(template_id=templateId, body=templateHtml)

    async with accept_document(
        resume.filename, resume.content_type, content, config.intake
    ) as document:
        state = PortfolioState(document=document, template=reference, avatar=avatar_uri)
        final_state = await PortfolioOrchestrator(deps).run(state)

    return {
        "success": True,
        "data": final_state.profile.to_context(),
        "html": final_state.html,
        "templateId": templateId,
        "extractedText": _preview(final_state.extracted_text),
    }


@router.post("/deploy")
async def deploy(
    payload: DeployRequest,
    user_id: str = Depends(get_current_user_id),
    repo: ProjectRepository = Depends(get_repository),
    deployer: SiteDeployer = Depends(get_deployer),
):
    if not payload.html or not payload.project_name:
        raise ValidationError("Missing html or projectName")

    result, record = await publish_portfolio(
        repo,
        deployer,
        user_id,
        payload.html,
        payload.project_name,
        payload.template_id,
    )
    return {
        "success": True,
        "url": result.url,
        "originalName": result.original_name,
        "finalName": result.final_name,
        "deploymentId": result.deployment_id,
        "projectId": record.id,
    }


@router.get("/templates")
async def list_templates(templates: TemplateLibrary = Depends(get_templates)):
    return {"success": True, "templates": templates.list_templates()}
