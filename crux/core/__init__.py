"""Core pipeline logic for Crux AI."""

from .pipeline import PortfolioOrchestrator, PipelineDeps, Stage
from .intake import accept_document, accept_image
from .extraction import extract_text
from .profiler import extract_profile, parse_completion, generate_landing_page
from .renderer import render_portfolio
from .validator import validate_artifact
from .deployer import SiteDeployer, derive_site_name
from .reconciler import (
    require_user,
    record_deployment,
    publish_portfolio,
    delete_project_record,
    resolve_remote_name,
)

__all__ = [
    "PortfolioOrchestrator",
    "PipelineDeps",
    "Stage",
    "accept_document",
    "accept_image",
    "extract_text",
    "extract_profile",
    "parse_completion",
    "generate_landing_page",
    "render_portfolio",
    "validate_artifact",
    "SiteDeployer",
    "derive_site_name",
    "require_user",
    "record_deployment",
    "publish_portfolio",
    "delete_project_record",
    "resolve_remote_name",
]
