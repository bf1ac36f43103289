"""Error taxonomy for the generation and deployment pipeline.

Every error carries a human-readable message, an optional upstream
``details`` payload, and the HTTP status the API layer responds with.
"""

from typing import Any, Dict, Optional


class PortfolioError(Exception):
    """Base exception for all pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


# === Input / content gates (user-correctable) ===

class ValidationError(PortfolioError):
    """Bad input shape, size or type."""
    status_code = 400


class UnsupportedFormatError(PortfolioError):
    """Accepted document type whose text cannot be extracted."""
    status_code = 400


class EmptyDocumentError(PortfolioError):
    """Document contained no extractable text."""
    status_code = 400


class EmptyArtifactError(PortfolioError):
    """Rendered HTML failed the publish gate."""
    status_code = 400


class InvalidNameError(PortfolioError):
    """Derived site name violates platform constraints."""
    status_code = 400


class AuthenticationError(PortfolioError):
    status_code = 401


# === Pipeline ===

class PipelineStateError(PortfolioError):
    """A stage was reached without the state it needs."""
    status_code = 500


# === Completion service ===

class CompletionFormatError(PortfolioError):
    """Completion text could not be parsed into a profile.

    The raw completion is kept on ``raw`` for diagnostics.
    """
    status_code = 500

    def __init__(self, message: str, raw: str, details: Any = None):
        super().__init__(message, details)
        self.raw = raw

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["rawResponse"] = self.raw
        return body


class CompletionServiceError(PortfolioError):
    """Upstream completion call failed or returned nothing."""
    status_code = 502


# === Templates ===

class TemplateNotFoundError(PortfolioError):
    status_code = 400


class TemplateCompileError(PortfolioError):
    """Template body is syntactically invalid or failed to evaluate."""
    status_code = 500


# === Deployment platform ===

class DeploymentError(PortfolioError):
    status_code = 502


class DeploymentProjectError(DeploymentError):
    """Hosting project could not be created."""


class DeploymentUploadError(DeploymentError):
    """Artifact upload was rejected or failed."""


class DeploymentDeleteError(DeploymentError):
    """Remote project could not be removed."""


# === Persistence preconditions ===

class UserNotFoundError(PortfolioError):
    status_code = 404


class ProjectNotFoundError(PortfolioError):
    status_code = 404


def error_body(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    """Build an error body for failures that are not PortfolioErrors."""
    return PortfolioError(message, details).to_dict()
