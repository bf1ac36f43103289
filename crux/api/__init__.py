"""HTTP surface for the generation and deployment pipeline."""

from .app import create_app
from .deps import HeaderIdentity, IdentityResolver

__all__ = ["create_app", "HeaderIdentity", "IdentityResolver"]
