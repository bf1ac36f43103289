"""Validate stage - publish gate for rendered HTML."""

import logging
import re

from ..errors import EmptyArtifactError

logger = logging.getLogger(__name__)

MIN_ARTIFACT_LENGTH = 80
STRUCTURAL_TAG_RE = re.compile(r"<(?:html|body|div|section|header)", re.IGNORECASE)


def validate_artifact(html: str, min_length: int = MIN_ARTIFACT_LENGTH) -> str:
    """Reject blank or non-HTML output before it can be published.

    A cheap heuristic, not a parse: the trimmed document must be at least
    ``min_length`` characters and contain one structural tag.

    Returns:
        ``html`` unchanged.

    Raises:
        EmptyArtifactError: If either check fails.
    """
    trimmed = (html or "").strip()

    if len(trimmed) < min_length:
        logger.warning(f"Rejected artifact: {len(trimmed)} chars < {min_length}")
        raise EmptyArtifactError(
            "Compiled HTML appears empty or invalid",
            details=f"{len(trimmed)} characters, at least {min_length} required",
        )

    if not STRUCTURAL_TAG_RE.search(trimmed):
        logger.warning("Rejected artifact: no structural HTML tag found")
        raise EmptyArtifactError(
            "Compiled HTML appears empty or invalid",
            details="no <html>, <body>, <div>, <section> or <header> tag found",
        )

    return html
