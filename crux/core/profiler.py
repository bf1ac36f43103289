"""Structure stage - LLM-powered resume to profile extraction."""

import logging

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import JsonOutputParser

from ..errors import (
    CompletionFormatError,
    CompletionServiceError,
    EmptyDocumentError,
    ValidationError,
)
from ..models import ExtractedProfile
from ..services import CompletionClient

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """Extract structured JSON from this resume text. Return valid JSON only, no markdown formatting.

Required structure:
{{
  "personalInfo": {{
    "name": "string",
    "title": "string",
    "email": "string",
    "phone": "string",
    "location": "string",
    "linkedin": "string",
    "github": "string",
    "portfolio": "string",
    "summary": "string"
  }},
  "experience": [
    {{
      "role": "string",
      "company": "string",
      "duration": "string",
      "location": "string",
      "description": "string",
      "achievements": ["string"]
    }}
  ],
  "projects": [
    {{
      "name": "string",
      "description": "string",
      "technologies": ["string"],
      "duration": "string",
      "role": "string",
      "achievements": ["string"],
      "links": {{
        "github": "string",
        "demo": "string",
        "documentation": "string"
      }}
    }}
  ],
  "achievements": ["string"],
  "skills": {{
    "technical": ["string"],
    "frameworks": ["string"],
    "databases": ["string"],
    "tools": ["string"],
    "languages": ["string"]
  }},
  "education": [
    {{
      "degree": "string",
      "institution": "string",
      "duration": "string",
      "gpa": "string",
      "relevant_coursework": ["string"]
    }}
  ],
  "certifications": [
    {{
      "name": "string",
      "issuer": "string",
      "date": "string",
      "credential_id": "string"
    }}
  ]
}}

Extraction rules:
1. Keep at most one link per project, chosen in this order: source repository (github), live demo (demo), documentation (documentation).
2. Omit any field you cannot fill from the resume. Never emit empty strings, empty lists or placeholder values.
3. Put achievements tied to a specific role under that role's "achievements". Put achievements that are not tied to one role (awards, competitions, publications) in the top-level "achievements" list.
4. Group skills into the categories above; add a category only if the resume clearly uses it.
5. Keep entries in the order they appear in the resume.

Resume Text: {text}"""


LANDING_PAGE_PROMPT = (
    "Generate a full HTML landing page using TailwindCSS. "
    "Requirements: {prompt}. Keep inline JS minimal."
)


def build_extraction_prompt(text: str) -> str:
    return EXTRACTION_PROMPT.format(text=text)


PROFILE_PARSER = JsonOutputParser(pydantic_object=ExtractedProfile)


def parse_completion(raw: str) -> ExtractedProfile:
    """Parse a completion into an ExtractedProfile.

    Markdown code fences around the JSON are tolerated. Sub-fields that do
    not match the profile shape are kept as returned.

    Raises:
        CompletionFormatError: If the reply is not a JSON object. The raw
            text is attached.
    """
    try:
        data = PROFILE_PARSER.parse(raw)
    except OutputParserException as e:
        raise CompletionFormatError(
            "Failed to parse AI response as JSON", raw=raw, details=str(e)
        ) from e

    if not isinstance(data, dict):
        raise CompletionFormatError(
            "AI response is not a JSON object", raw=raw,
            details=f"got {type(data).__name__}",
        )

    return ExtractedProfile.model_validate(data)


async def _complete(completion: CompletionClient, prompt: str) -> str:
    """Issue exactly one completion call, classifying upstream failures."""
    try:
        raw = await completion.complete(prompt)
    except CompletionServiceError:
        raise
    except Exception as e:
        logger.error(f"Completion call failed: {e!r}")
        raise CompletionServiceError(
            "Completion service request failed", details=str(e) or type(e).__name__
        ) from e

    if not raw or not raw.strip():
        raise CompletionServiceError("Completion service returned no content")
    return raw


async def extract_profile(text: str, completion: CompletionClient) -> ExtractedProfile:
    """Turn extracted resume text into a structured profile.

    Raises:
        EmptyDocumentError: If ``text`` is blank.
        CompletionServiceError: If the upstream call fails or is empty.
        CompletionFormatError: If the reply cannot be parsed.
    """
    if not text or not text.strip():
        raise EmptyDocumentError("Resume text is empty; nothing to extract")

    raw = await _complete(completion, build_extraction_prompt(text))
    profile = parse_completion(raw)

    logger.info(
        f"Extracted profile for {profile.display_name or 'unknown'}: "
        f"{profile.count('experience')} roles, {profile.count('projects')} projects"
    )
    return profile


async def generate_landing_page(prompt: str, completion: CompletionClient) -> str:
    """Generate a free-form landing page from a requirements prompt."""
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt is required")

    return await _complete(completion, LANDING_PAGE_PROMPT.format(prompt=prompt.strip()))
