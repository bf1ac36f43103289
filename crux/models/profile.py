"""Structured profile extracted from a resume.

Every field is optional: the completion service fills what it can and
templates render only what is present. Unknown keys are preserved so a
template can use anything the model returned.

Sub-fields are best-effort: a value that does not fit its declared type
(a skills list instead of a category map, a string instead of a list) is
kept as returned rather than failing the whole profile.
"""

import logging
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class _ProfileModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="wrap")
    @classmethod
    def _best_effort(cls, value: Any, handler, info: ValidationInfo) -> Any:
        try:
            return handler(value)
        except ValidationError:
            logger.warning(
                f"Keeping off-schema {cls.__name__}.{info.field_name} as returned "
                f"({type(value).__name__})"
            )
            return value


class PersonalInfo(_ProfileModel):
    name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    portfolio: Optional[str] = None
    summary: Optional[str] = None
    avatar: Optional[str] = Field(
        default=None,
        description="Inline data URI, only set while rendering"
    )


class Experience(_ProfileModel):
    role: Optional[str] = None
    company: Optional[str] = None
    duration: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    achievements: Optional[List[str]] = None


class ProjectLinks(_ProfileModel):
    github: Optional[str] = None
    demo: Optional[str] = None
    documentation: Optional[str] = None

    def preferred(self) -> Optional[str]:
        """Source repository first, then live demo, then documentation."""
        return self.github or self.demo or self.documentation


class ProjectEntry(_ProfileModel):
    name: Optional[str] = None
    description: Optional[str] = None
    technologies: Optional[List[str]] = None
    duration: Optional[str] = None
    role: Optional[str] = None
    achievements: Optional[List[str]] = None
    links: Optional[ProjectLinks] = None
    link: Optional[str] = None

    @model_validator(mode="after")
    def _choose_link(self) -> "ProjectEntry":
        if not self.link and isinstance(self.links, ProjectLinks):
            self.link = self.links.preferred()
        return self


class Education(_ProfileModel):
    degree: Optional[str] = None
    institution: Optional[str] = None
    duration: Optional[str] = None
    gpa: Optional[str] = None
    relevant_coursework: Optional[List[str]] = None


class Certification(_ProfileModel):
    name: Optional[str] = None
    issuer: Optional[str] = None
    date: Optional[str] = None
    credential_id: Optional[str] = None


class ExtractedProfile(_ProfileModel):
    personal_info: Optional[PersonalInfo] = Field(default=None, alias="personalInfo")
    experience: Optional[List[Experience]] = None
    projects: Optional[List[ProjectEntry]] = None
    achievements: Optional[List[str]] = None
    skills: Optional[Dict[str, List[str]]] = None
    education: Optional[List[Education]] = None
    certifications: Optional[List[Certification]] = None

    def with_avatar(self, data_uri: str) -> "ExtractedProfile":
        """Return a copy with the avatar attached to personal info."""
        info = self.personal_info
        if not isinstance(info, PersonalInfo):
            info = PersonalInfo()
        return self.model_copy(update={
            "personal_info": info.model_copy(update={"avatar": data_uri}),
        })

    @property
    def display_name(self) -> Optional[str]:
        if isinstance(self.personal_info, PersonalInfo):
            return self.personal_info.name
        return None

    def count(self, field: str) -> int:
        """Entries in a list field; 0 when absent or not a list."""
        value = getattr(self, field)
        return len(value) if isinstance(value, list) else 0

    def to_context(self) -> Dict[str, Any]:
        """Template/JSON representation with empty fields omitted."""
        return _prune(self.model_dump(by_alias=True, exclude_none=True, warnings=False))


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        pruned = {k: _prune(v) for k, v in value.items()}
        return {k: v for k, v in pruned.items() if v not in ("", [], {}, None)}
    if isinstance(value, list):
        return [_prune(v) for v in value if v not in ("", None)]
    return value
