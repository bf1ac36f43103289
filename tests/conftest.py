"""Shared fixtures: in-process fakes for the completion service, the
deployment platform and the project repository."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from crux.core import PipelineDeps
from crux.errors import DeploymentDeleteError
from crux.models import (
    AppConfig,
    DeployConfig,
    IntakeConfig,
    PipelineConfig,
    ProjectRecord,
    TemplateConfig,
    UserRecord,
)
from crux.services import TemplateLibrary

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"


# =============================================================================
# PDF FIXTURES
# =============================================================================

def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(lines: List[str]) -> bytes:
    """Build a one-page PDF with ``lines`` drawn in Helvetica."""
    ops = []
    if lines:
        ops.append("BT /F1 12 Tf 72 720 Td")
        for i, line in enumerate(lines):
            if i:
                ops.append("0 -16 Td")
            ops.append(f"({_pdf_escape(line)}) Tj")
        ops.append("ET")
    stream = "\n".join(ops).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n"
        + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def resume_pdf() -> bytes:
    return make_pdf(["Jane Doe", "Engineer at Acme", "jane@example.com"])


@pytest.fixture
def blank_pdf() -> bytes:
    return make_pdf([])


# =============================================================================
# FAKES
# =============================================================================

JANE_PROFILE = {
    "personalInfo": {"name": "Jane Doe", "title": "Engineer", "email": "jane@example.com"},
    "experience": [{"role": "Engineer", "company": "Acme"}],
}


class FakeCompletion:
    """Completion client returning canned replies and recording prompts."""

    def __init__(self, reply: Any = None, error: Optional[Exception] = None):
        if reply is None:
            reply = JANE_PROFILE
        self.reply = reply if isinstance(reply, str) else json.dumps(reply)
        self.error = error
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakePlatform:
    """Deployment platform keeping its projects in a set.

    ``create_project`` on an existing name behaves like the real 409
    (returns False); ``delete_project`` on a missing name like the 404
    (returns True).
    """

    def __init__(self, configured: bool = True, existing=(), delete_error: bool = False):
        self.configured = configured
        self.projects = set(existing)
        self.uploads: List[Dict[str, str]] = []
        self.deleted: List[str] = []
        self.delete_error = delete_error

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def create_project(self, name: str) -> bool:
        if name in self.projects:
            return False
        self.projects.add(name)
        return True

    async def upload_artifact(self, name: str, html: str) -> Dict[str, Any]:
        self.uploads.append({"name": name, "html": html})
        return {"id": f"dpl_{len(self.uploads)}", "url": f"{name}-abc.vercel.app"}

    async def delete_project(self, name: str) -> bool:
        if self.delete_error:
            raise DeploymentDeleteError(
                "Failed to delete project from deployment platform",
                details={"error": {"code": "forbidden"}},
            )
        self.deleted.append(name)
        self.projects.discard(name)
        return True


class InMemoryRepository:
    """ProjectRepository backed by dicts."""

    def __init__(self):
        self.users: Dict[int, UserRecord] = {}
        self.projects: Dict[int, ProjectRecord] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def find_user_by_external_id(self, external_id: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.external_id == external_id:
                return user
        return None

    async def upsert_user(self, external_id: str, email: Optional[str] = None) -> UserRecord:
        user = await self.find_user_by_external_id(external_id)
        if user is None:
            user = UserRecord(
                id=len(self.users) + 1,
                external_id=external_id,
                email=email or "no-email@example.com",
                created_at=self._tick(),
            )
        elif email:
            user = user.model_copy(update={"email": email})
        self.users[user.id] = user
        return user

    async def create_project(self, user_id, title, prompt, content_json, deployed_url) -> ProjectRecord:
        record = ProjectRecord(
            id=max(self.projects, default=0) + 1,
            user_id=user_id,
            title=title,
            prompt=prompt,
            content_json=content_json,
            deployed_url=deployed_url,
            created_at=self._tick(),
        )
        self.projects[record.id] = record
        return record

    async def find_project(self, project_id: int) -> Optional[ProjectRecord]:
        return self.projects.get(project_id)

    async def list_projects(self, user_id: int) -> List[ProjectRecord]:
        rows = [p for p in self.projects.values() if p.user_id == user_id]
        return sorted(rows, key=lambda p: p.created_at, reverse=True)

    async def delete_project(self, project_id: int) -> bool:
        return self.projects.pop(project_id, None) is not None


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def template_library() -> TemplateLibrary:
    return TemplateLibrary(TEMPLATE_DIR)


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        deploy=DeployConfig(token="test-token", domain="example"),
        intake=IntakeConfig(upload_dir=tmp_path / "uploads"),
        templates=TemplateConfig(template_dir=TEMPLATE_DIR),
        pipeline=PipelineConfig(),
        _env_file=None,
    )


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def pipeline_deps(config, completion, template_library) -> PipelineDeps:
    return PipelineDeps(config=config, completion=completion, templates=template_library)
