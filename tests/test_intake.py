import base64

import pytest

from crux.core import accept_document, accept_image
from crux.core.intake import DOCX, PDF, resolve_media_type
from crux.errors import ValidationError
from crux.models import IntakeConfig


@pytest.fixture
def intake(tmp_path) -> IntakeConfig:
    return IntakeConfig(
        upload_dir=tmp_path,
        max_document_bytes=1024,
        max_image_bytes=16,
    )


class TestResolveMediaType:
    def test_declared_type_wins(self):
        assert resolve_media_type("cv.bin", "application/pdf") == PDF

    def test_parameters_are_dropped(self):
        assert resolve_media_type("cv.pdf", "application/pdf; charset=binary") == PDF

    def test_generic_type_falls_back_to_extension(self):
        assert resolve_media_type("cv.pdf", "application/octet-stream") == PDF
        assert resolve_media_type("cv.docx", None) == DOCX


class TestAcceptDocument:
    async def test_file_exists_only_inside_scope(self, intake, resume_pdf):
        async with accept_document("cv.pdf", PDF, resume_pdf, intake) as document:
            assert document.path.exists()
            assert document.path.suffix == ".pdf"
            assert document.path.parent == intake.upload_dir
            assert document.size == len(resume_pdf)
            assert document.filename == "cv.pdf"
            path = document.path

        assert not path.exists()

    async def test_file_removed_when_body_raises(self, intake, resume_pdf):
        with pytest.raises(RuntimeError):
            async with accept_document("cv.pdf", PDF, resume_pdf, intake) as document:
                path = document.path
                raise RuntimeError("boom")

        assert not path.exists()

    async def test_docx_is_accepted(self, intake):
        async with accept_document("cv.docx", DOCX, b"PK\x03\x04", intake) as document:
            assert document.media_type == DOCX
            assert document.path.suffix == ".docx"

    @pytest.mark.parametrize("content", [None, b""])
    async def test_missing_file(self, intake, content):
        with pytest.raises(ValidationError) as exc_info:
            async with accept_document("cv.pdf", PDF, content, intake):
                pass
        assert exc_info.value.message == "Resume file is required"

    async def test_unsupported_type(self, intake):
        with pytest.raises(ValidationError) as exc_info:
            async with accept_document("cv.txt", "text/plain", b"hello", intake):
                pass
        assert exc_info.value.message == "Only PDF and DOCX files are supported"
        assert list(intake.upload_dir.iterdir()) == []

    async def test_oversize_document(self, intake):
        with pytest.raises(ValidationError) as exc_info:
            async with accept_document("cv.pdf", PDF, b"x" * 1025, intake):
                pass
        assert exc_info.value.details == {"size": 1025}

    async def test_exactly_at_limit_is_accepted(self, intake):
        async with accept_document("cv.pdf", PDF, b"x" * 1024, intake) as document:
            assert document.size == 1024


class TestAcceptImage:
    def test_returns_data_uri(self, intake):
        uri = accept_image("me.png", "image/png", b"\x89PNG", intake)
        assert uri == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()

    def test_absent_image_is_none(self, intake):
        assert accept_image(None, None, None, intake) is None
        assert accept_image("me.png", "image/png", b"", intake) is None

    def test_rejects_non_image(self, intake):
        with pytest.raises(ValidationError):
            accept_image("me.gif", "image/gif", b"GIF89a", intake)

    def test_rejects_oversize_image(self, intake):
        with pytest.raises(ValidationError):
            accept_image("me.jpg", "image/jpeg", b"x" * 17, intake)
