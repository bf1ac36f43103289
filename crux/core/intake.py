"""Intake stage - upload validation and temporary-file lifetime."""

import asyncio
import base64
import logging
import mimetypes
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from ..errors import ValidationError
from ..models import IntakeConfig, UploadedDocument

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

DOCUMENT_TYPES = {
    PDF: ".pdf",
    DOCX: ".docx",
}
IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}

_GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def resolve_media_type(filename: Optional[str], content_type: Optional[str]) -> str:
    """Declared media type, falling back to the extension when it is generic."""
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared not in _GENERIC_TYPES:
        return declared
    guessed, _ = mimetypes.guess_type(filename or "")
    if guessed:
        return guessed
    suffix = Path(filename or "").suffix.lower()
    for media_type, extension in DOCUMENT_TYPES.items():
        if suffix == extension:
            return media_type
    return declared


def _megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):g} MB"


def _write_temp(content: bytes, suffix: str, directory: Optional[Path]) -> Path:
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix="upload-", suffix=suffix, dir=directory)
    with os.fdopen(fd, "wb") as f:
        f.write(content)
    return Path(name)


def _remove(path: Path) -> None:
    try:
        path.unlink()
        logger.debug(f"Removed temporary upload {path}")
    except FileNotFoundError:
        pass


@asynccontextmanager
async def accept_document(
    filename: Optional[str],
    content_type: Optional[str],
    content: Optional[bytes],
    config: IntakeConfig,
) -> AsyncIterator[UploadedDocument]:
    """Validate a resume upload and hold it in a temporary file.

    The temporary file exists only for the body of the ``async with``
    block and is deleted on every exit path.

    Raises:
        ValidationError: Missing file, unsupported type, or over the size limit.
    """
    if not content:
        raise ValidationError("Resume file is required")

    media_type = resolve_media_type(filename, content_type)
    if media_type not in DOCUMENT_TYPES:
        raise ValidationError(
            "Only PDF and DOCX files are supported",
            details={"mediaType": media_type or None},
        )

    size = len(content)
    if size > config.max_document_bytes:
        raise ValidationError(
            f"Resume file exceeds the {_megabytes(config.max_document_bytes)} limit",
            details={"size": size},
        )

    path = await asyncio.to_thread(
        _write_temp, content, DOCUMENT_TYPES[media_type], config.upload_dir
    )
    logger.info(f"Accepted upload {filename!r} ({media_type}, {size} bytes)")

    try:
        yield UploadedDocument(
            path=path,
            filename=filename or path.name,
            media_type=media_type,
            size=size,
        )
    finally:
        await asyncio.to_thread(_remove, path)


def accept_image(
    filename: Optional[str],
    content_type: Optional[str],
    content: Optional[bytes],
    config: IntakeConfig,
) -> Optional[str]:
    """Validate an optional avatar image and return it as a data URI.

    The image is never written to disk.

    Returns:
        ``data:<type>;base64,...`` or None when no image was sent.

    Raises:
        ValidationError: Unsupported image type or over the size limit.
    """
    if not content:
        return None

    media_type = resolve_media_type(filename, content_type)
    if media_type not in IMAGE_TYPES:
        raise ValidationError(
            "Avatar must be a JPEG, PNG or WEBP image",
            details={"mediaType": media_type or None},
        )

    if len(content) > config.max_image_bytes:
        raise ValidationError(
            f"Avatar exceeds the {_megabytes(config.max_image_bytes)} limit",
            details={"size": len(content)},
        )

    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{media_type};base64,{encoded}"
