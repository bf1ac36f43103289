"""Extraction stage - plain text from the uploaded document."""

import asyncio
import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ..errors import EmptyDocumentError, UnsupportedFormatError, ValidationError
from ..models import UploadedDocument
from .intake import DOCX, PDF

logger = logging.getLogger(__name__)


def read_pdf_text(path: Path) -> str:
    """Extract plain text from a PDF, page by page, without layout."""
    reader = PdfReader(str(path))
    pages_text = []
    for page in reader.pages:
        page_text = page.extract_text()
        if page_text:
            pages_text.append(page_text)
    return "\n\n".join(pages_text)


async def extract_text(document: UploadedDocument) -> str:
    """Return the trimmed text content of ``document``.

    Raises:
        UnsupportedFormatError: For DOCX, which has no extractor.
        ValidationError: If the PDF cannot be read.
        EmptyDocumentError: If no text could be extracted.
    """
    if document.media_type == DOCX:
        raise UnsupportedFormatError(
            "DOCX resumes are not supported yet. Please convert the file to PDF and upload again."
        )
    if document.media_type != PDF:
        raise UnsupportedFormatError(f"Cannot extract text from {document.media_type}")

    try:
        text = await asyncio.to_thread(read_pdf_text, document.path)
    except (PyPdfError, ValueError, OSError) as e:
        logger.warning(f"Failed to read PDF {document.filename}: {e}")
        raise ValidationError("Failed to read the uploaded PDF", details=str(e)) from e

    text = text.strip()
    if not text:
        raise EmptyDocumentError("Could not extract text from the uploaded file")

    logger.info(f"Extracted {len(text)} chars from {document.filename}")
    return text
