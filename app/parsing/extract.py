from __future__ import annotations

from io import BytesIO
import logging
from pathlib import PurePath
from typing import Protocol

from docx import Document
from pypdf import PdfReader

from app.core.errors import InputValidationError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".md", ".pdf", ".docx")


class TextExtractor(Protocol):
    def extract(self, filename: str, content: bytes) -> str: ...


def _extract_txt(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def _extract_pdf(content: bytes) -> str:
    reader = PdfReader(BytesIO(content))
    text_parts: list[str] = []
    for page in reader.pages:
        page_text = (page.extract_text() or "").strip()
        if page_text:
            text_parts.append(page_text)
    return "\n".join(text_parts)


def _extract_docx(content: bytes) -> str:
    document = Document(BytesIO(content))
    paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    return "\n".join(paragraphs)


class DocumentTextExtractor:
    """Plain-text extraction for uploaded CVs (.txt, .md, .pdf, .docx)."""

    def extract(self, filename: str, content: bytes) -> str:
        extension = PurePath(filename or "").suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise InputValidationError(
                f"Unsupported file type '{extension or filename}'. "
                f"Supported types: {', '.join(SUPPORTED_EXTENSIONS)}",
                code="unsupported_file",
            )

        try:
            if extension == ".pdf":
                return _extract_pdf(content).strip()
            if extension == ".docx":
                return _extract_docx(content).strip()
            return _extract_txt(content).strip()
        except Exception as exc:  # noqa: BLE001 - corrupt uploads are a caller problem
            logger.warning("cv_extraction_failed extension=%s: %s", extension, exc)
            raise InputValidationError(
                f"Could not read text from '{filename}'.", code="unreadable_file"
            ) from exc
