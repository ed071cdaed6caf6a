from __future__ import annotations

from typing import Any

from resume_edge.core.errors import SubmissionError

PDF_CONTENT_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF-"
ALLOWED_EXTENSIONS = {"pdf"}


def _safe_str(value: Any, max_len: int = 255) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    return text[:max_len]


def extension_from_filename(filename: str) -> str:
    if "." not in filename:
        return ""
    return _safe_str(filename.rsplit(".", 1)[-1], 20).lower()


def normalize_content_type(content_type: str | None) -> str:
    return _safe_str((content_type or "").split(";")[0], 120).lower()


def looks_like_pdf_upload(*, filename: str, content_type: str | None) -> bool:
    """A PDF content type or a .pdf extension is enough; the signature check decides."""
    if normalize_content_type(content_type) == PDF_CONTENT_TYPE:
        return True
    return extension_from_filename(filename) in ALLOWED_EXTENSIONS


def validate_upload_signature(*, filename: str, content: bytes) -> None:
    ext = extension_from_filename(filename)
    if ext and ext not in ALLOWED_EXTENSIONS:
        raise SubmissionError("Please upload a PDF file")
    if not content.startswith(PDF_MAGIC):
        raise SubmissionError("File signature does not match .pdf content.")
