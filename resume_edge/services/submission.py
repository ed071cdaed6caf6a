from __future__ import annotations

from pydantic import ValidationError

from resume_edge.core.config import settings
from resume_edge.core.errors import SubmissionError
from resume_edge.schemas.resume import ResumeSubmission
from resume_edge.services.upload_security import (
    PDF_CONTENT_TYPE,
    looks_like_pdf_upload,
    validate_upload_signature,
)


def _max_upload_mb() -> int:
    return max(1, settings.max_upload_bytes // (1024 * 1024))


def validate_submission(
    *,
    filename: str | None,
    content: bytes | None,
    content_type: str | None,
    job_title: str | None,
    job_description: str | None,
    company_name: str | None = None,
) -> ResumeSubmission:
    """Check an upload form in the order the client reports problems.

    Raises ``SubmissionError`` with the first failing rule.
    """
    if not filename or content is None:
        raise SubmissionError("Please select a resume file")
    if not looks_like_pdf_upload(filename=filename, content_type=content_type):
        raise SubmissionError("Please upload a PDF file")

    size = len(content)
    if size > settings.max_upload_bytes:
        raise SubmissionError(f"File size must be less than {_max_upload_mb()}MB")
    if size < settings.min_upload_bytes:
        raise SubmissionError("File appears to be too small or corrupted")

    title = (job_title or "").strip()
    description = (job_description or "").strip()
    if not title:
        raise SubmissionError("Job title is required")
    if len(title) > settings.max_job_title_chars:
        raise SubmissionError(f"Job title must be at most {settings.max_job_title_chars} characters")
    if not description:
        raise SubmissionError("Job description is required")
    if len(description) < settings.min_job_description_chars:
        raise SubmissionError(
            "Job description should be more detailed "
            f"(at least {settings.min_job_description_chars} characters)"
        )
    if len(description) > settings.max_job_description_chars:
        raise SubmissionError(
            f"Job description must be at most {settings.max_job_description_chars} characters"
        )
    company = (company_name or "").strip() or settings.default_company_name
    if len(company) > settings.max_company_name_chars:
        raise SubmissionError(f"Company name must be at most {settings.max_company_name_chars} characters")

    validate_upload_signature(filename=filename, content=content)

    try:
        return ResumeSubmission(
            company_name=company,
            job_title=title,
            job_description=description,
            file_name=filename,
            file_size=size,
            content_type=PDF_CONTENT_TYPE,
        )
    except ValidationError as exc:
        errors = exc.errors()
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors else "submission"
        raise SubmissionError(f"Invalid {field} value") from exc


def validate_pdf_file(*, filename: str | None, content: bytes | None, content_type: str | None) -> None:
    """File-only checks used by the standalone conversion endpoints."""
    if not filename or content is None:
        raise SubmissionError("Please select a resume file")
    if not looks_like_pdf_upload(filename=filename, content_type=content_type):
        raise SubmissionError("Please upload a PDF file")
    if len(content) > settings.max_upload_bytes:
        raise SubmissionError(f"File size must be less than {_max_upload_mb()}MB")
    validate_upload_signature(filename=filename, content=content)
