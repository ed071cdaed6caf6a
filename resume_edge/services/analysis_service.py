from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from pydantic import ValidationError

from resume_edge.ai.factory import get_ai_client
from resume_edge.ai.feedback import request_feedback
from resume_edge.ai.types import AIClient
from resume_edge.core.config import settings
from resume_edge.core.errors import InsufficientTextError, StorageUnavailableError, UploadError
from resume_edge.parsing.pdf_text import extract_text_from_pdf
from resume_edge.parsing.preview import render_pdf_preview
from resume_edge.schemas.resume import AnalysisRecord, AnalysisSummary, ResumeSubmission
from resume_edge.storage.file_store import FileStore, get_file_store
from resume_edge.storage.kv_store import KVStore, get_kv_store

logger = logging.getLogger(__name__)

RECORD_KEY_PREFIX = "resume:"

ProgressCallback = Callable[[int, str], None]


def record_key(analysis_id: str) -> str:
    return f"{RECORD_KEY_PREFIX}{analysis_id}"


@dataclass
class AnalysisTrace:
    entries: list[str] = field(default_factory=list)

    def add(self, message: str) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        self.entries.append(f"[{stamp}] {message}")
        logger.debug("analysis_trace %s", message)


@dataclass
class AnalysisOutcome:
    record: AnalysisRecord
    saved: bool
    trace: list[str]


def _preview_of(text: str) -> str:
    return text[: settings.extracted_text_preview_chars] + "..."


def run_resume_analysis(
    submission: ResumeSubmission,
    *,
    content: bytes,
    progress_callback: ProgressCallback | None = None,
    ai_client: AIClient | None = None,
    file_store: FileStore | None = None,
    kv_store: KVStore | None = None,
    trace: AnalysisTrace | None = None,
) -> AnalysisOutcome:
    trace = trace or AnalysisTrace()

    def progress(percent: int, message: str) -> None:
        trace.add(f"Progress: {percent}% - {message}")
        if progress_callback is not None:
            progress_callback(percent, message)

    trace.add(
        f"File selected: {submission.file_name} ({submission.file_size} bytes, {submission.content_type})"
    )
    logger.info("analysis_started file=%s bytes=%s", submission.file_name, submission.file_size)
    stored_paths: list[str] = []
    files = None

    try:
        progress(5, "Checking services...")
        try:
            files = file_store or get_file_store()
            kv = kv_store or get_kv_store()
            files.ensure_ready()
            kv.ping()
        except Exception as exc:
            raise StorageUnavailableError(f"Storage services not available: {exc}") from exc

        progress(15, "Uploading resume...")
        stored = files.save(content, filename=submission.file_name, content_type=submission.content_type)
        if not stored.path:
            raise UploadError("File upload completed but no path received", code="upload_no_path")
        stored_paths.append(stored.path)
        trace.add(f"File uploaded successfully: {stored.path}")

        progress(25, "Converting PDF to image...")
        image_path: str | None = None
        preview = render_pdf_preview(content, filename=submission.file_name, scale=settings.preview_scale)
        if preview.error:
            trace.add(f"Preview rendering failed, using placeholder: {preview.error}")
        try:
            stored_image = files.save(
                preview.content,
                filename=f"{submission.file_name.rsplit('.', 1)[0]}.png",
                content_type=preview.mime_type,
            )
            image_path = stored_image.path
            stored_paths.append(image_path)
            trace.add(f"Preview stored ({preview.renderer}): {image_path}")
        except UploadError as exc:
            trace.add(f"Preview upload failed: {exc}")
            logger.warning("analysis_preview_upload_failed file=%s: %s", submission.file_name, exc)

        progress(35, "Extracting resume content...")
        trace.add("Starting PDF text extraction")
        extracted = extract_text_from_pdf(content)
        trace.add(f"PDF loaded: {extracted.pages} pages")
        if len(extracted.text) < settings.min_resume_text_chars:
            raise InsufficientTextError(
                "Could not extract sufficient text from PDF. "
                "Please ensure it contains readable text and is not just images."
            )
        trace.add(f"Successfully extracted {extracted.characters} characters from resume")

        progress(60, "AI is analyzing your resume content...")
        client = ai_client or get_ai_client()
        trace.add(f"Sending resume content to {getattr(client, 'provider', 'AI')} ({getattr(client, 'model', '')})")
        feedback, response_chars = request_feedback(
            client,
            resume_text=extracted.text,
            job_title=submission.job_title,
            job_description=submission.job_description,
            company_name=submission.company_name,
        )
        trace.add(f"AI response length: {response_chars} characters")
        if feedback.source == "fallback":
            trace.add("JSON parsing failed, created fallback response")
        else:
            trace.add("Successfully parsed AI response as JSON")

        progress(85, "Processing analysis results...")
        record = AnalysisRecord(
            id=str(uuid.uuid4()),
            resume_path=stored.path,
            image_path=image_path,
            preview_renderer=preview.renderer if image_path else None,
            company_name=submission.company_name,
            job_title=submission.job_title,
            job_description=submission.job_description,
            feedback=feedback,
            file_name=submission.file_name,
            file_size=submission.file_size,
            page_count=extracted.pages,
            upload_date=datetime.now(timezone.utc).isoformat(),
            status="completed",
            extracted_text=_preview_of(extracted.text),
        )
    except Exception as exc:
        trace.add(f"Fatal error: {exc}")
        logger.warning("analysis_failed file=%s: %s", submission.file_name, exc)
        if files is not None:
            _discard_files(files, stored_paths)
        raise

    progress(95, "Saving analysis results...")
    saved = False
    try:
        kv.set(record_key(record.id), record.model_dump_json(by_alias=True))
        saved = True
        trace.add("Analysis results saved successfully")
    except Exception as exc:  # noqa: BLE001
        trace.add(f"KV save failed: {exc}")
        logger.warning("analysis_save_failed id=%s: %s", record.id, exc)

    progress(100, "Analysis complete!")
    logger.info(
        "analysis_completed id=%s score=%s source=%s saved=%s",
        record.id,
        record.feedback.overall_score,
        record.feedback.source,
        saved,
    )
    return AnalysisOutcome(record=record, saved=saved, trace=list(trace.entries))


def _discard_files(files: FileStore, paths: list[str]) -> None:
    for path in paths:
        try:
            files.delete(path)
        except (OSError, ValueError):
            logger.debug("analysis_cleanup_failed path=%s", path, exc_info=True)


def _load_record(raw: str) -> AnalysisRecord | None:
    try:
        return AnalysisRecord.model_validate_json(raw)
    except ValidationError:
        logger.warning("analysis_record_invalid", exc_info=True)
        return None


def get_analysis(analysis_id: str, *, kv_store: KVStore | None = None) -> AnalysisRecord | None:
    kv = kv_store or get_kv_store()
    raw = kv.get(record_key(analysis_id))
    if raw is None:
        return None
    return _load_record(raw)


def list_analyses(limit: int = 50, *, kv_store: KVStore | None = None) -> list[AnalysisSummary]:
    kv = kv_store or get_kv_store()
    summaries: list[AnalysisSummary] = []
    for _key, raw in kv.list(f"{RECORD_KEY_PREFIX}*", return_values=True):
        record = _load_record(raw)
        if record is None:
            continue
        summaries.append(
            AnalysisSummary(
                id=record.id,
                company_name=record.company_name,
                job_title=record.job_title,
                file_name=record.file_name,
                overall_score=record.feedback.overall_score,
                upload_date=record.upload_date,
                image_path=record.image_path,
            )
        )
        if len(summaries) >= limit:
            break
    return summaries


def delete_analysis(
    analysis_id: str,
    *,
    kv_store: KVStore | None = None,
    file_store: FileStore | None = None,
) -> bool:
    kv = kv_store or get_kv_store()
    files = file_store or get_file_store()
    record = get_analysis(analysis_id, kv_store=kv)
    if record is not None:
        _discard_files(files, [path for path in (record.resume_path, record.image_path) if path])
    deleted = kv.delete(record_key(analysis_id))
    if deleted:
        logger.info("analysis_deleted id=%s", analysis_id)
    return deleted


def wipe_analyses(*, kv_store: KVStore | None = None, file_store: FileStore | None = None) -> int:
    kv = kv_store or get_kv_store()
    files = file_store or get_file_store()
    deleted = 0
    for key, raw in kv.list(f"{RECORD_KEY_PREFIX}*", return_values=True):
        record = _load_record(raw)
        if record is not None:
            _discard_files(files, [path for path in (record.resume_path, record.image_path) if path])
        if kv.delete(key):
            deleted += 1
    logger.info("analysis_wipe deleted=%s", deleted)
    return deleted
