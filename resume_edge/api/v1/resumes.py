import asyncio
import json
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import Response, StreamingResponse

from resume_edge.core.config import settings
from resume_edge.core.errors import AnalysisError, SubmissionError
from resume_edge.core.rate_limit import per_minute, rate_limit
from resume_edge.core.security import require_api_key
from resume_edge.parsing.pdf_text import extract_text_from_pdf
from resume_edge.parsing.preview import render_pdf_preview
from resume_edge.schemas.resume import (
    AnalysisListResponse,
    AnalysisRecord,
    AnalysisResponse,
    ExtractTextResponse,
    ProgressEvent,
    QuickCheckResponse,
    ResumeSubmission,
)
from resume_edge.services.analysis_service import (
    AnalysisOutcome,
    delete_analysis,
    get_analysis,
    list_analyses,
    run_resume_analysis,
    wipe_analyses,
)
from resume_edge.services.quick_check import build_quick_check
from resume_edge.services.submission import validate_pdf_file, validate_submission
from resume_edge.storage.file_store import get_file_store

router = APIRouter(dependencies=[Depends(require_api_key)])

UPLOAD_CHUNK_BYTES = 1024 * 64
ANALYZE_LIMIT = per_minute(settings.analyze_rate_limit_per_minute)
UPLOAD_TOOLS_LIMIT = per_minute(settings.upload_tools_rate_limit_per_minute)


async def _read_upload(file: UploadFile | None) -> bytes | None:
    if file is None or not file.filename:
        return None
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File size must be less than {settings.max_upload_bytes // (1024 * 1024)}MB",
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _raise_http_error(exc: Exception) -> None:
    if isinstance(exc, (AnalysisError, SubmissionError)):
        raise HTTPException(status_code=exc.status_code, detail=exc.user_message) from exc
    raise exc


def _analysis_response(outcome: AnalysisOutcome) -> AnalysisResponse:
    return AnalysisResponse(
        record=outcome.record,
        saved=outcome.saved,
        trace=outcome.trace if settings.debug_trace else None,
    )


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    data = json.dumps(payload, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


async def _validated_submission(
    file: UploadFile | None,
    company_name: str | None,
    job_title: str | None,
    job_description: str | None,
) -> tuple[ResumeSubmission, bytes]:
    content = await _read_upload(file)
    try:
        submission = validate_submission(
            filename=file.filename if file is not None else None,
            content=content,
            content_type=file.content_type if file is not None else None,
            job_title=job_title,
            job_description=job_description,
            company_name=company_name,
        )
    except SubmissionError as exc:
        _raise_http_error(exc)
    return submission, content


@router.post("/resumes/analyze", response_model=AnalysisResponse)
@rate_limit(ANALYZE_LIMIT)
async def resumes_analyze(
    request: Request,
    file: UploadFile | None = File(default=None),
    company_name: str | None = Form(default=None, alias="company-name"),
    job_title: str | None = Form(default=None, alias="job-title"),
    job_description: str | None = Form(default=None, alias="job-description"),
):
    _ = request
    submission, content = await _validated_submission(file, company_name, job_title, job_description)
    try:
        outcome = await asyncio.to_thread(run_resume_analysis, submission, content=content)
    except AnalysisError as exc:
        _raise_http_error(exc)
    return _analysis_response(outcome)


@router.post("/resumes/analyze/stream")
@rate_limit(ANALYZE_LIMIT)
async def resumes_analyze_stream(
    request: Request,
    file: UploadFile | None = File(default=None),
    company_name: str | None = Form(default=None, alias="company-name"),
    job_title: str | None = Form(default=None, alias="job-title"),
    job_description: str | None = Form(default=None, alias="job-description"),
):
    submission, content = await _validated_submission(file, company_name, job_title, job_description)

    async def event_stream():
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def push_progress(percent: int, message: str) -> None:
            event = ProgressEvent(percent=percent, message=message)
            loop.call_soon_threadsafe(queue.put_nowait, {"kind": "progress", "payload": event.model_dump()})

        def worker() -> None:
            try:
                outcome = run_resume_analysis(submission, content=content, progress_callback=push_progress)
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {"kind": "result", "payload": _analysis_response(outcome).model_dump(mode="json", by_alias=True)},
                )
            except AnalysisError as exc:
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {"kind": "error", "payload": {"message": exc.user_message, "status": exc.status_code}},
                )
            except Exception as exc:  # pragma: no cover
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {
                        "kind": "error",
                        "payload": {"message": str(exc), "status": status.HTTP_500_INTERNAL_SERVER_ERROR},
                    },
                )
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, {"kind": "done", "payload": {}})

        task = asyncio.create_task(asyncio.to_thread(worker))

        try:
            yield _sse_event("connected", {"ok": True})
            while True:
                if await request.is_disconnected():
                    break
                event = await queue.get()
                kind = event.get("kind")
                if kind == "done":
                    break
                if kind in {"progress", "result", "error"}:
                    yield _sse_event(kind, event.get("payload", {}))
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/resumes", response_model=AnalysisListResponse)
@rate_limit()
async def resumes_list(request: Request, limit: int = Query(default=50, ge=1, le=200)):
    _ = request
    items = list_analyses(limit=limit)
    return AnalysisListResponse(items=items, total=len(items))


@router.delete("/resumes")
@rate_limit(per_minute(settings.wipe_rate_limit_per_minute))
async def resumes_wipe(request: Request):
    _ = request
    return {"deleted": wipe_analyses()}


def _get_record_or_404(analysis_id: str) -> AnalysisRecord:
    record = get_analysis(analysis_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume analysis not found.")
    return record


@router.get("/resumes/{analysis_id}", response_model=AnalysisRecord)
@rate_limit()
async def resumes_get(request: Request, analysis_id: str):
    _ = request
    return _get_record_or_404(analysis_id)


def _stored_file_response(path: str | None, media_type: str, filename: str) -> Response:
    if not path:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stored file not found.")
    try:
        data = get_file_store().read(path)
    except (FileNotFoundError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stored file not found.") from exc
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.get("/resumes/{analysis_id}/file")
@rate_limit()
async def resumes_file(request: Request, analysis_id: str):
    _ = request
    record = _get_record_or_404(analysis_id)
    return _stored_file_response(record.resume_path, "application/pdf", record.file_name)


@router.get("/resumes/{analysis_id}/preview")
@rate_limit()
async def resumes_preview(request: Request, analysis_id: str):
    _ = request
    record = _get_record_or_404(analysis_id)
    filename = f"{record.file_name.rsplit('.', 1)[0]}.png"
    return _stored_file_response(record.image_path, "image/png", filename)


@router.delete("/resumes/{analysis_id}")
@rate_limit(per_minute(settings.delete_rate_limit_per_minute))
async def resumes_delete(request: Request, analysis_id: str):
    _ = request
    if not delete_analysis(analysis_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume analysis not found.")
    return {"deleted": True}


async def _validated_pdf(file: UploadFile | None) -> bytes:
    content = await _read_upload(file)
    try:
        validate_pdf_file(
            filename=file.filename if file is not None else None,
            content=content,
            content_type=file.content_type if file is not None else None,
        )
    except SubmissionError as exc:
        _raise_http_error(exc)
    return content


@router.post("/resumes/quick-check", response_model=QuickCheckResponse)
@rate_limit(UPLOAD_TOOLS_LIMIT)
async def resumes_quick_check(request: Request, file: UploadFile | None = File(default=None)):
    _ = request
    content = await _validated_pdf(file)
    try:
        text_chars: int | None = extract_text_from_pdf(content).characters
    except AnalysisError:
        text_chars = 0
    return build_quick_check(filename=file.filename, size_bytes=len(content), text_chars=text_chars)


@router.post("/resumes/extract-text", response_model=ExtractTextResponse)
@rate_limit(UPLOAD_TOOLS_LIMIT)
async def resumes_extract_text(request: Request, file: UploadFile | None = File(default=None)):
    _ = request
    content = await _validated_pdf(file)
    try:
        extracted = await asyncio.to_thread(extract_text_from_pdf, content)
    except AnalysisError as exc:
        _raise_http_error(exc)
    return ExtractTextResponse(
        file_name=file.filename,
        text=extracted.text,
        pages=extracted.pages,
        characters=extracted.characters,
    )


@router.post("/resumes/preview")
@rate_limit(UPLOAD_TOOLS_LIMIT)
async def resumes_render_preview(request: Request, file: UploadFile | None = File(default=None)):
    _ = request
    content = await _validated_pdf(file)
    preview = await asyncio.to_thread(
        render_pdf_preview, content, filename=file.filename, scale=settings.preview_scale
    )
    return Response(
        content=preview.content,
        media_type=preview.mime_type,
        headers={"X-Preview-Renderer": preview.renderer},
    )
