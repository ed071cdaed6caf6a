from __future__ import annotations

import json
import logging
import re
import time
import uuid
from typing import Any

from resume_edge.ai.types import AIClient
from resume_edge.analytics.db import log_ai_analysis_run
from resume_edge.core.errors import AnalysisError
from resume_edge.schemas.resume import (
    ATSFeedback,
    ContentAnalysis,
    FormattingFeedback,
    JobMatchAnalysis,
    ResumeFeedback,
)

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_RESPONSE_EXAMPLE = """{
    "overall_score": 85,
    "ATS": {
        "score": 78,
        "tips": [
            "Include keywords like 'JavaScript', 'React', 'Node.js'",
            "Add quantifiable achievements with numbers",
            "Use action verbs to start bullet points"
        ]
    },
    "content_analysis": {
        "strengths": [
            "Strong technical background",
            "Relevant work experience",
            "Clear project descriptions"
        ],
        "improvements": [
            "Add more quantifiable metrics",
            "Include soft skills examples",
            "Strengthen the professional summary"
        ]
    },
    "formatting": {
        "score": 82,
        "suggestions": [
            "Use consistent formatting throughout",
            "Ensure clear section headings",
            "Maintain adequate white space"
        ]
    },
    "job_match_analysis": {
        "matching_skills": ["JavaScript", "React", "Problem-solving"],
        "missing_skills": ["Node.js", "AWS", "Docker"],
        "relevance_score": 80
    },
    "recommendations": [
        "Tailor your summary for this specific role",
        "Add relevant certifications",
        "Include portfolio links if applicable"
    ]
}"""


def build_feedback_prompt(resume_text: str, job_title: str, job_description: str, company_name: str) -> str:
    return (
        f"Please analyze this resume for a {job_title} position at {company_name}. "
        "Provide detailed, actionable feedback.\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Resume Content:\n{resume_text}\n\n"
        "Please respond with ONLY valid JSON in this exact format:\n"
        f"{_RESPONSE_EXAMPLE}"
    )


def fallback_feedback(*, job_title: str, company_name: str) -> ResumeFeedback:
    return ResumeFeedback(
        overall_score=78,
        ats=ATSFeedback(
            score=75,
            tips=[
                f"Optimize for {job_title} keywords",
                "Include quantifiable achievements",
                "Use ATS-friendly formatting",
            ],
        ),
        content_analysis=ContentAnalysis(
            strengths=["Resume processed successfully", "Professional format detected"],
            improvements=["Add more specific details", "Include relevant metrics"],
        ),
        formatting=FormattingFeedback(
            score=80,
            suggestions=["Maintain consistent formatting", "Use clear section headers"],
        ),
        job_match_analysis=JobMatchAnalysis(
            matching_skills=["General experience"],
            missing_skills=["Specific technical skills"],
            relevance_score=75,
        ),
        recommendations=[
            f"Tailor resume for {job_title} role",
            f"Research {company_name}'s requirements",
            "Add relevant certifications",
        ],
        source="fallback",
    )


def _score(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError:
            return 0
    else:
        return 0
    if number != number:  # NaN
        return 0
    return int(round(max(0.0, min(100.0, number))))


def _strings(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _section(payload: dict[str, Any], *keys: str) -> dict[str, Any]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, dict):
            return value
    return {}


def coerce_feedback(payload: dict[str, Any]) -> ResumeFeedback:
    ats = _section(payload, "ATS", "ats")
    content = _section(payload, "content_analysis")
    formatting = _section(payload, "formatting")
    job_match = _section(payload, "job_match_analysis")
    return ResumeFeedback(
        overall_score=_score(payload.get("overall_score")),
        ats=ATSFeedback(score=_score(ats.get("score")), tips=_strings(ats.get("tips"))),
        content_analysis=ContentAnalysis(
            strengths=_strings(content.get("strengths")),
            improvements=_strings(content.get("improvements")),
        ),
        formatting=FormattingFeedback(
            score=_score(formatting.get("score")),
            suggestions=_strings(formatting.get("suggestions")),
        ),
        job_match_analysis=JobMatchAnalysis(
            matching_skills=_strings(job_match.get("matching_skills")),
            missing_skills=_strings(job_match.get("missing_skills")),
            relevance_score=_score(job_match.get("relevance_score")),
        ),
        recommendations=_strings(payload.get("recommendations")),
        source="ai",
    )


def parse_feedback_text(text: str, *, job_title: str, company_name: str) -> ResumeFeedback:
    """Pull the outermost JSON object out of a free-text model answer.

    Anything that does not decode to a JSON object yields the fallback
    feedback instead of an error.
    """
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        logger.info("ai_feedback_not_json chars=%s", len(text or ""))
        return fallback_feedback(job_title=job_title, company_name=company_name)
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        logger.info("ai_feedback_json_invalid: %s", exc)
        return fallback_feedback(job_title=job_title, company_name=company_name)
    if not isinstance(payload, dict):
        return fallback_feedback(job_title=job_title, company_name=company_name)
    return coerce_feedback(payload)


def request_feedback(
    client: AIClient,
    *,
    resume_text: str,
    job_title: str,
    job_description: str,
    company_name: str,
) -> tuple[ResumeFeedback, int]:
    """Run one AI feedback call. Returns the feedback and the raw response length."""
    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    prompt = build_feedback_prompt(resume_text, job_title, job_description, company_name)
    try:
        raw = client.generate_text(prompt)
    except AnalysisError as exc:
        _log_ai_run(
            run_id=run_id,
            client=client,
            status="error",
            error_code=exc.code,
            started=started,
        )
        raise

    feedback = parse_feedback_text(raw, job_title=job_title, company_name=company_name)
    _log_ai_run(
        run_id=run_id,
        client=client,
        status="success" if feedback.source == "ai" else "fallback",
        error_code=None if feedback.source == "ai" else "invalid_json",
        response_chars=len(raw),
        started=started,
    )
    return feedback, len(raw)


def _log_ai_run(
    *,
    run_id: str,
    client: AIClient,
    status: str,
    started: float,
    error_code: str | None = None,
    response_chars: int | None = None,
) -> None:
    try:
        log_ai_analysis_run(
            run_id=run_id,
            provider=getattr(client, "provider", "unknown"),
            model=getattr(client, "model", "unknown"),
            status=status,
            error_code=error_code,
            response_chars=response_chars,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
    except Exception:  # pragma: no cover
        logger.debug("ai_run_logging_failed", exc_info=True)
