from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from resume_edge.core.errors import AnalysisError, SubmissionError
from resume_edge.services.analysis_service import run_resume_analysis
from resume_edge.services.submission import validate_submission


def _read_text_arg(value: str) -> str:
    if value.startswith("@"):
        return Path(value[1:]).read_text(encoding="utf-8")
    return value


def _print_progress(percent: int, message: str) -> None:
    print(f"[{percent:3d}%] {message}", file=sys.stderr)


def _print_list(title: str, items: list[str]) -> None:
    if not items:
        return
    print(f"\n{title}:")
    for item in items:
        print(f"  - {item}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Score a PDF resume against a job description.")
    parser.add_argument("--resume", required=True, help="Path to the resume PDF")
    parser.add_argument("--job-title", required=True, help="Target job title")
    parser.add_argument(
        "--job-description",
        required=True,
        help="Job description text, or @path to read it from a file",
    )
    parser.add_argument("--company", default="", help="Company name (optional)")
    parser.add_argument("--json", action="store_true", help="Print the full analysis record as JSON")
    args = parser.parse_args()

    resume_path = Path(args.resume)
    content = resume_path.read_bytes()
    try:
        submission = validate_submission(
            filename=resume_path.name,
            content=content,
            content_type="application/pdf",
            job_title=args.job_title,
            job_description=_read_text_arg(args.job_description),
            company_name=args.company,
        )
        outcome = run_resume_analysis(submission, content=content, progress_callback=_print_progress)
    except SubmissionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except AnalysisError as exc:
        print(f"Error: {exc.user_message} ({exc})", file=sys.stderr)
        return 1

    record = outcome.record
    if args.json:
        print(json.dumps(record.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
        return 0

    feedback = record.feedback
    print(f"Analysis {record.id} for {record.job_title} at {record.company_name}")
    print(f"Overall score: {feedback.overall_score}/100 ({feedback.source})")
    print(f"ATS score: {feedback.ats.score}/100")
    print(f"Formatting score: {feedback.formatting.score}/100")
    print(f"Job relevance: {feedback.job_match_analysis.relevance_score}/100")
    _print_list("ATS tips", feedback.ats.tips)
    _print_list("Strengths", feedback.content_analysis.strengths)
    _print_list("Improvements", feedback.content_analysis.improvements)
    _print_list("Missing skills", feedback.job_match_analysis.missing_skills)
    _print_list("Recommendations", feedback.recommendations)
    if not outcome.saved:
        print("\nWarning: the analysis could not be saved.", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
