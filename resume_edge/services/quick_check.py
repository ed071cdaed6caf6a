from __future__ import annotations

from resume_edge.schemas.resume import QuickCheckResponse

QUICK_RECOMMENDATIONS = (
    "Ensure your contact information is prominent",
    "Use action verbs to describe your achievements",
    "Keep formatting consistent throughout",
    "Tailor content to match job requirements",
)

NEXT_STEPS = (
    "Review content for relevance to target position",
    "Quantify achievements with specific numbers",
    "Check for typos and grammatical errors",
    "Test readability on different devices",
)

_EMAIL_FRIENDLY_BYTES = 1024 * 1024


def build_quick_check(*, filename: str, size_bytes: int, text_chars: int | None = None) -> QuickCheckResponse:
    """Offline checklist derived from file properties only; no AI call."""
    size_kb = round(size_bytes / 1024, 1)
    if size_bytes <= _EMAIL_FRIENDLY_BYTES:
        size_note = f"{size_kb:.1f} KB - Optimal for email and online applications."
    else:
        size_note = f"{size_kb:.1f} KB - Consider compressing images so the file stays under 1 MB."
    if text_chars is None or text_chars > 0:
        file_quality = "Your PDF is properly formatted and readable."
    else:
        file_quality = "No selectable text was found. ATS software may not be able to read this PDF."
    return QuickCheckResponse(
        file_name=filename,
        size_kb=size_kb,
        file_quality=file_quality,
        size_note=size_note,
        recommendations=list(QUICK_RECOMMENDATIONS),
        next_steps=list(NEXT_STEPS),
        note=(
            "This analysis was generated based on your file properties "
            "and best practices for resume optimization."
        ),
    )
