"""Shared test helpers.

Importing this module first points every on-disk store at a throwaway
directory, so it must come before any ``resume_edge`` import.
"""

import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

TEST_DATA_DIR = tempfile.mkdtemp(prefix="resume-edge-tests-")

os.environ.setdefault("KV_DB_PATH", os.path.join(TEST_DATA_DIR, "resume_kv.db"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(TEST_DATA_DIR, "uploads"))
os.environ.setdefault("ANALYTICS_DB_PATH", os.path.join(TEST_DATA_DIR, "analytics.db"))
os.environ.setdefault("AUTH_MODE", "public")
os.environ.setdefault("DEBUG_TRACE", "1")

import fitz  # noqa: E402  PyMuPDF

RESUME_LINES = (
    "Jane Doe - Senior Backend Engineer",
    "jane.doe@example.com | +1 555 222 1111 | github.com/janedoe",
    "PROFESSIONAL SUMMARY",
    "Backend engineer with eight years of experience building Python services.",
    "EXPERIENCE",
    "Built Python microservices for payments used by 1.2M users at Acme Corp.",
    "Reduced API latency by 38% and cut infrastructure costs by $42,000 per year.",
    "Led migration from a monolith to an event-driven architecture on AWS.",
    "Mentored four engineers and introduced code review guidelines.",
    "EDUCATION",
    "B.Sc. Computer Science, State University, 2015",
    "SKILLS",
    "Python, FastAPI, PostgreSQL, Docker, Kubernetes, AWS, Redis, CI/CD",
)

JOB_DESCRIPTION = (
    "We are hiring a Senior Backend Engineer with strong Python, distributed systems "
    "and cloud architecture experience. You will own payment APIs, improve reliability "
    "metrics and collaborate closely with product teams."
)

FEEDBACK_JSON = """{
    "overall_score": 84,
    "ATS": {"score": 79, "tips": ["Add 'distributed systems' keyword", "Use standard headings"]},
    "content_analysis": {
        "strengths": ["Quantified impact", "Relevant backend experience"],
        "improvements": ["Expand on reliability work"]
    },
    "formatting": {"score": 88, "suggestions": ["Keep dates aligned"]},
    "job_match_analysis": {
        "matching_skills": ["Python", "AWS"],
        "missing_skills": ["Kafka"],
        "relevance_score": 81
    },
    "recommendations": ["Mention payment reliability metrics"]
}"""

# Keeps generated documents above the minimum upload size regardless of how
# the content stream is written.
_METADATA_PADDING = "resume test fixture " * 80


def make_pdf(lines=RESUME_LINES, *, pages: int = 1) -> bytes:
    doc = fitz.open()
    try:
        for _ in range(pages):
            page = doc.new_page()
            y = 72
            for line in lines:
                page.insert_text((72, y), line, fontsize=11)
                y += 18
        doc.set_metadata({"title": "Resume", "subject": _METADATA_PADDING})
        return doc.tobytes()
    finally:
        doc.close()


def make_image_only_pdf() -> bytes:
    doc = fitz.open()
    try:
        page = doc.new_page()
        page.draw_rect(fitz.Rect(72, 72, 300, 200), color=(0, 0, 0), fill=(0.2, 0.4, 0.6))
        doc.set_metadata({"title": "Scan", "subject": _METADATA_PADDING})
        return doc.tobytes()
    finally:
        doc.close()


class FakeAIClient:
    provider = "fake"
    model = "fake-model"

    def __init__(self, response=FEEDBACK_JSON):
        self.response = response
        self.prompts: list[str] = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def make_encrypted_pdf(user_password: str = "secret") -> bytes:
    doc = fitz.open()
    try:
        page = doc.new_page()
        page.insert_text((72, 72), "Confidential resume", fontsize=11)
        return doc.tobytes(
            encryption=fitz.PDF_ENCRYPT_RC4_128,
            owner_pw="owner-" + user_password,
            user_pw=user_password,
        )
    finally:
        doc.close()
