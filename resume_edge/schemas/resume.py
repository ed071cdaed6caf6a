from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FeedbackSource = Literal["ai", "fallback"]
AnalysisStatus = Literal["completed"]
PreviewRenderer = Literal["pymupdf", "placeholder"]


class ATSFeedback(BaseModel):
    score: int = Field(default=0, ge=0, le=100)
    tips: list[str] = Field(default_factory=list)


class ContentAnalysis(BaseModel):
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class FormattingFeedback(BaseModel):
    score: int = Field(default=0, ge=0, le=100)
    suggestions: list[str] = Field(default_factory=list)


class JobMatchAnalysis(BaseModel):
    matching_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    relevance_score: int = Field(default=0, ge=0, le=100)


class ResumeFeedback(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    overall_score: int = Field(default=0, ge=0, le=100)
    ats: ATSFeedback = Field(default_factory=ATSFeedback, alias="ATS")
    content_analysis: ContentAnalysis = Field(default_factory=ContentAnalysis)
    formatting: FormattingFeedback = Field(default_factory=FormattingFeedback)
    job_match_analysis: JobMatchAnalysis = Field(default_factory=JobMatchAnalysis)
    recommendations: list[str] = Field(default_factory=list)
    source: FeedbackSource = "ai"


class ResumeSubmission(BaseModel):
    company_name: str
    job_title: str = Field(min_length=1)
    job_description: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    file_size: int = Field(ge=0)
    content_type: str = "application/pdf"


class AnalysisRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    resume_path: str
    image_path: str | None = None
    preview_renderer: PreviewRenderer | None = None
    company_name: str
    job_title: str
    job_description: str
    feedback: ResumeFeedback
    file_name: str
    file_size: int = Field(ge=0)
    page_count: int = Field(default=0, ge=0)
    upload_date: str
    status: AnalysisStatus = "completed"
    extracted_text: str = ""


class AnalysisResponse(BaseModel):
    record: AnalysisRecord
    saved: bool
    trace: list[str] | None = None


class AnalysisSummary(BaseModel):
    id: str
    company_name: str
    job_title: str
    file_name: str
    overall_score: int = Field(ge=0, le=100)
    upload_date: str
    image_path: str | None = None


class AnalysisListResponse(BaseModel):
    items: list[AnalysisSummary]
    total: int = Field(ge=0)


class ProgressEvent(BaseModel):
    percent: int = Field(ge=0, le=100)
    message: str


class QuickCheckResponse(BaseModel):
    file_name: str
    size_kb: float = Field(ge=0)
    file_quality: str
    size_note: str
    recommendations: list[str]
    next_steps: list[str]
    note: str


class ExtractTextResponse(BaseModel):
    file_name: str
    text: str
    pages: int = Field(ge=0)
    characters: int = Field(ge=0)
