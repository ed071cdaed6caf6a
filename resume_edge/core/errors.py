from __future__ import annotations

from fastapi import status


class AnalysisError(RuntimeError):
    """Base class for failures that end a resume analysis.

    ``user_message`` is what the client sees, ``str(exc)`` keeps the
    technical detail for logs and traces.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_user_message = "An unexpected error occurred"

    def __init__(self, message: str, *, user_message: str | None = None, code: str = "analysis_failed"):
        super().__init__(message)
        self.user_message = user_message or self.default_user_message
        self.code = code


class SubmissionError(ValueError):
    status_code = status.HTTP_400_BAD_REQUEST

    @property
    def user_message(self) -> str:
        return str(self)


class StorageUnavailableError(AnalysisError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_user_message = "Storage services not available. Please refresh and try again."


class UploadError(AnalysisError):
    def __init__(self, message: str, *, code: str = "upload_failed"):
        super().__init__(message, user_message=message, code=code)


class PDFExtractionError(AnalysisError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_user_message = (
        "Could not read your PDF. Please ensure it contains text (not just images) and try again."
    )


class InsufficientTextError(PDFExtractionError):
    def __init__(self, message: str):
        super().__init__(message, user_message=message, code="insufficient_text")


class AIConfigurationError(AnalysisError):
    default_user_message = "AI service configuration error. Please check your API key setup."

    def __init__(self, message: str, *, code: str = "ai_not_configured"):
        super().__init__(message, code=code)


class AIServiceError(AnalysisError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_user_message = (
        "AI analysis service is temporarily unavailable. Please try again in a few minutes."
    )

    def __init__(self, message: str, *, code: str = "ai_unavailable"):
        super().__init__(message, code=code)
