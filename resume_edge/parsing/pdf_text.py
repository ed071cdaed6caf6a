from __future__ import annotations

import logging
from io import BytesIO

from resume_edge.core.errors import PDFExtractionError
from .models import ExtractedText

logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MESSAGE = (
    "Could not extract text from PDF. Please ensure it's not password-protected or corrupted."
)


def extract_text_from_pdf(content: bytes) -> ExtractedText:
    """Extract plain text from every page, one newline after each page."""
    try:
        from pypdf import PdfReader

        reader = PdfReader(BytesIO(content))
        if reader.is_encrypted and not reader.decrypt(""):
            raise PDFExtractionError("PDF is encrypted.", code="pdf_encrypted")

        page_texts: list[str] = []
        full_text = ""
        for index, page in enumerate(reader.pages, start=1):
            page_text = page.extract_text() or ""
            page_texts.append(page_text)
            full_text += page_text + "\n"
            logger.debug("pdf_page_extracted page=%s chars=%s", index, len(page_text))
        page_count = len(reader.pages)
    except PDFExtractionError as exc:
        logger.warning("pdf_text_extraction_failed: %s", exc)
        raise PDFExtractionError(
            EXTRACTION_FAILED_MESSAGE, user_message=EXTRACTION_FAILED_MESSAGE, code=exc.code
        ) from exc
    except Exception as exc:
        logger.warning("pdf_text_extraction_failed: %s", exc)
        raise PDFExtractionError(
            EXTRACTION_FAILED_MESSAGE, user_message=EXTRACTION_FAILED_MESSAGE, code="pdf_unreadable"
        ) from exc

    text = full_text.strip()
    return ExtractedText(text=text, pages=page_count, characters=len(text), page_texts=page_texts)
