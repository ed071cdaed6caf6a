from __future__ import annotations

import hashlib
import logging
import random
from io import BytesIO

from PIL import Image, ImageDraw, ImageFont

from .models import PreviewImage

logger = logging.getLogger(__name__)

PLACEHOLDER_WIDTH = 600
PLACEHOLDER_HEIGHT = 800
PLACEHOLDER_SECTIONS = ("PROFESSIONAL SUMMARY", "EXPERIENCE", "EDUCATION", "SKILLS")


def render_pdf_preview(content: bytes, *, filename: str, scale: float = 2.0) -> PreviewImage:
    """Render the first page as PNG, or a placeholder page if rendering fails."""
    try:
        return _render_first_page(content, scale=scale)
    except Exception as exc:  # noqa: BLE001
        logger.warning("pdf_preview_render_failed file=%s: %s", filename, exc)
        preview = render_placeholder_preview(filename=filename, size_bytes=len(content))
        return preview.model_copy(update={"error": str(exc) or exc.__class__.__name__})


def _render_first_page(content: bytes, *, scale: float) -> PreviewImage:
    import fitz  # PyMuPDF

    zoom = scale if scale > 0 else 1.0
    with fitz.open(stream=content, filetype="pdf") as doc:
        if doc.page_count < 1:
            raise ValueError("PDF has no pages to render.")
        page = doc.load_page(0)
        pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        return PreviewImage(
            content=pix.tobytes("png"),
            renderer="pymupdf",
            width=pix.width,
            height=pix.height,
            page_count=doc.page_count,
        )


def _font(size: int):
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        return ImageFont.load_default()


def _drawable(text: str, font) -> str:
    if isinstance(font, ImageFont.FreeTypeFont):
        return text
    return text.encode("latin-1", "replace").decode("latin-1")


def _text_centered(draw: ImageDraw.ImageDraw, text: str, *, center_x: int, baseline_y: int, font, fill: str) -> None:
    text = _drawable(text, font)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = center_x - (right - left) // 2
    draw.text((x, baseline_y - bottom), text, font=font, fill=fill)


def render_placeholder_preview(*, filename: str, size_bytes: int) -> PreviewImage:
    width, height = PLACEHOLDER_WIDTH, PLACEHOLDER_HEIGHT
    seed = int(hashlib.sha256(filename.encode("utf-8", errors="ignore")).hexdigest()[:8], 16)
    rng = random.Random(seed)

    image = Image.new("RGB", (width, height), "#ffffff")
    draw = ImageDraw.Draw(image)

    # shadow, page, border
    draw.rectangle((10, 10, width, height), fill="#e6e6e6")
    draw.rectangle((0, 0, width - 10, height - 10), fill="#ffffff")
    draw.rectangle((0, 0, width - 11, height - 11), outline="#e0e0e0", width=2)

    draw.rectangle((40, 40, width - 50, 120), fill="#2c3e50")
    _text_centered(draw, "YOUR NAME", center_x=width // 2, baseline_y=90, font=_font(28), fill="#ffffff")
    _text_centered(
        draw,
        "your.email@example.com | (555) 123-4567",
        center_x=width // 2,
        baseline_y=110,
        font=_font(16),
        fill="#ffffff",
    )

    heading_font = _font(18)
    y = 180
    for section in PLACEHOLDER_SECTIONS:
        label = _drawable(section, heading_font)
        bottom = draw.textbbox((0, 0), label, font=heading_font)[3]
        draw.text((40, y - bottom), label, font=heading_font, fill="#34495e")
        draw.rectangle((40, y + 5, 240, y + 6), fill="#3498db")
        for index in range(3):
            line_y = y + 30 + index * 20
            if line_y < height - 50:
                bar_width = int(rng.random() * 400 + 200)
                draw.rectangle((40, line_y, 40 + bar_width, line_y + 1), fill="#666666")
        y += 140

    footer = f"{filename} • {size_bytes / 1024:.1f} KB"
    _text_centered(draw, footer, center_x=width // 2, baseline_y=height - 20, font=_font(12), fill="#95a5a6")

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return PreviewImage(content=buffer.getvalue(), renderer="placeholder", width=width, height=height)
