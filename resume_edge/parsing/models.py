from __future__ import annotations

from pydantic import BaseModel, Field


class ExtractedText(BaseModel):
    text: str
    pages: int = Field(ge=0)
    characters: int = Field(ge=0)
    page_texts: list[str] = Field(default_factory=list)


class PreviewImage(BaseModel):
    content: bytes
    mime_type: str = "image/png"
    renderer: str
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    page_count: int | None = None
    error: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.renderer == "placeholder"
