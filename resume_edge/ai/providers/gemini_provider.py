from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from resume_edge.ai.config import AIConfig, load_ai_config
from resume_edge.core.errors import AIConfigurationError, AIServiceError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def _extract_text(data: Any) -> str:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise AIServiceError("Invalid response structure from Gemini API", code="ai_invalid_envelope") from exc
    if not isinstance(text, str):
        raise AIServiceError("Invalid response structure from Gemini API", code="ai_invalid_envelope")
    return text


class GeminiProvider:
    provider = "gemini"

    def __init__(
        self,
        config: AIConfig | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        cfg = config or load_ai_config()
        key = (api_key or os.getenv("GEMINI_API_KEY") or "").strip()
        if not key:
            raise AIConfigurationError(
                "Gemini API key not found. Please add GEMINI_API_KEY to your environment variables."
            )
        self.model = cfg.model
        self._config = cfg
        self._api_key = key
        self._base_url = (base_url or os.getenv("GEMINI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self._transport = transport

    def _endpoint(self) -> str:
        return f"{self._base_url}/models/{self.model}:generateContent"

    def _build_body(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [
                {"parts": [{"text": prompt}]},
            ],
            "generationConfig": {
                "temperature": self._config.temperature,
                "topK": self._config.top_k,
                "topP": self._config.top_p,
                "maxOutputTokens": self._config.max_output_tokens,
            },
        }

    def generate_text(self, prompt: str) -> str:
        logger.info("gemini_request model=%s prompt_len=%s", self.model, len(prompt))
        try:
            with httpx.Client(timeout=self._config.timeout_s, transport=self._transport) as client:
                resp = client.post(
                    self._endpoint(),
                    params={"key": self._api_key},
                    json=self._build_body(prompt),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise AIServiceError(f"Gemini API request failed: {exc}", code="ai_transport") from exc

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.error("gemini_request_failed status=%s body=%s", resp.status_code, resp.text[:500])
            raise AIServiceError(f"Gemini API error ({resp.status_code}): {resp.text}", code="ai_http_error")

        try:
            data = resp.json()
        except ValueError as exc:
            raise AIServiceError("Invalid response structure from Gemini API", code="ai_invalid_envelope") from exc

        text = _extract_text(data)
        logger.info("gemini_response model=%s chars=%s", self.model, len(text))
        return text
