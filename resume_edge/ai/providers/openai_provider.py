from __future__ import annotations

import logging
import os

from openai import OpenAI, OpenAIError

from resume_edge.ai.config import AIConfig, load_ai_config
from resume_edge.core.errors import AIConfigurationError, AIServiceError

logger = logging.getLogger(__name__)


class OpenAIProvider:
    provider = "openai"

    def __init__(
        self,
        config: AIConfig | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int = 2,
    ):
        cfg = config or load_ai_config()
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise AIConfigurationError(
                "OpenAI API key not found. Please add OPENAI_API_KEY to your environment variables."
            )
        self.model = cfg.model
        self._config = cfg
        self._client = OpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=cfg.timeout_s,
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    def generate_text(self, prompt: str) -> str:
        logger.info("openai_request model=%s prompt_len=%s", self.model, len(prompt))
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._config.temperature,
                top_p=self._config.top_p,
                max_tokens=self._config.max_output_tokens,
                response_format={"type": "json_object"},
            )
        except OpenAIError as exc:
            raise AIServiceError(f"OpenAI API error: {exc}", code="ai_http_error") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIServiceError("Invalid response structure from OpenAI API", code="ai_invalid_envelope")
        logger.info("openai_response model=%s chars=%s", self.model, len(content))
        return content
