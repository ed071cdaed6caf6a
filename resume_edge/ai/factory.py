from resume_edge.ai.config import AIConfig, load_ai_config
from resume_edge.ai.types import AIClient
from resume_edge.core.errors import AIConfigurationError

from resume_edge.ai.providers.openai_provider import OpenAIProvider
from resume_edge.ai.providers.gemini_provider import GeminiProvider


def get_ai_client(cfg: AIConfig | None = None) -> AIClient:
    cfg = cfg or load_ai_config()

    if cfg.provider == "gemini":
        return GeminiProvider(config=cfg)

    if cfg.provider == "openai":
        return OpenAIProvider(config=cfg)

    raise AIConfigurationError(f"Unsupported AI_PROVIDER='{cfg.provider}'", code="ai_provider_unknown")
