import os
from dataclasses import dataclass

DEFAULT_MODELS = {
    "gemini": "gemini-1.5-flash-latest",
    "openai": "gpt-4o-mini",
}


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 2048
    timeout_s: float = 60.0


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "gemini").strip().lower()
    model = (os.getenv("AI_MODEL") or DEFAULT_MODELS.get(provider, "")).strip()
    return AIConfig(
        provider=provider,
        model=model,
        temperature=_env_float("AI_TEMPERATURE", 0.7),
        top_k=_env_int("AI_TOP_K", 40),
        top_p=_env_float("AI_TOP_P", 0.95),
        max_output_tokens=_env_int("AI_MAX_OUTPUT_TOKENS", 2048),
        timeout_s=_env_float("AI_TIMEOUT_S", 60.0),
    )
