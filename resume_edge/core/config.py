from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    auth_mode: str
    rate_limit: str
    rate_limit_enabled: bool
    analyze_rate_limit_per_minute: int
    upload_tools_rate_limit_per_minute: int
    delete_rate_limit_per_minute: int
    wipe_rate_limit_per_minute: int
    log_level: str
    sentry_dsn: str | None
    debug_trace: bool
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    trust_x_forwarded_for: bool
    kv_db_path: str
    upload_dir: str
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    record_retention_days: int
    max_upload_bytes: int
    min_upload_bytes: int
    min_job_description_chars: int
    max_job_title_chars: int
    max_company_name_chars: int
    max_job_description_chars: int
    min_resume_text_chars: int
    extracted_text_preview_chars: int
    default_company_name: str
    preview_scale: float


settings = Settings(
    api_key=_get_env("API_KEY"),
    auth_mode=(_get_env("AUTH_MODE", "public") or "public").strip().lower(),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    analyze_rate_limit_per_minute=_get_env_int("ANALYZE_RATE_LIMIT_PER_MINUTE", 10),
    upload_tools_rate_limit_per_minute=_get_env_int("UPLOAD_TOOLS_RATE_LIMIT_PER_MINUTE", 30),
    delete_rate_limit_per_minute=_get_env_int("DELETE_RATE_LIMIT_PER_MINUTE", 30),
    wipe_rate_limit_per_minute=_get_env_int("WIPE_RATE_LIMIT_PER_MINUTE", 5),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    debug_trace=_get_env_bool("DEBUG_TRACE", False),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    trust_x_forwarded_for=_get_env_bool("TRUST_X_FORWARDED_FOR", False),
    kv_db_path=_get_env("KV_DB_PATH", "data/resume_kv.db") or "data/resume_kv.db",
    upload_dir=_get_env("UPLOAD_DIR", "data/uploads") or "data/uploads",
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 180),
    record_retention_days=_get_env_int("RECORD_RETENTION_DAYS", 0),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    min_upload_bytes=_get_env_int("MIN_UPLOAD_BYTES", 1000),
    min_job_description_chars=_get_env_int("MIN_JOB_DESCRIPTION_CHARS", 50),
    max_job_title_chars=_get_env_int("MAX_JOB_TITLE_CHARS", 200),
    max_company_name_chars=_get_env_int("MAX_COMPANY_NAME_CHARS", 200),
    max_job_description_chars=_get_env_int("MAX_JOB_DESCRIPTION_CHARS", 50000),
    min_resume_text_chars=_get_env_int("MIN_RESUME_TEXT_CHARS", 100),
    extracted_text_preview_chars=_get_env_int("EXTRACTED_TEXT_PREVIEW_CHARS", 500),
    default_company_name=_get_env("DEFAULT_COMPANY_NAME", "Target Company") or "Target Company",
    preview_scale=_get_env_float("PREVIEW_SCALE", 2.0),
)

if settings.auth_mode not in {"public", "protected"}:
    raise RuntimeError("AUTH_MODE must be either 'public' or 'protected'.")

if settings.auth_mode == "protected" and not settings.api_key:
    raise RuntimeError("AUTH_MODE=protected requires API_KEY to be set.")
