from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

AUDIT_RUBRICS = {"strict_ats", "knockout_ats", "europass_coach"}
AI_PROVIDERS = {"auto", "openai", "deepseek", "claude", "gemini"}


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


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    interview_rate_limit: str
    rate_limit_enabled: bool
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    ai_provider_override: str
    cv_audit_rubric: str
    pro_user_ids: tuple[str, ...]
    max_upload_bytes: int
    assessment_config_path: str | None


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    interview_rate_limit=_get_env("RATE_LIMIT_INTERVIEW", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    ai_provider_override=(_get_env("AI_PROVIDER", "auto") or "auto").strip().lower(),
    cv_audit_rubric=(_get_env("CV_AUDIT_RUBRIC", "knockout_ats") or "knockout_ats").strip().lower(),
    pro_user_ids=_get_env_list("PRO_USER_IDS", []),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    assessment_config_path=_get_env("ASSESSMENT_CONFIG_PATH"),
)


def validate_settings(config: Settings) -> None:
    if config.cv_audit_rubric not in AUDIT_RUBRICS:
        raise RuntimeError(
            f"CV_AUDIT_RUBRIC must be one of: {', '.join(sorted(AUDIT_RUBRICS))}."
        )
    if config.ai_provider_override not in AI_PROVIDERS:
        raise RuntimeError(
            f"AI_PROVIDER must be one of: {', '.join(sorted(AI_PROVIDERS))}."
        )


validate_settings(settings)
