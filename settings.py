from __future__ import annotations

import os
from dataclasses import dataclass

_BUNDLED_AIRPORTS = os.path.join(os.path.dirname(os.path.abspath(__file__)), "tools", "airports.json")


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    default_llm_provider: str = os.getenv("DEFAULT_LLM_PROVIDER", "anthropic")
    default_model: str = os.getenv("DEFAULT_MODEL", "claude-sonnet-4-20250514")
    anthropic_api_key: str = os.getenv("ANTHROPIC_API_KEY", "")
    xai_api_key: str = os.getenv("XAI_API_KEY", "")
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    anthropic_base_url: str = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com/v1")
    xai_base_url: str = os.getenv("XAI_BASE_URL", "https://api.x.ai/v1")
    llm_timeout_seconds: int = _int("LLM_TIMEOUT_SECONDS", 25)

    extraordinary_classifier_enabled: bool = _bool("EXTRAORDINARY_CLASSIFIER_ENABLED", True)
    extraordinary_timeout_seconds: float = _float("EXTRAORDINARY_TIMEOUT_SECONDS", 8.0)

    airports_data_path: str = os.getenv("AIRPORTS_DATA_PATH", _BUNDLED_AIRPORTS)
    default_carrier_size: str = os.getenv("DEFAULT_CARRIER_SIZE", "large")

    audit_log_enabled: bool = _bool("AUDIT_LOG_ENABLED", False)
    audit_log_path: str = os.getenv("AUDIT_LOG_PATH", "./data/eligibility_audit.log.jsonl")

    debug: bool = _bool("DEBUG", False)


SETTINGS = Settings()
