from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_OPENAI_MODEL = "gpt-5.2"
DEFAULT_PRICE_CACHE_TTL_S = 24 * 60 * 60.0
DEFAULT_PRICE_CACHE_MAX_ENTRIES = 1024
DEFAULT_LINK_PROBE_TIMEOUT_S = 2.5


def _parse_optional_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _parse_optional_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class Settings:
    google_client_id: str = ""
    openai_api_key: str = ""
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_base_url: str = "https://api.openai.com"
    openai_temperature: float | None = None
    openai_max_output_tokens: int | None = None
    openai_timeout_s: float = 30.0
    openai_max_retries: int = 0
    llm_provider: str = "openai"
    price_cache_ttl_s: float = DEFAULT_PRICE_CACHE_TTL_S
    price_cache_max_entries: int = DEFAULT_PRICE_CACHE_MAX_ENTRIES
    link_probe_timeout_s: float = DEFAULT_LINK_PROBE_TIMEOUT_S
    cors_origins: tuple[str, ...] = ("*",)
    port: int = 8080


def load_settings() -> Settings:
    ttl_s = _parse_optional_float(os.getenv("PRICE_CACHE_TTL_S"))
    max_entries = _parse_optional_int(os.getenv("PRICE_CACHE_MAX_ENTRIES"))
    probe_timeout_s = _parse_optional_float(os.getenv("LINK_PROBE_TIMEOUT_S"))
    timeout_s = _parse_optional_float(os.getenv("OPENAI_TIMEOUT_S"))
    max_retries = _parse_optional_int(os.getenv("OPENAI_MAX_RETRIES"))
    origins = tuple(
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
    )
    return Settings(
        google_client_id=os.getenv("GOOGLE_CLIENT_ID", "").strip(),
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        openai_model=os.getenv("OPENAI_MODEL", "").strip() or DEFAULT_OPENAI_MODEL,
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com"),
        openai_temperature=_parse_optional_float(os.getenv("OPENAI_TEMPERATURE")),
        openai_max_output_tokens=_parse_optional_int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS")),
        openai_timeout_s=timeout_s if timeout_s and timeout_s > 0 else 30.0,
        openai_max_retries=max(0, max_retries or 0),
        llm_provider=os.getenv("LLM_PROVIDER", "openai").strip().lower() or "openai",
        price_cache_ttl_s=ttl_s if ttl_s and ttl_s > 0 else DEFAULT_PRICE_CACHE_TTL_S,
        price_cache_max_entries=max(16, max_entries or DEFAULT_PRICE_CACHE_MAX_ENTRIES),
        link_probe_timeout_s=(
            probe_timeout_s if probe_timeout_s and probe_timeout_s > 0 else DEFAULT_LINK_PROBE_TIMEOUT_S
        ),
        cors_origins=origins or ("*",),
        port=_parse_optional_int(os.getenv("PORT")) or 8080,
    )
