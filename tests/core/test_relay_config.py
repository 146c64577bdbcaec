from __future__ import annotations

from relay_core.config import DEFAULT_OPENAI_MODEL, load_settings


def test_defaults(monkeypatch) -> None:
    for key in (
        "GOOGLE_CLIENT_ID",
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "PORT",
        "PRICE_CACHE_TTL_S",
        "LINK_PROBE_TIMEOUT_S",
        "CORS_ORIGINS",
        "LLM_PROVIDER",
    ):
        monkeypatch.delenv(key, raising=False)
    settings = load_settings()
    assert settings.google_client_id == ""
    assert settings.openai_model == DEFAULT_OPENAI_MODEL
    assert settings.port == 8080
    assert settings.price_cache_ttl_s == 86400.0
    assert settings.link_probe_timeout_s == 2.5
    assert settings.cors_origins == ("*",)
    assert settings.llm_provider == "openai"


def test_overrides_and_malformed_values(monkeypatch) -> None:
    monkeypatch.setenv("GOOGLE_CLIENT_ID", " client.apps.googleusercontent.com ")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-mini")
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("PRICE_CACHE_TTL_S", "soon")
    monkeypatch.setenv("LINK_PROBE_TIMEOUT_S", "-1")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    settings = load_settings()
    assert settings.google_client_id == "client.apps.googleusercontent.com"
    assert settings.openai_model == "gpt-4.1-mini"
    assert settings.port == 9090
    assert settings.price_cache_ttl_s == 86400.0
    assert settings.link_probe_timeout_s == 2.5
    assert settings.cors_origins == ("https://a.example", "https://b.example")
