import pytest

from chat_core.providers import create_client
from chat_core.providers.gemini_client import GeminiClient
from chat_core.providers.registry import get_provider_config


class DummySettings:
    default_provider = "gemini"
    google_genai_api_key = "g-test-key-0123456789"
    gemini_base_url = "https://example.test/v1beta/"
    primary_model_id = "gemini-pro-x"
    fallback_model_id = "gemini-flash-x"
    http_timeout = 1.0
    temperature = 0.2
    max_output_tokens = 64


def test_create_client_default(monkeypatch):
    monkeypatch.setattr("chat_core.providers.settings", DummySettings())
    client = create_client()
    assert isinstance(client, GeminiClient)


def test_create_client_unknown(monkeypatch):
    monkeypatch.setattr("chat_core.providers.settings", DummySettings())
    with pytest.raises(KeyError):
        create_client("kimi")


def test_registry_maps_tiers_to_models():
    cfg = get_provider_config("Gemini", DummySettings())
    assert cfg.base_url == "https://example.test/v1beta"
    assert cfg.models["primary"].provider_model == "gemini-pro-x"
    assert cfg.models["fallback"].provider_model == "gemini-flash-x"
    assert cfg.model_for("gemini-flash-x").tier == "fallback"
    assert cfg.model_for("unlisted").tier == "primary"
