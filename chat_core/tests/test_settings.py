import pydantic
import pytest

from chat_core.config.settings import Settings


def test_settings_defaults(monkeypatch):
    for key in ("PRIMARY_MODEL_ID", "FALLBACK_MODEL_ID", "PROMPT_STYLE", "PRIMARY_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CHAT_CONFIG_FILE", "/nonexistent/config.yaml")
    s = Settings(_env_file=None)
    assert s.default_provider == "gemini"
    assert s.primary_model_id
    assert s.fallback_model_id
    assert s.primary_model_id != s.fallback_model_id
    assert s.prompt_style in ("chat", "text")


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("PRIMARY_MODEL_ID", "model-a")
    monkeypatch.setenv("FALLBACK_MODEL_ID", "model-b")
    monkeypatch.setenv("GOOGLE_GENAI_API_KEY", "k-0123456789abcdef")
    monkeypatch.setenv("PRIMARY_TIMEOUT", "2.5")
    s = Settings(_env_file=None)
    assert s.primary_model_id == "model-a"
    assert s.fallback_model_id == "model-b"
    assert s.google_genai_api_key == "k-0123456789abcdef"
    assert s.primary_timeout == 2.5


def test_settings_from_yaml(tmp_path, monkeypatch):
    monkeypatch.delenv("FALLBACK_MODEL_ID", raising=False)
    cfg = tmp_path / "chat.yaml"
    cfg.write_text("fallback_model_id: yaml-fallback\nprompt_style: text\n", encoding="utf-8")
    monkeypatch.setenv("CHAT_CONFIG_FILE", str(cfg))
    monkeypatch.delenv("PROMPT_STYLE", raising=False)
    s = Settings(_env_file=None)
    assert s.fallback_model_id == "yaml-fallback"
    assert s.prompt_style == "text"


def test_short_api_key_rejected(monkeypatch):
    monkeypatch.setenv("GOOGLE_GENAI_API_KEY", "short")
    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)
