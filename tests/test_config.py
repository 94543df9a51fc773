import pytest

from healthchat.config import Settings, load_settings


def test_defaults(monkeypatch):
    for name in ("OPENAI_API_KEY", "LLM_MODEL", "NON_MEDICAL_THRESHOLD", "SHORT_CIRCUIT_CRITICAL", "PORT"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.llm_model == "gpt-5"
    assert settings.non_medical_threshold == 0.7
    assert settings.short_circuit_critical is True
    assert settings.port == 8000
    assert settings.llm_configured is False


def test_overrides(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-real-key")
    monkeypatch.setenv("NON_MEDICAL_THRESHOLD", "0.85")
    monkeypatch.setenv("SHORT_CIRCUIT_CRITICAL", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = load_settings()
    assert settings.llm_configured is True
    assert settings.non_medical_threshold == 0.85
    assert settings.short_circuit_critical is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["abc", "1.5"])
def test_invalid_threshold(monkeypatch, value):
    monkeypatch.setenv("NON_MEDICAL_THRESHOLD", value)
    with pytest.raises(ValueError):
        load_settings()


def test_invalid_port(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT"):
        load_settings()


@pytest.mark.parametrize("key", ["", "   ", "your-openai-key", "placeholder", "replace-with-key", "dummy-key"])
def test_placeholder_keys_are_not_configured(key):
    assert Settings(openai_api_key=key).llm_configured is False
