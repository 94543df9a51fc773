import pytest

from healthchat import orchestrator
from healthchat.config import Settings
from healthchat.llm import LLMServiceError


@pytest.fixture
def offline_settings():
    # no key: emergencies and development replies only
    return Settings(openai_api_key=None)


@pytest.fixture
def llm_settings():
    return Settings(openai_api_key="sk-test", llm_model="gpt-5")


@pytest.fixture
def fake_llm(monkeypatch):
    """Replaces the LLM stream with a canned one and records the calls."""
    calls = []

    def fake_stream(lang, message, history, settings):
        calls.append({"lang": lang, "message": message, "history": list(history)})
        yield "Rest "
        yield "and hydrate."

    monkeypatch.setattr(orchestrator, "render_medical_reply_stream", fake_stream)
    return calls


@pytest.fixture
def failing_llm(monkeypatch):
    def failing_stream(lang, message, history, settings):
        raise LLMServiceError("Rate limit exceeded", "Too many requests. Please wait a moment before trying again.")
        yield  # makes this a generator

    monkeypatch.setattr(orchestrator, "render_medical_reply_stream", failing_stream)


@pytest.fixture
def empty_llm(monkeypatch):
    def empty_stream(lang, message, history, settings):
        yield from ()

    monkeypatch.setattr(orchestrator, "render_medical_reply_stream", empty_stream)
