from types import SimpleNamespace

import httpx
import openai
import pytest

from healthchat import llm
from healthchat.config import Settings
from healthchat.llm import (
    MAX_HISTORY_MESSAGES,
    LLMServiceError,
    _build_input,
    _translate_error,
    build_system_prompt,
    get_client,
    render_medical_reply_stream,
)
from healthchat.schemas import ChatMessage

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/responses")


def _status_error(cls, status):
    return cls("boom", response=httpx.Response(status, request=REQUEST), body=None)


def test_auth_error_is_not_retryable():
    err = _translate_error(_status_error(openai.AuthenticationError, 401))
    assert err.error == "Invalid OpenAI API key. Please check your configuration."
    assert "configuration issue" in err.user_message
    assert err.retryable is False


def test_rate_limit():
    err = _translate_error(_status_error(openai.RateLimitError, 429))
    assert err.error == "Rate limit exceeded"
    assert err.user_message == "Too many requests. Please wait a moment before trying again."
    assert err.retryable is True


@pytest.mark.parametrize("exc", [openai.APIConnectionError(request=REQUEST), openai.APITimeoutError(request=REQUEST)])
def test_connection_errors(exc):
    err = _translate_error(exc)
    assert err.error == "Network connection error"
    assert "internet connection" in err.user_message
    assert err.retryable is True


def test_server_error_keeps_status_code():
    err = _translate_error(_status_error(openai.InternalServerError, 502))
    assert "502" in err.error
    assert "temporarily overloaded" in err.user_message
    assert err.retryable is True


def test_other_errors_get_generic_message():
    err = _translate_error(_status_error(openai.BadRequestError, 400))
    assert err.error == "boom"
    assert "trouble connecting" in err.user_message


def test_build_input_keeps_recent_history():
    history = [
        ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(30)
    ]
    items = _build_input("en", "I have a cough", history)
    assert len(items) == MAX_HISTORY_MESSAGES + 2
    assert items[0]["role"] == "system"
    assert items[1]["content"] == "turn 20"
    assert items[-1] == {"role": "user", "content": "I have a cough"}


def test_system_prompt_names_the_language():
    assert "Hindi" in build_system_prompt("hi")
    assert "Odia" in build_system_prompt("or")
    assert "112" in build_system_prompt("en")


class FakeStream:
    def __init__(self, events, error=None):
        self.events = events
        self.error = error

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def __iter__(self):
        yield from self.events
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_client(monkeypatch):
    """Replaces the OpenAI client, ``stream`` holds the events to play back."""
    state = SimpleNamespace(calls=[], stream=FakeStream([]))

    def stream(**kwargs):
        state.calls.append(kwargs)
        return state.stream

    client = SimpleNamespace(responses=SimpleNamespace(stream=stream))
    monkeypatch.setattr(llm, "get_client", lambda settings: client)
    return state


def _delta(text):
    return SimpleNamespace(type="response.output_text.delta", delta=text)


def test_stream_yields_only_text_deltas(fake_client):
    fake_client.stream = FakeStream([
        SimpleNamespace(type="response.created"),
        _delta("Drink "),
        SimpleNamespace(type="response.output_text.done", text="Drink water."),
        _delta("water."),
        SimpleNamespace(type="response.completed"),
    ])
    settings = Settings(openai_api_key="sk-test", llm_model="gpt-5", llm_max_output_tokens=120)
    out = list(render_medical_reply_stream("en", "I feel dizzy", [], settings))
    assert out == ["Drink ", "water."]

    kwargs = fake_client.calls[0]
    assert kwargs["model"] == "gpt-5"
    assert kwargs["max_output_tokens"] == 120
    assert kwargs["reasoning"] == {"effort": "minimal"}


def test_reasoning_is_only_sent_to_gpt5(fake_client):
    settings = Settings(openai_api_key="sk-test", llm_model="gpt-4o-mini")
    list(render_medical_reply_stream("en", "I feel dizzy", [], settings))
    assert "reasoning" not in fake_client.calls[0]


def test_stream_failure_is_translated(fake_client):
    fake_client.stream = FakeStream([_delta("Drink ")], error=_status_error(openai.RateLimitError, 429))
    settings = Settings(openai_api_key="sk-test")
    out = []
    with pytest.raises(LLMServiceError) as exc_info:
        for delta in render_medical_reply_stream("en", "I feel dizzy", [], settings):
            out.append(delta)
    assert out == ["Drink "]
    assert exc_info.value.error == "Rate limit exceeded"
    assert isinstance(exc_info.value.__cause__, openai.RateLimitError)


def test_client_is_cached_per_key(monkeypatch):
    monkeypatch.setattr(llm, "_clients", {})
    first = get_client(Settings(openai_api_key="sk-one"))
    assert get_client(Settings(openai_api_key="sk-one")) is first
    second = get_client(Settings(openai_api_key="sk-two"))
    assert second is not first
    assert second.api_key == "sk-two"
