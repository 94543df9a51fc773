import logging
from typing import Dict, Iterator, List

import openai
from openai import OpenAI

from healthchat.config import Settings
from healthchat.contacts import PRIMARY_EMERGENCY_NUMBER
from healthchat.intent import ASSISTANT_NAME
from healthchat.lang import language_name
from healthchat.schemas import ChatMessage

logger = logging.getLogger(__name__)

# only the most recent turns are sent, older context rarely changes the answer
MAX_HISTORY_MESSAGES = 10

# one client per API key, so a settings swap with a new key is honoured
_clients: Dict[str, OpenAI] = {}


class LLMServiceError(Exception):
    """
    Raised when the hosted LLM could not produce a reply.
    Carries a technical error for logs and a message that is safe to show the user.
    """

    def __init__(self, error: str, user_message: str, retryable: bool = True):
        super().__init__(error)
        self.error = error
        self.user_message = user_message
        self.retryable = retryable


def get_client(settings: Settings) -> OpenAI:
    # created on first use so importing the package never needs a key
    key = settings.openai_api_key or ""
    client = _clients.get(key)
    if client is None:
        client = _clients[key] = OpenAI(api_key=settings.openai_api_key)
    return client


def _translate_error(exc: Exception) -> LLMServiceError:
    if isinstance(exc, openai.AuthenticationError):
        return LLMServiceError(
            "Invalid OpenAI API key. Please check your configuration.",
            "There's a configuration issue with the AI service. Please contact support.",
            retryable=False,
        )
    if isinstance(exc, openai.RateLimitError):
        return LLMServiceError(
            "Rate limit exceeded",
            "Too many requests. Please wait a moment before trying again.",
        )
    if isinstance(exc, openai.APIConnectionError): #also covers timeouts
        return LLMServiceError(
            "Network connection error",
            "Unable to connect to the AI service. Please check your internet connection and try again.",
        )
    if isinstance(exc, openai.InternalServerError):
        return LLMServiceError(
            f"LLM service is temporarily unavailable ({exc.status_code})",
            "The AI service is temporarily overloaded. Please wait a moment and try again.",
        )
    return LLMServiceError(
        str(exc) or exc.__class__.__name__,
        "I apologize, but I'm having trouble connecting to my AI service right now. Please try again in a few moments.",
    )


def build_system_prompt(lang: str) -> str:
    language = language_name(lang)
    return f"""
You are {ASSISTANT_NAME}, a friendly AI medical assistant.

Rules:
- Reply ONLY in {language}, the language of the user's message. Never mix languages.
- Keep every response concise (2-4 sentences) unless a longer assessment is explicitly requested.
- Be warm, calm and empathetic, use simple conversational language.
- Do not diagnose with certainty or prescribe dosages. For serious symptoms briefly recommend seeing a doctor.
- For life-threatening symptoms tell the user to call {PRIMARY_EMERGENCY_NUMBER} or go to the nearest emergency room right away.
""".strip()


def _build_input(lang: str, message: str, history: List[ChatMessage]) -> list:
    items = [{"role": "system", "content": build_system_prompt(lang)}]
    for m in history[-MAX_HISTORY_MESSAGES:]:
        items.append({"role": m.role, "content": m.content})
    items.append({"role": "user", "content": message})
    return items


def render_medical_reply_stream(lang: str, message: str, history: List[ChatMessage], settings: Settings) -> Iterator[str]:
    """
    Stream the medical reply for a user message.

    :param lang: user detected language
    :type lang: str
    :param message: current user message
    :param history: previous turns, oldest first
    :param settings: model and token limits
    :return: streamed text iterator
    :rtype: Iterator[str]
    :raises LLMServiceError: when the provider call fails, before or during streaming
    """
    kwargs = {
        "model": settings.llm_model,
        "input": _build_input(lang, message, history),
        "max_output_tokens": settings.llm_max_output_tokens,
    }
    if settings.llm_model.startswith("gpt-5"):
        kwargs["reasoning"] = {"effort": "minimal"} #replies are short, no need for long reasoning

    try:
        with get_client(settings).responses.stream(**kwargs) as stream:
            for event in stream:
                if event.type == "response.output_text.delta":
                    yield event.delta #generator to enable streaming
    except openai.OpenAIError as e:
        err = _translate_error(e)
        logger.error("LLM call failed: %s", err.error)
        raise err from e
