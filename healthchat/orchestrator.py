import logging
from typing import Iterator, List, Optional, Tuple

from healthchat.config import Settings, load_settings
from healthchat.contacts import emergency_notice
from healthchat.emergency import analyze_emergency, format_emergency_message
from healthchat.intent import classify_intent, generate_non_medical_response
from healthchat.lang import detect_lang
from healthchat.llm import LLMServiceError, render_medical_reply_stream
from healthchat.schemas import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    EmergencyResult,
    IntentResult,
    Route,
    TraceRecord,
    severity_rank,
)

logger = logging.getLogger(__name__)

DEVELOPMENT_RESPONSE = """I'm your AI health assistant, running without a connected AI service right now.

**Health Support:**
• I can provide general health guidance and information
• For specific symptoms, I recommend monitoring your condition
• Always consult healthcare professionals for medical advice
• Emergency services should be contacted for urgent situations

*This is general health information - please consult a healthcare professional for personalized medical advice.*"""


class _Turn:
    """Per-turn state shared by the stream helpers."""

    def __init__(self, req: ChatRequest, lang: str):
        self.lang = lang
        self.assistant = ChatMessage(role="assistant", content="")
        self.history: List[ChatMessage] = list(req.history) + [
            ChatMessage(role="user", content=req.message),
            self.assistant,
        ]
        self.trace: List[TraceRecord] = []
        self.intent: Optional[IntentResult] = None
        self.emergency: Optional[EmergencyResult] = None

    def response(self, route: Route) -> ChatResponse:
        return ChatResponse(
            answer=self.assistant.content,
            history=self.history,
            route=route,
            lang=self.lang,
            intent=self.intent,
            emergency=self.emergency,
            trace=list(self.trace),
        )


def _yield_stream(*, stream: Iterator[str], turn: _Turn, route: Route) -> Iterator[Tuple[str, ChatResponse]]:
    """
    Stream helper.

    Consumes a text-delta iterator, appends each delta to the assistant message,
    and yields (delta, ChatResponse) so the UI can update incrementally.
    """
    for delta in stream:
        turn.assistant.content += delta
        yield delta, turn.response(route)


def _yield_text(text: str, turn: _Turn, route: Route) -> Iterator[Tuple[str, ChatResponse]]:
    # canned answers are sent as a single delta
    yield from _yield_stream(stream=iter([text]), turn=turn, route=route)


def _yield_llm(req: ChatRequest, turn: _Turn, route: Route, settings: Settings, fail_soft: bool) -> Iterator[Tuple[str, ChatResponse]]:
    turn.trace.append(TraceRecord(name="llm_reply", args={"model": settings.llm_model, "lang": turn.lang}, result={"note": "streamed"}))
    streamed = False
    try:
        for delta, partial in _yield_stream(
            stream=render_medical_reply_stream(turn.lang, req.message, req.history, settings),
            turn=turn,
            route=route,
        ):
            streamed = streamed or bool(delta)
            yield delta, partial
        if not streamed:
            raise LLMServiceError("LLM returned an empty response", "I couldn't generate a reply right now. Please try again.")
    except LLMServiceError as e:
        if not fail_soft:
            raise
        turn.trace.append(TraceRecord(name="llm_error", args={}, result={"error": e.error, "retryable": e.retryable}))
        yield from _yield_text(e.user_message, turn, route)


def handle_turn_stream(
    req: ChatRequest,
    settings: Optional[Settings] = None,
    non_medical_threshold: Optional[float] = None,
    fail_soft: bool = True,
) -> Iterator[Tuple[str, ChatResponse]]:
    """
    Triage one chat message and stream the answer.

    Order of decisions:
    1) intent gate: confident non-medical messages get a canned reply, no LLM call,
       unless the emergency scan flags them
    2) emergency: critical cases are answered with the emergency banner directly
       (when ``short_circuit_critical``), high severity prepends the banner to the LLM reply
    3) everything else goes to the LLM, or to a development reply when no key is configured

    Parameters
    ----------
    req : ChatRequest
        current message and the client-owned history
    settings : Settings, optional
        loaded from the environment when omitted
    non_medical_threshold : float, optional
        overrides ``settings.non_medical_threshold`` for this call
    fail_soft : bool
        when True an LLM failure is streamed as a user friendly message,
        when False ``LLMServiceError`` propagates to the caller

    Returns
    -------
    Iterator[Tuple[str, ChatResponse]]
        ``(delta_text, ChatResponse)`` tuples, the last one carries the full answer
    """
    settings = settings or load_settings()
    threshold = settings.non_medical_threshold if non_medical_threshold is None else non_medical_threshold

    turn = _Turn(req, detect_lang(req.message))

    turn.intent = classify_intent(req.message)
    turn.trace.append(TraceRecord(name="classify_intent", args={"text": req.message}, result=turn.intent.model_dump()))

    # the scan is cheap, it also guards canned replies ("hello, I can't breathe")
    turn.emergency = analyze_emergency(req.message)
    turn.trace.append(TraceRecord(name="analyze_emergency", args={"text": req.message}, result=turn.emergency.model_dump()))

    if not turn.intent.is_medical and turn.intent.confidence > threshold:
        if not turn.emergency.is_emergency:
            logger.info("non-medical message (%s, %.2f), answering with canned reply", turn.intent.category, turn.intent.confidence)
            yield from _yield_text(generate_non_medical_response(turn.intent, req.message), turn, "canned")
            return
        logger.info("non-medical message carries emergency language, skipping canned reply")

    if turn.emergency.is_emergency:
        logger.warning("emergency detected severity=%s keywords=%s", turn.emergency.severity, turn.emergency.detected_keywords)
        banner = format_emergency_message(turn.emergency)
        turn.trace.append(TraceRecord(name="format_emergency_message", args={"severity": turn.emergency.severity}, result={"note": "rendered"}))

        critical = severity_rank(turn.emergency.severity) >= severity_rank("critical")
        direct = critical and settings.short_circuit_critical
        if direct or not settings.llm_configured:
            if critical:
                banner = emergency_notice(turn.lang) + "\n\n" + banner
            yield from _yield_text(banner, turn, "emergency")
            return

        yield from _yield_text(banner + "\n\n", turn, "emergency_llm")
        yield from _yield_llm(req, turn, "emergency_llm", settings, fail_soft)
        return

    if not settings.llm_configured:
        logger.info("LLM not configured, using development reply")
        yield from _yield_text(DEVELOPMENT_RESPONSE, turn, "development")
        return

    logger.info("forwarding medical message to the LLM (%s)", settings.llm_model)
    yield from _yield_llm(req, turn, "llm", settings, fail_soft)


def handle_turn(
    req: ChatRequest,
    settings: Optional[Settings] = None,
    non_medical_threshold: Optional[float] = None,
) -> ChatResponse:
    """
    Non-streaming version of :func:`handle_turn_stream`.
    LLM failures are raised as ``LLMServiceError``.
    """
    last: Optional[ChatResponse] = None
    for _delta, partial in handle_turn_stream(req, settings, non_medical_threshold, fail_soft=False):
        last = partial
    return last
