import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from healthchat.config import load_settings
from healthchat.emergency import (
    analyze_emergency,
    format_emergency_message,
    has_multiple_emergency_indicators,
    severity_from_conditions,
)
from healthchat.intent import classify_intent
from healthchat.llm import LLMServiceError
from healthchat.middleware import RequestLoggingMiddleware, setup_logging_config
from healthchat.orchestrator import handle_turn, handle_turn_stream
from healthchat.schemas import ChatRequest, ChatResponse, SeverityRequest, TriageRequest, TriageResponse

logger = logging.getLogger(__name__)

settings = load_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging_config(app.state.settings.log_level)
    logger.info(
        "Health chat service starting (llm_configured=%s, model=%s, non_medical_threshold=%.2f)",
        app.state.settings.llm_configured,
        app.state.settings.llm_model,
        app.state.settings.non_medical_threshold,
    )
    yield


app = FastAPI(title="Health Chat Triage", version="0.1.0", lifespan=lifespan) #creating the web-app instance (the object that uvicorn runs)
app.state.settings = settings
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(LLMServiceError)
async def llm_error_handler(request: Request, exc: LLMServiceError):
    # user friendly body the frontend can show as is, 503 signals a temporary issue
    return JSONResponse(
        status_code=503,
        content={
            "success": False,
            "error": exc.error,
            "response": exc.user_message,
            "retryable": exc.retryable,
        },
    )


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/chat")
def chat_info():
    return {
        "message": "Health chat API is running",
        "endpoint": "POST /chat",
        "requiredFields": ["message"],
        "optionalFields": ["history"],
    }


# no streaming, full triage result in one JSON body
@app.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest, request: Request):
    return handle_turn(req, settings=request.app.state.settings)


# with streaming enabled
@app.post("/chat/stream")
def chat_stream(req: ChatRequest, request: Request):
    turn_settings = request.app.state.settings

    def event_generator():
        for delta, _partial in handle_turn_stream(req, settings=turn_settings, fail_soft=True):
            yield delta

    return StreamingResponse(event_generator(), media_type="text/plain")


# classifiers only, never calls the LLM
@app.post("/triage", response_model=TriageResponse)
def triage(req: TriageRequest):
    emergency = analyze_emergency(req.message)
    return TriageResponse(
        intent=classify_intent(req.message),
        emergency=emergency,
        has_multiple_indicators=has_multiple_emergency_indicators(req.message),
        emergency_message=format_emergency_message(emergency),
    )


@app.post("/triage/severity")
def triage_severity(req: SeverityRequest):
    return {"severity": severity_from_conditions(req.conditions)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
