from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, List, Literal, Optional

Role = Literal["user", "assistant"] #defining the only allowed roles

IntentCategory = Literal["medical", "general", "greeting", "personal", "technical"]
Severity = Literal["low", "medium", "high", "critical"]
Route = Literal["canned", "emergency", "emergency_llm", "development", "llm"]

# low < medium < high < critical
SEVERITY_ORDER: Dict[str, int] = {"low": 0, "medium": 1, "high": 2, "critical": 3}


def severity_rank(severity: str) -> int:
    return SEVERITY_ORDER[severity]


class IntentResult(BaseModel):
    model_config = ConfigDict(frozen=True) #results are never mutated after classification

    is_medical: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    category: IntentCategory
    suggested_response: Optional[str] = None  # canned reply for known non-medical messages

    @model_validator(mode="after")
    def _check_category(self) -> "IntentResult":
        if self.category == "medical":
            if not self.is_medical:
                raise ValueError("medical category requires is_medical=True")
            if self.suggested_response is not None:
                raise ValueError("medical intents never carry a suggested response")
        return self


class EmergencyResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_emergency: bool
    severity: Severity
    detected_keywords: List[str] = Field(default_factory=list) # deduplicated, first-seen order
    confidence: float = Field(..., ge=0.0, le=1.0) # saturating sum, not a probability
    recommended_action: str

    @model_validator(mode="after")
    def _check_emergency_flag(self) -> "EmergencyResult":
        if self.is_emergency != (self.severity in ("high", "critical")):
            raise ValueError(f"is_emergency={self.is_emergency} does not match severity={self.severity}")
        return self


class ChatMessage(BaseModel):
    role: Role
    content: str

class TraceRecord(BaseModel):
    name: str
    args: Dict[str, Any]
    result: Any

class ChatRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True) #a blank message is rejected like an empty one

    message: str = Field(..., min_length=1) #current user message
    history: List[ChatMessage] = Field(default_factory=list) #previous messages, owned by the client

class ChatResponse(BaseModel):
    answer: str #assistant's response
    history: List[ChatMessage] #updated history
    route: Route #which triage branch produced the answer
    lang: str = "en"
    intent: IntentResult
    emergency: Optional[EmergencyResult] = None
    trace: List[TraceRecord] = Field(default_factory=list) #recording triage steps taken during the handling


class ConditionSeverity(BaseModel):
    # severity label coming from an external condition analysis ("Mild" | "Moderate" | "Severe")
    severity: Optional[str] = None

class SeverityRequest(BaseModel):
    conditions: List[ConditionSeverity] = Field(default_factory=list)

class TriageRequest(BaseModel):
    message: str

class TriageResponse(BaseModel):
    intent: IntentResult
    emergency: EmergencyResult
    has_multiple_indicators: bool
    emergency_message: str
