"""
Rule based message triage for a health chat assistant.

Decides whether a chat message needs the medical path or a canned reply,
and grades the emergency severity of medical messages.
"""

from .schemas import IntentResult, EmergencyResult
from .intent import classify_intent, generate_non_medical_response
from .emergency import (
    analyze_emergency,
    format_emergency_message,
    has_multiple_emergency_indicators,
    severity_from_conditions,
)

__all__ = [
    "IntentResult",
    "EmergencyResult",
    "classify_intent",
    "generate_non_medical_response",
    "analyze_emergency",
    "has_multiple_emergency_indicators",
    "severity_from_conditions",
    "format_emergency_message",
]

__version__ = "0.1.0"
