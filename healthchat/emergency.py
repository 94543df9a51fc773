import logging
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from healthchat.contacts import EMERGENCY_HELPLINES, PRIMARY_EMERGENCY_NUMBER
from healthchat.intent import normalize_message
from healthchat.schemas import EmergencyResult, Severity

logger = logging.getLogger(__name__)

# Keyword tiers, each phrase is matched as a substring of the normalized message.
# A tier is only scanned when no higher tier matched, the multilingual phrases are always scanned.

CRITICAL_KEYWORDS = (
    # cardiac/chest
    "chest pain", "heart attack", "cardiac arrest", "severe chest pain",
    "crushing chest pain", "chest tightness", "heart racing", "palpitations",
    # breathing
    "can't breathe", "difficulty breathing", "shortness of breath", "gasping",
    "choking", "suffocating", "respiratory distress", "wheezing severely",
    # neurological
    "stroke", "paralysis", "can't move", "slurred speech", "confusion",
    "severe headache", "sudden weakness", "facial drooping", "seizure",
    "unconscious", "fainting", "loss of consciousness",
    # bleeding/trauma
    "severe bleeding", "heavy bleeding", "blood loss", "hemorrhage",
    "deep cut", "severe injury", "broken bone", "head injury",
    # poisoning/overdose
    "poisoning", "overdose", "toxic", "swallowed poison", "drug overdose",
    # severe pain
    "excruciating pain", "unbearable pain", "severe abdominal pain",
    "intense pain", "agonizing pain",
    # other
    "allergic reaction", "anaphylaxis", "severe allergic", "swelling throat",
    "severe burn", "electric shock", "drowning", "hypothermia",
    "heat stroke", "severe dehydration",
)

HIGH_PRIORITY_KEYWORDS = (
    "severe pain", "high fever", "persistent vomiting", "severe diarrhea",
    "difficulty swallowing", "severe cough", "blood in urine", "blood in stool",
    "severe dizziness", "severe nausea", "severe headache", "blurred vision",
    "severe fatigue", "severe weakness", "severe abdominal pain",
    "persistent fever", "high temperature", "severe cold", "severe flu",
)

MEDIUM_PRIORITY_KEYWORDS = (
    "pain", "fever", "headache", "nausea", "vomiting", "diarrhea",
    "cough", "cold", "flu", "tired", "weak", "dizzy", "sore throat",
    "runny nose", "congestion", "ache", "discomfort", "unwell",
)

EMERGENCY_PHRASES: Dict[str, Tuple[str, ...]] = {
    "en": (
        "help me", "emergency", "urgent", "critical", "dying", "can't breathe",
        "severe pain", "call ambulance", "hospital now", "immediate help",
    ),
    "hi": (
        "मदद करो", "आपातकाल", "तुरंत", "गंभीर", "सांस नहीं आ रही", "तेज दर्द",
        "एम्बुलेंस बुलाओ", "अस्पताल", "तुरंत मदद",
    ),
    "or": (
        "ସାହାଯ୍ୟ କର", "ଜରୁରୀ", "ତୁରନ୍ତ", "ଗମ୍ଭୀର", "ନିଶ୍ୱାସ ନେଇ ପାରୁନି",
        "ତୀବ୍ର ଯନ୍ତ୍ରଣା", "ଆମ୍ବୁଲାନ୍ସ", "ହସ୍ପିଟାଲ",
    ),
}
ALL_EMERGENCY_PHRASES = tuple(p for phrases in EMERGENCY_PHRASES.values() for p in phrases)

CRITICAL_WEIGHT = 0.9
HIGH_WEIGHT = 0.7
MEDIUM_WEIGHT = 0.4
PHRASE_WEIGHT = 0.95

RECOMMENDED_ACTIONS: Dict[str, str] = {
    "critical": f"IMMEDIATE EMERGENCY: Call {PRIMARY_EMERGENCY_NUMBER} or visit emergency room NOW",
    "high": "URGENT: Seek medical attention within 2-4 hours",
    "medium": "Consult healthcare provider within 24-48 hours",
    "low": "Monitor symptoms and consult doctor if they persist",
}


def _matches(text: str, phrases: Iterable[str]) -> List[str]:
    return [p for p in phrases if p.lower() in text]


def analyze_emergency(message: str) -> EmergencyResult:
    """
    Scan a message for urgent medical language and grade its severity.

    Critical or multilingual emergency phrases always win; the high and medium
    tiers are only consulted while nothing stronger has matched, so their
    keywords and weights never pile onto a higher verdict.
    """
    t = normalize_message(message)
    detected: List[str] = []
    severity: Severity = "low"
    confidence = 0.0

    hits = _matches(t, CRITICAL_KEYWORDS)
    if hits:
        severity = "critical"
        detected.extend(hits)
        confidence += CRITICAL_WEIGHT * len(hits)

    if severity != "critical":
        hits = _matches(t, HIGH_PRIORITY_KEYWORDS)
        if hits:
            severity = "high"
            detected.extend(hits)
            confidence += HIGH_WEIGHT * len(hits)

    if severity == "low":
        hits = _matches(t, MEDIUM_PRIORITY_KEYWORDS)
        if hits:
            severity = "medium"
            detected.extend(hits)
            confidence += MEDIUM_WEIGHT * len(hits)

    hits = _matches(t, ALL_EMERGENCY_PHRASES)
    if hits:
        severity = "critical"
        detected.extend(hits)
        confidence += PHRASE_WEIGHT * len(hits)

    result = EmergencyResult(
        is_emergency=severity in ("high", "critical"),
        severity=severity,
        detected_keywords=list(dict.fromkeys(detected)), # dedupe, keep first-seen order
        confidence=min(confidence, 1.0),
        recommended_action=RECOMMENDED_ACTIONS[severity],
    )
    logger.debug("emergency analysis severity=%s keywords=%s", result.severity, result.detected_keywords)
    return result


def has_multiple_emergency_indicators(message: str) -> bool:
    analysis = analyze_emergency(message)
    return len(analysis.detected_keywords) >= 2 and analysis.confidence > 0.8


def _condition_severity(condition: Any) -> str:
    if isinstance(condition, Mapping):
        value = condition.get("severity")
    else:
        value = getattr(condition, "severity", None)
    return value or "Mild"


def severity_from_conditions(conditions: Iterable[Any]) -> Severity:
    """
    Map severity labels of an external condition analysis ("Mild" | "Moderate" | "Severe")
    onto the triage scale.

    :param conditions: mappings with a "severity" key or objects with a severity attribute
    :return: low for no conditions, otherwise critical / high / medium
    :rtype: Severity
    """
    severities = [_condition_severity(c) for c in (conditions or [])]
    if not severities:
        return "low"
    if "Severe" in severities:
        return "critical"
    if "Moderate" in severities:
        return "high"
    return "medium"


def format_emergency_message(result: EmergencyResult) -> str:
    """
    User facing emergency banner with the recommended action and helplines.
    Empty string when the analysis is not an emergency.
    """
    if not result.is_emergency:
        return ""

    if result.severity == "critical":
        banner = "🚨 CRITICAL EMERGENCY"
    else:
        banner = "⚠️ URGENT MEDICAL ATTENTION NEEDED"

    helplines = "\n".join(f"• {h.number} - {h.label}" for h in EMERGENCY_HELPLINES)

    return (
        f"{banner}\n\n"
        "Based on your symptoms, you may need immediate medical care.\n\n"
        f"🏥 {result.recommended_action}\n\n"
        "📞 Emergency Helplines:\n"
        f"{helplines}\n\n"
        f"⚠️ If symptoms worsen, call {PRIMARY_EMERGENCY_NUMBER} immediately."
    )
