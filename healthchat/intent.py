import logging
import random
import re

from healthchat.schemas import IntentResult

logger = logging.getLogger(__name__)

# Rule based intent gate, runs before any LLM call.
# Conversational patterns are checked first so short social messages never reach the keyword scoring.

ASSISTANT_NAME = "Dr. Sahayak"

MEDICAL_KEYWORDS = (
    # symptoms
    "pain", "ache", "hurt", "fever", "headache", "nausea", "vomit", "dizzy", "tired", "fatigue",
    "cough", "cold", "flu", "sore throat", "runny nose", "congestion", "sneeze",
    "rash", "itch", "swelling", "bruise", "cut", "wound", "bleeding", "burn",
    "chest pain", "shortness of breath", "difficulty breathing", "palpitations",
    "stomach ache", "abdominal pain", "diarrhea", "constipation", "heartburn",
    "back pain", "joint pain", "muscle pain", "cramp", "sprain",
    "anxiety", "depression", "stress", "insomnia", "sleep problems",
    # clinical terms
    "symptom", "diagnosis", "treatment", "medicine", "medication", "prescription",
    "doctor", "hospital", "clinic", "emergency", "urgent care",
    "blood pressure", "diabetes", "cholesterol", "heart disease", "cancer",
    "infection", "virus", "bacteria", "allergy", "asthma",
    "pregnancy", "menstruation", "period", "contraception",
    # body parts
    "head", "neck", "shoulder", "arm", "hand", "finger", "chest", "back",
    "stomach", "abdomen", "leg", "knee", "foot", "toe", "eye", "ear", "nose", "mouth", "throat",
    # question phrases
    "should i see a doctor", "is this normal", "what could this be", "how to treat",
    "when to worry", "is this serious", "medical advice", "health concern",
)

_GREETING_PAT = re.compile(r"^(hi|hello|hey|good morning|good afternoon|good evening)\b")

_IDENTITY_PAT = re.compile(r"what.*your.*name|who.*are.*you")
_MEMORY_PAT = re.compile(r"what.*my.*name|remember.*me")

_GENERAL_PATTERNS = [
    re.compile(p) for p in (
        r"what.*time", r"what.*weather", r"how.*are.*you",
        r"thank.*you", r"\bthanks\b", r"\b(good)?bye\b",
        # app usage questions
        r"how.*app.*work", r"how.*use", r"help.*navigate", r"\bfeatures\b",
    )
]

_MEDICAL_QUESTION_PATTERNS = [
    re.compile(p) for p in (
        r"should.*see.*doctor", r"is.*this.*normal", r"what.*could.*this.*be",
        r"how.*to.*treat", r"when.*to.*worry", r"is.*this.*serious",
        r"medical.*advice", r"health.*concern",
    )
]

GREETING_RESPONSES = (
    f"Hello! I'm {ASSISTANT_NAME}, your AI health assistant. How can I help you today?",
    "Hi there! I'm here to help with any health questions or concerns you might have.",
    "Good to see you! What can I assist you with regarding your health today?",
)

PERSONAL_RESPONSES = {
    "name": (
        f"I'm {ASSISTANT_NAME}, your AI medical assistant. I don't have access to your personal information "
        "unless you share it with me during our conversation. How can I help you with your health today?"
    ),
    "identity": (
        f"I'm {ASSISTANT_NAME}, an AI-powered medical assistant designed to provide helpful health guidance. "
        "I'm here to support you with medical questions and health concerns."
    ),
    "memory": (
        "I can only remember our current conversation. For your privacy and security, I don't store personal "
        "information between sessions. If you'd like personalized advice, please share relevant details during our chat."
    ),
}

GENERAL_RESPONSE = (
    f"I'm {ASSISTANT_NAME}, your AI health assistant. I'm specifically designed to help with medical questions "
    "and health concerns. If you have any health-related questions, I'd be happy to help! Otherwise, you might "
    "want to try a general-purpose assistant for non-medical queries."
)
TECHNICAL_RESPONSE = (
    "I'm focused on providing medical assistance. For technical questions about the app, you might want to check "
    "the help section or contact support. Is there anything health-related I can help you with?"
)
DEFAULT_RESPONSE = "I'm here to help with health and medical questions. What can I assist you with regarding your health today?"


def normalize_message(text: str) -> str:
    """
    Lower-cases and trims a chat message, folding typographic apostrophes
    so that "can’t" and "can't" match the same phrases.
    """
    return (text or "").strip().lower().replace("’", "'").replace("‘", "'")


def count_medical_keywords(normalized: str) -> int:
    # distinct keywords, substring match (so "chest pain" also counts "pain" and "chest")
    return sum(1 for kw in MEDICAL_KEYWORDS if kw in normalized)


def classify_intent(message: str) -> IntentResult:
    """
    Decide whether a chat message needs the medical path or can be answered with a canned reply.

    :param message: raw user message, any language, may be empty
    :type message: str
    :return: the classification, never raises
    :rtype: IntentResult
    """
    t = normalize_message(message)

    if _GREETING_PAT.search(t):
        return IntentResult(
            is_medical=False,
            confidence=0.9,
            category="greeting",
            suggested_response=random.choice(GREETING_RESPONSES),
        )

    if _IDENTITY_PAT.search(t):
        return IntentResult(is_medical=False, confidence=0.9, category="personal",
                            suggested_response=PERSONAL_RESPONSES["identity"])

    if _MEMORY_PAT.search(t):
        return IntentResult(is_medical=False, confidence=0.9, category="personal",
                            suggested_response=PERSONAL_RESPONSES["memory"])

    if any(p.search(t) for p in _GENERAL_PATTERNS):
        return IntentResult(is_medical=False, confidence=0.8, category="general")

    hits = count_medical_keywords(t)
    word_count = max(1, len(t.split()))
    density = hits / word_count
    logger.debug("medical keyword hits=%d words=%d density=%.2f", hits, word_count, density)

    if hits >= 2 or density > 0.3:
        return IntentResult(is_medical=True, confidence=min(0.9, 0.5 + density), category="medical")

    if hits == 1:
        return IntentResult(is_medical=True, confidence=0.6, category="medical")

    if any(p.search(t) for p in _MEDICAL_QUESTION_PATTERNS):
        return IntentResult(is_medical=True, confidence=0.8, category="medical")

    # no clear medical intent
    return IntentResult(is_medical=False, confidence=0.5, category="general")


def generate_non_medical_response(intent: IntentResult, message: str) -> str:
    """
    Canned reply for a message the caller decided not to forward to the LLM.
    Uses the classifier's suggestion when there is one, otherwise falls back on the category.
    """
    if intent.suggested_response:
        return intent.suggested_response

    if intent.category == "greeting":
        return random.choice(GREETING_RESPONSES)
    if intent.category == "personal":
        if "name" in normalize_message(message):
            return PERSONAL_RESPONSES["name"]
        return PERSONAL_RESPONSES["identity"]
    if intent.category == "general":
        return GENERAL_RESPONSE
    if intent.category == "technical":
        return TECHNICAL_RESPONSE
    return DEFAULT_RESPONSE
