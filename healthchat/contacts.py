from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

#frozen i.e., instances are immutable, the tables below are read only for the whole process
@dataclass(frozen=True)
class Helpline:
    number: str
    label: str

# national helplines shown under every emergency banner
EMERGENCY_HELPLINES: List[Helpline] = [
    Helpline(number="112", label="All Emergency Services"),
    Helpline(number="108", label="Medical Emergency/Ambulance"),
    Helpline(number="104", label="National Health Helpline"),
]

PRIMARY_EMERGENCY_NUMBER = EMERGENCY_HELPLINES[0].number

# one line notice in the user's own language, shown above the emergency banner
EMERGENCY_NOTICES: Dict[str, str] = {
    "en": (
        "This sounds serious and needs immediate medical attention. "
        "Please call 112 or go to the nearest emergency room right away."
    ),
    "hi": "यह गंभीर लगता है और तुरंत चिकित्सा सहायता की आवश्यकता है। कृपया 112 पर कॉल करें या तुरंत निकटतम आपातकालीन कक्ष में जाएं।",
    "or": "ଏହା ଗମ୍ଭୀର ଲାଗୁଛି ଏବଂ ତୁରନ୍ତ ଚିକିତ୍ସା ସହାୟତା ଆବଶ୍ୟକ। ଦୟାକରି 112 କୁ କଲ କରନ୍ତୁ କିମ୍ବା ତୁରନ୍ତ ନିକଟସ୍ଥ ଜରୁରୀକାଳୀନ କକ୍ଷକୁ ଯାଆନ୍ତୁ।",
}


def emergency_notice(lang: str) -> str:
    # unknown languages fall back to english
    return EMERGENCY_NOTICES.get(lang, EMERGENCY_NOTICES["en"])
