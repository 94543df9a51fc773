from typing import Literal

# is used to detect user language so replies and emergency notices match it
# supported: english, hindi (Devanagari) and odia; any other script is treated as english

Lang = Literal["en", "hi", "or"]

LANGUAGE_NAMES = {"en": "English", "hi": "Hindi", "or": "Odia"}


def detect_lang(text: str) -> Lang:
    """
    Heuristically (based on chars' unicode block) determines the user language.
    Odia wins over Hindi when both scripts appear, otherwise assumes english.

    :param text: user message
    :type text: str
    :return: en, hi or or i.e., determined language
    :rtype: str
    """
    t = text or ""
    if any("\u0B00" <= ch <= "\u0B7F" for ch in t):
        return "or"
    if any("\u0900" <= ch <= "\u097F" for ch in t):
        return "hi"
    return "en"


def language_name(lang: str) -> str:
    return LANGUAGE_NAMES.get(lang, "English")
