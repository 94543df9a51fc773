from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

# keys that were copied from an example .env and never replaced
_PLACEHOLDER_MARKERS = ("placeholder", "your-", "replace-with", "dummy")

_TRUE = {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str] = None
    llm_model: str = "gpt-5"
    llm_max_output_tokens: int = 300
    # non medical messages above this confidence get a canned reply instead of an LLM call
    non_medical_threshold: float = 0.7
    # critical emergencies are answered directly, the LLM is not consulted
    short_circuit_critical: bool = True
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def llm_configured(self) -> bool:
        key = (self.openai_api_key or "").strip()
        if not key:
            return False
        return not any(marker in key.lower() for marker in _PLACEHOLDER_MARKERS)


def load_settings() -> Settings:
    """Read settings from the environment (and .env)."""
    threshold = _env_float("NON_MEDICAL_THRESHOLD", 0.7)
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"NON_MEDICAL_THRESHOLD must be within [0, 1], got {threshold}")

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        llm_model=os.getenv("LLM_MODEL", "gpt-5"),
        llm_max_output_tokens=_env_int("LLM_MAX_OUTPUT_TOKENS", 300),
        non_medical_threshold=threshold,
        short_circuit_critical=_env_bool("SHORT_CIRCUIT_CRITICAL", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_env_int("PORT", 8000),
    )
