"""
Speaking Coach Configuration
============================

This file contains ALL configuration for the IELTS speaking coach.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional

from .errors import MissingCredential


# =============================================================================
# USER SETTINGS - Edit these to customize the coach
# =============================================================================

# Examiner variant: "examiner" (formal IELTS examiner) or "partner"
PROFILE = "examiner"
MODEL_OVERRIDE = None  # Optional: force a model regardless of profile

# Turn-taking
SILENCE_TIMEOUT_MS = 5000

# Speech settings
ENABLE_TTS = True
LANGUAGE_CODE = "en-US"
TTS_VOICE = "en-US-Neural2-F"

# Logging
LOG_FILE = "./_sessions/coach.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Environment variables holding the API credential, in lookup order
API_KEY_ENV_VARS = ("OPENAI_API_KEY", "OPEN_API_KEY", "REACT_APP_OPEN_API_KEY")

# LLM
CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
LLM_TIMEOUT = 60
TEMPERATURE = 0.7
TURN_MAX_TOKENS = 150
ANALYSIS_MAX_TOKENS = 2048
QUESTION_MAX_TOKENS = 50

# Audio capture
SAMPLE_RATE = 16000
CHANNELS = 1
CHUNK_MS = 100

# TTS playback
TTS_SAMPLE_RATE = 16000


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    api_key: str
    profile: str = PROFILE
    model_override: Optional[str] = MODEL_OVERRIDE
    silence_timeout_ms: int = SILENCE_TIMEOUT_MS
    enable_tts: bool = ENABLE_TTS
    language_code: str = LANGUAGE_CODE
    tts_voice: str = TTS_VOICE
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def silence_timeout_seconds(self) -> float:
        return self.silence_timeout_ms / 1000.0


def read_api_key() -> Optional[str]:
    """Return the first non-empty credential found in the environment."""
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def get_config() -> Config:
    """Load configuration. Reads the environment once."""
    api_key = read_api_key()
    if not api_key:
        raise MissingCredential(
            "API key is missing. Set OPENAI_API_KEY in the environment."
        )

    silence_ms = os.getenv("IELTS_SILENCE_MS")
    try:
        silence_timeout_ms = int(silence_ms) if silence_ms else SILENCE_TIMEOUT_MS
    except ValueError:
        raise ValueError(f"IELTS_SILENCE_MS must be an integer, got {silence_ms!r}")

    return Config(
        api_key=api_key,
        profile=os.getenv("IELTS_PROFILE") or PROFILE,
        model_override=os.getenv("IELTS_MODEL") or MODEL_OVERRIDE,
        silence_timeout_ms=silence_timeout_ms,
        language_code=os.getenv("IELTS_LANGUAGE_CODE") or LANGUAGE_CODE,
        tts_voice=os.getenv("IELTS_TTS_VOICE") or TTS_VOICE,
        log_file=os.getenv("IELTS_LOG_FILE") or LOG_FILE,
    )
