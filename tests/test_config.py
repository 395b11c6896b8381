import pytest

from ielts_coach.config import API_KEY_ENV_VARS, SILENCE_TIMEOUT_MS, get_config, read_api_key
from ielts_coach.errors import MissingCredential


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in API_KEY_ENV_VARS + ("IELTS_PROFILE", "IELTS_MODEL", "IELTS_SILENCE_MS",
                                    "IELTS_LOG_FILE", "IELTS_LANGUAGE_CODE", "IELTS_TTS_VOICE"):
        monkeypatch.delenv(name, raising=False)


def test_missing_key_is_a_configuration_error():
    with pytest.raises(MissingCredential):
        get_config()


def test_blank_key_counts_as_missing(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "   ")
    assert read_api_key() is None


def test_legacy_variable_is_accepted(monkeypatch):
    monkeypatch.setenv("REACT_APP_OPEN_API_KEY", "sk-legacy")
    assert get_config().api_key == "sk-legacy"


def test_preferred_variable_wins(monkeypatch):
    monkeypatch.setenv("OPEN_API_KEY", "sk-old")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-new")
    assert get_config().api_key == "sk-new"


def test_defaults(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    config = get_config()
    assert config.profile == "examiner"
    assert config.model_override is None
    assert config.silence_timeout_ms == SILENCE_TIMEOUT_MS
    assert config.silence_timeout_seconds == 5.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("IELTS_PROFILE", "partner")
    monkeypatch.setenv("IELTS_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("IELTS_SILENCE_MS", "3000")
    config = get_config()
    assert config.profile == "partner"
    assert config.model_override == "gpt-4o-mini"
    assert config.silence_timeout_seconds == 3.0


def test_bad_silence_value(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("IELTS_SILENCE_MS", "five seconds")
    with pytest.raises(ValueError):
        get_config()
