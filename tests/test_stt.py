import threading
from types import SimpleNamespace
from unittest.mock import patch

import pytest

pytest.importorskip("pyaudio")
pytest.importorskip("google.cloud.speech")

from google.api_core.exceptions import OutOfRange  # noqa: E402

from ielts_coach.infrastructure.audio.speech import stt  # noqa: E402


class IdleMicrophone:
    closed = False

    def generator(self):
        return iter(())


def final_response(text):
    alternative = SimpleNamespace(transcript=text)
    return SimpleNamespace(results=[SimpleNamespace(is_final=True, alternatives=[alternative])])


class ExpiringSpeechClient:
    """First stream hits the duration limit, second one delivers a transcript."""

    def __init__(self, stop_event):
        self.stop_event = stop_event
        self.streams = 0

    def streaming_recognize(self, config, requests):
        self.streams += 1
        if self.streams == 1:
            return self._expired()
        self.stop_event.set()
        return iter([final_response(" I grew up by the sea ")])

    @staticmethod
    def _expired():
        raise OutOfRange("Exceeded maximum allowed stream duration of 305 seconds.")
        yield


def test_stream_duration_limit_reopens_instead_of_failing():
    with patch.object(stt, "probe_input_device", return_value=0):
        recognizer = stt.GoogleStreamingRecognizer()
    stop_event = threading.Event()
    client = ExpiringSpeechClient(stop_event)
    recognizer._client = client
    finals, errors = [], []

    recognizer._run(IdleMicrophone(), stop_event, finals.append, errors.append)

    assert client.streams == 2
    assert finals == ["I grew up by the sea"]
    assert errors == []
