import asyncio

import pytest

from ielts_coach.dialogue.models import Utterance
from ielts_coach.dialogue.speech import (
    CaptureFault, PlaybackStatus, SpeechCaptureSession, SpeechSynthesizer
)
from ielts_coach.dialogue.testing import MockRecognizer, MockSpeechOutput
from ielts_coach.errors import UnsupportedCapability


def test_missing_backend_is_unsupported():
    async def scenario():
        SpeechCaptureSession(None)

    with pytest.raises(UnsupportedCapability):
        asyncio.run(scenario())


def test_start_and_stop_are_idempotent():
    async def scenario():
        recognizer = MockRecognizer()
        capture = SpeechCaptureSession(recognizer)
        capture.start()
        capture.start()
        capture.stop()
        capture.stop()
        return recognizer

    recognizer = asyncio.run(scenario())
    assert recognizer.start_count == 1
    assert recognizer.stop_count == 1


def test_event_stream_survives_stop_and_restart():
    async def scenario():
        recognizer = MockRecognizer()
        capture = SpeechCaptureSession(recognizer)
        capture.start()
        recognizer.say("first answer")
        capture.stop()
        capture.start()
        recognizer.say("  second answer  ")
        recognizer.say("   ")
        capture.close()
        return [u async for u in capture.utterances()]

    utterances = asyncio.run(scenario())
    assert [u.text for u in utterances] == ["first answer", "second answer"]
    assert all(isinstance(u, Utterance) for u in utterances)


def test_backend_start_failure_becomes_capture_fault():
    async def scenario():
        capture = SpeechCaptureSession(MockRecognizer(fail_on_start=OSError("no microphone")))
        capture.start()
        active = capture.active
        capture.close()
        return active, [e async for e in capture.events()]

    active, events = asyncio.run(scenario())
    assert not active
    assert len(events) == 1
    assert isinstance(events[0], CaptureFault)
    assert "no microphone" in events[0].message


def test_recognition_error_is_delivered_as_fault():
    async def scenario():
        recognizer = MockRecognizer()
        capture = SpeechCaptureSession(recognizer)
        capture.start()
        recognizer.fail(RuntimeError("stream reset"))
        capture.close()
        return [e async for e in capture.events()]

    events = asyncio.run(scenario())
    assert [e.message for e in events] == ["stream reset"]


def test_speak_completes():
    output = MockSpeechOutput()
    event = asyncio.run(SpeechSynthesizer(output).speak("Good morning."))
    assert event.status == PlaybackStatus.COMPLETED
    assert event.completed
    assert output.spoken_messages == ["Good morning."]


def test_speak_failure_resolves_instead_of_raising():
    output = MockSpeechOutput(fail_with="audio device busy")
    synthesizer = SpeechSynthesizer(output)
    event = asyncio.run(synthesizer.speak("Good morning."))
    assert event.status == PlaybackStatus.FAILED
    assert event.error == "audio device busy"
    assert not synthesizer.speaking


def test_interrupt_is_ignored_when_silent():
    output = MockSpeechOutput()
    SpeechSynthesizer(output).interrupt()
    assert output.interrupted == 0


class EncodingFailureOutput(MockSpeechOutput):
    def say(self, text):
        self.spoken_messages.append(text)
        raise UnicodeEncodeError("cp1252", text, 0, 1, "character maps to <undefined>")


def test_unexpected_backend_error_resolves_to_failure():
    synthesizer = SpeechSynthesizer(EncodingFailureOutput())
    event = asyncio.run(synthesizer.speak("hello"))
    assert event.status == PlaybackStatus.FAILED
    assert "cp1252" in event.error
    assert not synthesizer.speaking
