"""
Testing infrastructure with mock services for the dialogue system.

The mocks stand in for the network and audio edges only; the orchestrator,
timer, capture session and synthesizer under test are the real ones.
"""
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .models import AnalysisReport, ConversationTurn
from .oracle import OracleClient
from .prompts import PromptProfile
from .speech import SpeechCaptureSession, SpeechSynthesizer
from ..errors import PlaybackError

SAMPLE_ANALYSIS = """**Fluency and Coherence:**
You spoke at a steady pace and linked ideas with simple connectors.
Score: 6/9

**Lexical Resource:**
Vocabulary was adequate for familiar topics. Try "however" instead of "but".
Score: 6/9

**Grammatical Range and Accuracy:**
Mostly simple sentences with few errors.
Score: 5/9

**Pronunciation:**
Generally clear with some misplaced word stress.
Score: 6/9

**Overall Band Score:** 6/9"""

OracleReply = Union[str, None, Exception]


class MockLLMClient:
    """Mock chat completions client: records requests, returns canned text."""

    def __init__(self, mock_responses: List[OracleReply]):
        self.mock_responses = list(mock_responses)
        self.request_history: List[Dict[str, Any]] = []

    def complete(self, model: str, messages: List[Dict[str, str]],
                 max_tokens: int = 150, temperature: float = 0.7) -> Optional[str]:
        self.request_history.append({
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if not self.mock_responses:
            return "Mock reply"
        response = self.mock_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class MockOracleClient(OracleClient):
    """Mock oracle with scripted replies and an optional gate to hold a reply in flight."""

    def __init__(self,
                 replies: Sequence[OracleReply] = (),
                 analysis: Union[str, Exception] = SAMPLE_ANALYSIS,
                 profile: Optional[PromptProfile] = None,
                 gate: Optional[threading.Event] = None):
        # Don't call super().__init__ to avoid needing a real LLM client
        self.profile = profile or PromptProfile.from_preset("examiner")
        self.replies = list(replies)
        self.analysis = analysis
        self.gate = gate
        self.converse_calls: List[Dict[str, Any]] = []
        self.analyze_calls: List[Sequence[ConversationTurn]] = []
        self.reply_counter = 0

    def converse(self, history: Sequence[ConversationTurn], new_user_message: str) -> Optional[str]:
        self.converse_calls.append({"history": tuple(history), "message": new_user_message})
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.replies:
            reply = self.replies.pop(0)
        else:
            self.reply_counter += 1
            reply = f"Examiner reply {self.reply_counter}"
        if isinstance(reply, Exception):
            raise reply
        return reply

    def analyze(self, history: Sequence[ConversationTurn]) -> AnalysisReport:
        self.analyze_calls.append(tuple(history))
        if isinstance(self.analysis, Exception):
            raise self.analysis
        return AnalysisReport.from_text(self.analysis)

    def random_question(self) -> Optional[str]:
        return "Describe a place you like to visit."

    def analyze_answer(self, question: str, answer: str) -> AnalysisReport:
        self.analyze_calls.append(())
        if isinstance(self.analysis, Exception):
            raise self.analysis
        return AnalysisReport.from_text(self.analysis)


class MockRecognizer:
    """Mock recognizer backend. Tests push transcripts with `say()`."""

    def __init__(self, fail_on_start: Optional[Exception] = None):
        self.fail_on_start = fail_on_start
        self.active = False
        self.start_count = 0
        self.stop_count = 0
        self.dropped: List[str] = []
        self._on_final: Optional[Callable[[str], None]] = None
        self._on_error: Optional[Callable[[Exception], None]] = None

    def start(self, on_final: Callable[[str], None], on_error: Callable[[Exception], None]) -> None:
        self.start_count += 1
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self._on_final = on_final
        self._on_error = on_error
        self.active = True

    def stop(self) -> None:
        self.stop_count += 1
        self.active = False

    def say(self, text: str) -> None:
        """Deliver a finalized transcript, as the platform would while listening."""
        if self.active and self._on_final is not None:
            self._on_final(text)
        else:
            self.dropped.append(text)

    def fail(self, error: Exception) -> None:
        if self._on_error is not None:
            self._on_error(error)


class MockSpeechOutput:
    """Mock TTS backend that records what it was asked to say."""

    def __init__(self, fail_with: Optional[str] = None):
        self.fail_with = fail_with
        self.spoken_messages: List[str] = []
        self.interrupted = 0

    def say(self, text: str) -> None:
        self.spoken_messages.append(text)
        if self.fail_with is not None:
            raise PlaybackError(self.fail_with)

    def interrupt(self) -> None:
        self.interrupted += 1


def create_mock_dialogue_setup(replies: Sequence[OracleReply] = (),
                               analysis: Union[str, Exception] = SAMPLE_ANALYSIS,
                               playback_error: Optional[str] = None,
                               gate: Optional[threading.Event] = None) -> Dict[str, Any]:
    """
    Create a complete mock dialogue setup. Must be called inside a running
    event loop since the capture session owns an asyncio queue.
    """
    recognizer = MockRecognizer()
    speech_output = MockSpeechOutput(fail_with=playback_error)
    return {
        "oracle": MockOracleClient(replies, analysis=analysis, gate=gate),
        "recognizer": recognizer,
        "speech_output": speech_output,
        "capture": SpeechCaptureSession(recognizer),
        "synthesizer": SpeechSynthesizer(speech_output),
    }
