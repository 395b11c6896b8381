"""
Single-question practice: one random speaking question, one spoken answer,
one scored critique.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List

from .models import AnalysisReport
from .oracle import OracleClient
from .prompts import ExaminerPrompts
from .speech import SpeechCaptureSession, SpeechSynthesizer
from .timer import SilenceTimer
from ..config import SILENCE_TIMEOUT_MS
from ..errors import ServiceError

logger = logging.getLogger("drill")

ANSWER_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True)
class DrillResult:
    question: str
    answer: str
    report: AnalysisReport


class QuestionDrill:
    """Runs one question/answer/critique cycle with the same speech components as a session."""

    def __init__(self,
                 oracle: OracleClient,
                 capture: SpeechCaptureSession,
                 synthesizer: SpeechSynthesizer,
                 silence_seconds: float = SILENCE_TIMEOUT_MS / 1000.0,
                 answer_timeout: float = ANSWER_TIMEOUT_SECONDS):
        self.oracle = oracle
        self.capture = capture
        self.synthesizer = synthesizer
        self.silence_seconds = silence_seconds
        self.answer_timeout = answer_timeout

    async def run(self) -> DrillResult:
        fallbacks = ExaminerPrompts.fallback_messages()
        try:
            question = await asyncio.to_thread(self.oracle.random_question)
        except ServiceError as e:
            logger.error("Could not fetch a drill question: %s", e)
            return DrillResult("", "", AnalysisReport.from_text(f"Error: {e.description}", error=e.description))

        if not question:
            return DrillResult(fallbacks["no_question"], "", AnalysisReport.from_text(fallbacks["no_question"]))

        await self.synthesizer.speak(question)
        answer = await self.listen_for_answer()
        if not answer:
            logger.info("No answer given to drill question")
            return DrillResult(question, "", AnalysisReport.from_text(fallbacks["empty_session"]))

        try:
            report = await asyncio.to_thread(self.oracle.analyze_answer, question, answer)
        except ServiceError as e:
            logger.error("Drill analysis failed: %s", e)
            report = AnalysisReport.from_text(f"Error: {e.description}", error=e.description)
        return DrillResult(question, answer, report)

    async def listen_for_answer(self) -> str:
        """Capture utterances until the silence window elapses after the last one."""
        parts: List[str] = []
        done = asyncio.Event()
        timer = SilenceTimer(done.set, self.silence_seconds)

        async def collect() -> None:
            async for utterance in self.capture.utterances():
                parts.append(utterance.text)
                timer.reset()

        self.capture.start()
        collector = asyncio.create_task(collect())
        try:
            await asyncio.wait_for(done.wait(), timeout=self.answer_timeout)
        except asyncio.TimeoutError:
            logger.info("Answer window of %.0fs elapsed", self.answer_timeout)
        finally:
            timer.cancel()
            self.capture.stop()
            collector.cancel()
            await asyncio.gather(collector, return_exceptions=True)

        return " ".join(parts)
