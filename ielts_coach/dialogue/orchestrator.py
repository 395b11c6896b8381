"""
Spoken-dialogue orchestrator: turn-taking between the learner and the examiner.
"""
import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

from .analysis import SessionAnalyzer
from .events import (
    DialogueEventBus, EventLogger, SessionMetrics,
    SessionStartedEvent, UtteranceReceivedEvent, ReplyReceivedEvent,
    ResponseSpokenEvent, StaleReplyDiscardedEvent, ErrorOccurredEvent,
    AnalysisCompletedEvent, SessionStoppedEvent
)
from .models import AnalysisReport, ConversationHistory, ConversationTurn, Role, Utterance
from .oracle import OracleClient
from .prompts import ExaminerPrompts
from .schemas import DialogueState, RecordingPhase, SessionState
from .speech import CaptureFault, SpeechCaptureSession, SpeechSynthesizer
from .timer import SilenceTimer
from ..config import SILENCE_TIMEOUT_MS
from ..errors import InvalidTransition, ServiceError

logger = logging.getLogger("orchestrator")

MAX_CAPTURE_RESTARTS = 3


class DialogueOrchestrator:
    """
    State machine tying capture, silence detection, the oracle and playback
    together.

    Idle -> Recording (WaitingForUser -> ProcessingTurn -> PlayingResponse
    -> WaitingForUser ...) -> Analyzing -> Idle.

    Capture is half-duplex: it is paused while a turn is being processed and
    spoken, and resumed once playback ends either way. All state lives on
    this object and is only touched from the event loop.
    """

    def __init__(self,
                 oracle: OracleClient,
                 capture: SpeechCaptureSession,
                 synthesizer: SpeechSynthesizer,
                 silence_seconds: float = SILENCE_TIMEOUT_MS / 1000.0,
                 event_bus: Optional[DialogueEventBus] = None,
                 greeting: Optional[str] = None,
                 on_transcript: Optional[Callable[[str], None]] = None):
        self.oracle = oracle
        self.capture = capture
        self.synthesizer = synthesizer
        self.analyzer = SessionAnalyzer(oracle)
        self.greeting = greeting or ExaminerPrompts.greeting()
        self.on_transcript = on_transcript

        self.event_bus = event_bus or DialogueEventBus()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(EventLogger().handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        self.dialogue = DialogueState()
        self.history = ConversationHistory()
        self.transcript: List[str] = []
        self.report: Optional[AnalysisReport] = None

        self._timer = SilenceTimer(self._on_silence, silence_seconds)
        self._latest: Optional[Utterance] = None
        self._listen_task: Optional[asyncio.Task] = None
        self._turn_task: Optional[asyncio.Task] = None
        self._capture_restarts = 0

    @property
    def state(self) -> SessionState:
        return self.dialogue.state

    @property
    def phase(self) -> Optional[RecordingPhase]:
        return self.dialogue.phase

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Begin a session: fresh history and transcript, capture on, and the
        opening examiner turn issued immediately.

        Raises:
            InvalidTransition: If a session is already running
        """
        if self.dialogue.state != SessionState.IDLE:
            raise InvalidTransition(f"start() is only valid from idle, not {self.dialogue.describe()}")

        self.history = ConversationHistory()
        self.transcript = []
        self.report = None
        self._latest = None
        self._capture_restarts = 0
        generation = self.dialogue.begin_session()
        logger.info("Session %d started", generation)
        self.event_bus.emit(SessionStartedEvent(generation, time.time(), self.oracle.profile.name))

        self.capture.start()
        self._listen_task = asyncio.create_task(self._listen())
        self._listen_task.add_done_callback(self._on_listener_done)

        self._begin_turn(self.greeting, (), generation)

    async def stop(self) -> AnalysisReport:
        """
        End the session and produce the analysis report.

        Capture and the silence window are halted synchronously; any turn
        still in flight is cancelled and its reply, if it ever arrives, is
        discarded.

        Raises:
            InvalidTransition: If no session is recording
        """
        if not self.dialogue.recording:
            raise InvalidTransition(f"stop() is only valid while recording, not {self.dialogue.describe()}")

        generation = self.dialogue.generation
        self._timer.cancel()
        self.capture.stop()
        self.dialogue.begin_analysis()
        self.synthesizer.interrupt()
        logger.info("Session %d stopping; analyzing %d turns", generation, len(self.history))

        await self._cancel_background_tasks()

        try:
            report = await self.analyzer.analyze(self.history.snapshot())
        finally:
            self.dialogue.finish()

        self.report = report
        if report.error:
            self.event_bus.emit(ErrorOccurredEvent(
                generation, time.time(), ServiceError.__name__, report.error, "analysis"
            ))
        self.event_bus.emit(AnalysisCompletedEvent(generation, time.time(), report.overall_band, report.ok))
        self.event_bus.emit(SessionStoppedEvent(generation, time.time(), len(self.history)))
        return report

    def close(self) -> None:
        """Release capture for good (end of process)."""
        self._timer.cancel()
        self.capture.close()

    # ------------------------------------------------------------------
    # Capture side
    # ------------------------------------------------------------------

    async def _listen(self) -> None:
        async for event in self.capture.events():
            if isinstance(event, CaptureFault):
                self._handle_capture_fault(event)
            else:
                self._handle_utterance(event)

    def _handle_utterance(self, utterance: Utterance) -> None:
        if not self.dialogue.waiting_for_user:
            logger.warning("Dropping utterance received in %s: %r",
                           self.dialogue.describe(), utterance.text)
            return

        self.history.append(Role.USER, utterance.text)
        self._latest = utterance
        # Capture is delivering again, so only consecutive faults count toward the limit
        self._capture_restarts = 0
        self._transcribe(f"You: {utterance.text}")
        self.event_bus.emit(UtteranceReceivedEvent(self.dialogue.generation, utterance.timestamp, utterance.text))
        # Only the last utterance of a quiet window triggers the next turn
        self._timer.reset()

    def _handle_capture_fault(self, fault: CaptureFault) -> None:
        generation = self.dialogue.generation
        logger.error("Capture fault in %s: %s", self.dialogue.describe(), fault.message)
        if not self.dialogue.recording:
            return

        self._transcribe(f"Error: {fault.message}")
        self.event_bus.emit(ErrorOccurredEvent(
            generation, fault.timestamp, "CaptureFault", fault.message, "speech_capture"
        ))

        if not self.dialogue.waiting_for_user:
            # Capture is paused during a turn and restarts when it ends
            return
        if self._capture_restarts >= MAX_CAPTURE_RESTARTS:
            logger.error("Capture failed %d times; leaving it stopped", self._capture_restarts)
            self.capture.stop()
            self._transcribe("Error: speech capture stopped after repeated failures")
            return
        self._capture_restarts += 1
        logger.info("Restarting capture (attempt %d)", self._capture_restarts)
        self.capture.stop()
        self.capture.start()

    def _on_silence(self) -> None:
        if not self.dialogue.waiting_for_user or self._latest is None:
            return
        latest = self._latest
        self._latest = None
        # History already ends with the latest utterance; send it as the new message
        prior = self.history.snapshot()[:-1]
        self._begin_turn(latest.text, prior, self.dialogue.generation)

    # ------------------------------------------------------------------
    # Examiner side
    # ------------------------------------------------------------------

    def _begin_turn(self, message: str, prior: Sequence[ConversationTurn], generation: int) -> None:
        self._timer.cancel()
        self.dialogue.enter_phase(RecordingPhase.PROCESSING_TURN)
        self.capture.stop()
        self._turn_task = asyncio.create_task(self._take_turn(message, tuple(prior), generation))
        self._turn_task.add_done_callback(self._on_turn_done)

    async def _take_turn(self, message: str, prior: Sequence[ConversationTurn], generation: int) -> None:
        try:
            try:
                reply = await asyncio.to_thread(self.oracle.converse, prior, message)
            except ServiceError as e:
                if not self.dialogue.is_current(generation):
                    self._discard_stale(generation)
                    return
                logger.error("Examiner turn failed: %s", e)
                self._transcribe(f"Error: {e.description}")
                self.event_bus.emit(ErrorOccurredEvent(
                    generation, time.time(), type(e).__name__, e.description, "oracle"
                ))
                return

            if not self.dialogue.is_current(generation):
                self._discard_stale(generation)
                return

            if not reply:
                self._transcribe(f"AI: {ExaminerPrompts.fallback_messages()['no_reply']}")
                return

            self.history.append(Role.ASSISTANT, reply)
            self._transcribe(f"AI: {reply}")
            self.event_bus.emit(ReplyReceivedEvent(generation, time.time(), reply, len(self.history)))

            self.dialogue.enter_phase(RecordingPhase.PLAYING_RESPONSE)
            outcome = await self.synthesizer.speak(reply)
            self.event_bus.emit(ResponseSpokenEvent(generation, time.time(), outcome.completed, outcome.error))
        finally:
            # Success, failure and playback errors all come back to listening
            self._resume_listening(generation)

    def _resume_listening(self, generation: int) -> None:
        if not self.dialogue.is_current(generation):
            return
        self.dialogue.enter_phase(RecordingPhase.WAITING_FOR_USER)
        self.capture.start()

    def _discard_stale(self, generation: int) -> None:
        logger.warning("Discarding examiner reply from session %d (now %s)",
                       generation, self.dialogue.describe())
        self.event_bus.emit(StaleReplyDiscardedEvent(generation, time.time(), self.dialogue.describe()))

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def _transcribe(self, line: str) -> None:
        self.transcript.append(line)
        if self.on_transcript is not None:
            self.on_transcript(line)

    def _on_turn_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Turn ended with an unexpected error", exc_info=exc)
            if self.dialogue.recording:
                self._transcribe(f"Error: {exc}")
            self.event_bus.emit(ErrorOccurredEvent(
                self.dialogue.generation, time.time(), type(exc).__name__, str(exc), "orchestrator"
            ))

    def _on_listener_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Capture listener crashed", exc_info=exc)
            self.event_bus.emit(ErrorOccurredEvent(
                self.dialogue.generation, time.time(), type(exc).__name__, str(exc), "speech_capture"
            ))

    async def _cancel_background_tasks(self) -> None:
        tasks = [t for t in (self._turn_task, self._listen_task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._turn_task = None
        self._listen_task = None

    def get_metrics(self):
        """Get current session metrics."""
        return self.metrics.get_metrics()
