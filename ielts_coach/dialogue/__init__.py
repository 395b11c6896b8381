"""Dialogue system components.

This module contains the turn-taking orchestrator for spoken exam practice,
its speech and oracle seams, and the end-of-session analysis.
"""

# Core orchestrator class
from .orchestrator import DialogueOrchestrator

# Data models
from .models import ConversationTurn, ConversationHistory, Role, Utterance, AnalysisReport

# State and parsing
from .schemas import SessionState, RecordingPhase, DialogueState, parse_analysis_scores

# Services
from .oracle import OracleClient, render_transcript
from .prompts import ExaminerPrompts, PromptProfile
from .timer import SilenceTimer
from .speech import (
    SpeechCaptureSession, SpeechSynthesizer, CaptureFault,
    PlaybackEvent, PlaybackStatus
)
from .analysis import SessionAnalyzer
from .drill import QuestionDrill, DrillResult

# Event system
from .events import (
    DialogueEventBus, EventLogger, SessionMetrics,
    EventType, DialogueEvent, SessionStartedEvent,
    UtteranceReceivedEvent, ReplyReceivedEvent, ResponseSpokenEvent,
    StaleReplyDiscardedEvent, ErrorOccurredEvent,
    AnalysisCompletedEvent, SessionStoppedEvent
)

__all__ = [
    # Orchestrator
    "DialogueOrchestrator",

    # Data models
    "ConversationTurn", "ConversationHistory", "Role", "Utterance", "AnalysisReport",

    # State
    "SessionState", "RecordingPhase", "DialogueState", "parse_analysis_scores",

    # Services
    "OracleClient", "render_transcript", "ExaminerPrompts", "PromptProfile",
    "SilenceTimer", "SpeechCaptureSession", "SpeechSynthesizer", "CaptureFault",
    "PlaybackEvent", "PlaybackStatus", "SessionAnalyzer", "QuestionDrill", "DrillResult",

    # Events
    "DialogueEventBus", "EventLogger", "SessionMetrics",
    "EventType", "DialogueEvent", "SessionStartedEvent",
    "UtteranceReceivedEvent", "ReplyReceivedEvent", "ResponseSpokenEvent",
    "StaleReplyDiscardedEvent", "ErrorOccurredEvent",
    "AnalysisCompletedEvent", "SessionStoppedEvent",
]
