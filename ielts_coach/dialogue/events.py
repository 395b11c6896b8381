"""
Event-driven notifications for the dialogue system.
"""
import logging
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of dialogue events."""
    SESSION_STARTED = "session_started"
    UTTERANCE_RECEIVED = "utterance_received"
    REPLY_RECEIVED = "reply_received"
    RESPONSE_SPOKEN = "response_spoken"
    STALE_REPLY_DISCARDED = "stale_reply_discarded"
    ERROR_OCCURRED = "error_occurred"
    ANALYSIS_COMPLETED = "analysis_completed"
    SESSION_STOPPED = "session_stopped"


@dataclass
class DialogueEvent(ABC):
    """Base class for all dialogue events."""
    event_type: EventType
    session: int
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(DialogueEvent):
    """Event fired when a session begins."""
    def __init__(self, session: int, timestamp: float, profile: str):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session=session,
            timestamp=timestamp,
            data={"profile": profile}
        )


@dataclass
class UtteranceReceivedEvent(DialogueEvent):
    """Event fired when a finalized utterance is folded into history."""
    def __init__(self, session: int, timestamp: float, text: str):
        super().__init__(
            event_type=EventType.UTTERANCE_RECEIVED,
            session=session,
            timestamp=timestamp,
            data={"text": text}
        )


@dataclass
class ReplyReceivedEvent(DialogueEvent):
    """Event fired when the examiner's reply is appended to history."""
    def __init__(self, session: int, timestamp: float, text: str, history_length: int):
        super().__init__(
            event_type=EventType.REPLY_RECEIVED,
            session=session,
            timestamp=timestamp,
            data={"text": text, "history_length": history_length}
        )


@dataclass
class ResponseSpokenEvent(DialogueEvent):
    """Event fired when playback of a reply ends, successfully or not."""
    def __init__(self, session: int, timestamp: float, completed: bool, error: Optional[str]):
        super().__init__(
            event_type=EventType.RESPONSE_SPOKEN,
            session=session,
            timestamp=timestamp,
            data={"completed": completed, "error": error}
        )


@dataclass
class StaleReplyDiscardedEvent(DialogueEvent):
    """Event fired when a reply arrives for a session that has already moved on."""
    def __init__(self, session: int, timestamp: float, current_state: str):
        super().__init__(
            event_type=EventType.STALE_REPLY_DISCARDED,
            session=session,
            timestamp=timestamp,
            data={"current_state": current_state}
        )


@dataclass
class ErrorOccurredEvent(DialogueEvent):
    """Event fired when an error is surfaced to the learner."""
    def __init__(self, session: int, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session=session,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


@dataclass
class AnalysisCompletedEvent(DialogueEvent):
    """Event fired when the end-of-session report is ready."""
    def __init__(self, session: int, timestamp: float, overall_band: Optional[float], ok: bool):
        super().__init__(
            event_type=EventType.ANALYSIS_COMPLETED,
            session=session,
            timestamp=timestamp,
            data={"overall_band": overall_band, "ok": ok}
        )


@dataclass
class SessionStoppedEvent(DialogueEvent):
    """Event fired when the orchestrator is back to Idle."""
    def __init__(self, session: int, timestamp: float, history_length: int):
        super().__init__(
            event_type=EventType.SESSION_STOPPED,
            session=session,
            timestamp=timestamp,
            data={"history_length": history_length}
        )


EventHandler = Callable[[DialogueEvent], None]


class DialogueEventBus:
    """Event bus for dialogue system communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: DialogueEvent) -> None:
        """
        Emit an event to all subscribers. A failing handler is logged and
        never stops delivery to the others.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: DialogueEvent) -> None:
        self.logger.info(f"Event: {event.event_type} | Session: {event.session} | Data: {event.data}")


class SessionMetrics:
    """Collects metrics from dialogue events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: DialogueEvent) -> None:
        if event.event_type == EventType.SESSION_STARTED:
            self.sessions_started += 1
        elif event.event_type == EventType.UTTERANCE_RECEIVED:
            self.utterances += 1
        elif event.event_type == EventType.REPLY_RECEIVED:
            self.replies += 1
        elif event.event_type == EventType.RESPONSE_SPOKEN:
            if not event.data.get("completed"):
                self.playback_failures += 1
        elif event.event_type == EventType.STALE_REPLY_DISCARDED:
            self.stale_replies += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1
        elif event.event_type == EventType.SESSION_STOPPED:
            self.sessions_completed += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "sessions_started": self.sessions_started,
            "sessions_completed": self.sessions_completed,
            "utterances": self.utterances,
            "replies": self.replies,
            "playback_failures": self.playback_failures,
            "stale_replies": self.stale_replies,
            "errors_occurred": self.errors_occurred,
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_started = 0
        self.sessions_completed = 0
        self.utterances = 0
        self.replies = 0
        self.playback_failures = 0
        self.stale_replies = 0
        self.errors_occurred = 0
