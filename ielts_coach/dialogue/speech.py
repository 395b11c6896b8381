"""
Speech I/O seen from the orchestrator: capture as an event stream, playback
as an awaitable that always ends in a completion or failure event.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Callable, Optional, Protocol, Union

from .models import Utterance
from ..errors import PlaybackError, UnsupportedCapability

logger = logging.getLogger("speech")


class RecognizerBackend(Protocol):
    def start(self, on_final: Callable[[str], None], on_error: Callable[[Exception], None]) -> None: ...
    def stop(self) -> None: ...


class SpeechOutputBackend(Protocol):
    def say(self, text: str) -> None: ...
    def interrupt(self) -> None: ...


@dataclass(frozen=True)
class CaptureFault:
    """Recognition failed after capture had started."""
    message: str
    timestamp: float = field(default_factory=time.time)


CaptureEvent = Union[Utterance, CaptureFault]

_CLOSED = object()


class SpeechCaptureSession:
    """
    Continuous speech capture producing finalized utterances.

    `events()` is one lazy, unbounded stream that survives stop/start
    cycles: anything recognized before a stop is still delivered after a
    restart. Only `close()` ends the stream.
    """

    def __init__(self, backend: Optional[RecognizerBackend]):
        if backend is None:
            raise UnsupportedCapability("Speech capture is not supported on this platform")
        self.backend = backend
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._active = False
        self._closed = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Begin listening. Starting an active session is a no-op."""
        if self._closed:
            raise RuntimeError("Capture session is closed")
        if self._active:
            logger.debug("Capture already active")
            return
        self._loop = asyncio.get_running_loop()
        self._active = True
        try:
            self.backend.start(self._on_final, self._on_error)
        except Exception as e:
            self._active = False
            logger.error("Failed to start capture: %s", e)
            self._queue.put_nowait(CaptureFault(f"Could not start speech capture: {e}"))
            return
        logger.info("Capture started")

    def stop(self) -> None:
        """Stop listening. Stopping an inactive session is a no-op."""
        if not self._active:
            return
        self._active = False
        self.backend.stop()
        logger.info("Capture stopped")

    def close(self) -> None:
        """Stop and end the event stream."""
        self.stop()
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def events(self) -> AsyncIterator[CaptureEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item

    async def utterances(self) -> AsyncIterator[Utterance]:
        async for event in self.events():
            if isinstance(event, Utterance):
                yield event
            else:
                logger.warning("Capture fault: %s", event.message)

    # Backend callbacks may arrive on a worker thread

    def _on_final(self, text: str) -> None:
        text = text.strip()
        if text:
            self._post(Utterance(text))

    def _on_error(self, error: Exception) -> None:
        self._post(CaptureFault(str(error) or type(error).__name__))

    def _post(self, item: CaptureEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("Dropping capture event with no running loop: %s", item)
            return
        loop.call_soon_threadsafe(self._queue.put_nowait, item)


class PlaybackStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class PlaybackEvent:
    """How a `speak()` call ended."""
    status: PlaybackStatus
    text: str
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status == PlaybackStatus.COMPLETED


class SpeechSynthesizer:
    """Text-to-speech playback with completion/error signaling."""

    def __init__(self, backend: SpeechOutputBackend):
        self.backend = backend
        self.speaking = False

    async def speak(self, text: str) -> PlaybackEvent:
        """
        Play `text` and resolve when playback ends.

        Never raises for playback problems: a failure resolves to a FAILED
        event so callers can treat both outcomes the same way.
        """
        self.speaking = True
        try:
            await asyncio.to_thread(self.backend.say, text)
        except PlaybackError as e:
            logger.warning("Playback failed: %s", e)
            return PlaybackEvent(PlaybackStatus.FAILED, text, str(e))
        except Exception as e:
            logger.error("Speech output backend raised %s: %s", type(e).__name__, e)
            return PlaybackEvent(PlaybackStatus.FAILED, text, str(e) or type(e).__name__)
        finally:
            self.speaking = False
        return PlaybackEvent(PlaybackStatus.COMPLETED, text)

    def interrupt(self) -> None:
        if self.speaking:
            self.backend.interrupt()
