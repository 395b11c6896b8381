"""
Single-shot silence timer that marks the end of a user turn.
"""
import asyncio
import logging
from typing import Callable, Optional

from ..config import SILENCE_TIMEOUT_MS

logger = logging.getLogger("silence_timer")


class SilenceTimer:
    """
    Fires `on_fire` once if no `reset()` happens within the window.

    At most one firing is ever pending: `reset()` cancels the previous
    countdown before starting a new one. Must be used from the event loop.
    """

    def __init__(self, on_fire: Callable[[], None],
                 duration: float = SILENCE_TIMEOUT_MS / 1000.0):
        self.on_fire = on_fire
        self.duration = duration
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def reset(self) -> None:
        """Cancel any pending firing and restart the countdown."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.duration, self._fire)
        logger.debug("Silence window restarted (%.2fs)", self.duration)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        logger.debug("Silence window elapsed")
        self.on_fire()
