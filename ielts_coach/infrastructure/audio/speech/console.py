"""
Keyboard/console stand-ins for the speech backends (used with --text).
"""
import logging
import sys
import threading
from typing import Callable, Optional, TextIO

logger = logging.getLogger("speech_console")

END_COMMAND = "/end"


class ConsoleRecognizer:
    """Treats each typed line as a finalized utterance."""

    def __init__(self, stream: Optional[TextIO] = None,
                 on_end_command: Optional[Callable[[], None]] = None):
        self.stream = stream or sys.stdin
        self.on_end_command = on_end_command
        self._listening = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._on_final: Optional[Callable[[str], None]] = None

    def start(self, on_final: Callable[[str], None], on_error: Callable[[Exception], None]) -> None:
        self._on_final = on_final
        self._listening.set()
        # One reader for the whole process; pausing just drops typed lines
        if self._thread is None:
            self._thread = threading.Thread(target=self._read, args=(on_error,),
                                            name="console-recognizer", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        self._listening.clear()

    def _read(self, on_error: Callable[[Exception], None]) -> None:
        try:
            for line in self.stream:
                text = line.strip()
                if text == END_COMMAND:
                    if self.on_end_command is not None:
                        self.on_end_command()
                    continue
                if not text:
                    continue
                if self._listening.is_set() and self._on_final is not None:
                    self._on_final(text)
                else:
                    logger.info("Ignoring input while not listening: %s", text)
        except (OSError, ValueError) as e:
            on_error(e)


class ConsoleSpeechOutput:
    """Prints replies instead of speaking them."""

    def __init__(self, prefix: str = "🤖"):
        self.prefix = prefix

    def say(self, text: str) -> None:
        print(f"{self.prefix} {text}")

    def interrupt(self) -> None:
        pass
