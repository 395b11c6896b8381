"""
Continuous speech-to-text using Google Cloud streaming recognition.
"""
import logging
import threading
from typing import Callable, Optional

from google.api_core.exceptions import OutOfRange
from google.cloud import speech

from ..capture import MicrophoneStream, probe_input_device
from ....config import LANGUAGE_CODE, SAMPLE_RATE

logger = logging.getLogger("speech_stt")

FinalHandler = Callable[[str], None]
ErrorHandler = Callable[[Exception], None]


class GoogleStreamingRecognizer:
    """
    Listens to the microphone and reports finalized transcripts only.

    Interim hypotheses are never requested. Recognition runs on a worker
    thread; handlers are invoked from that thread, so callers must hand the
    results back to their own loop.
    """

    def __init__(self,
                 language_code: str = LANGUAGE_CODE,
                 sample_rate: int = SAMPLE_RATE,
                 input_device: Optional[int] = None):
        # Fails fast with UnsupportedCapability when there is no microphone
        self.input_device = probe_input_device(input_device)
        self.language_code = language_code
        self.sample_rate = sample_rate
        self._client: Optional[speech.SpeechClient] = None
        self._mic: Optional[MicrophoneStream] = None
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def _streaming_config(self) -> speech.StreamingRecognitionConfig:
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            language_code=self.language_code,
            enable_automatic_punctuation=True,
        )
        return speech.StreamingRecognitionConfig(
            config=config,
            interim_results=False,
            single_utterance=False,
        )

    def start(self, on_final: FinalHandler, on_error: ErrorHandler) -> None:
        """Open the microphone and begin streaming recognition."""
        if self._thread is not None and self._thread.is_alive():
            logger.debug("Recognizer already running")
            return
        if self._client is None:
            self._client = speech.SpeechClient()

        self._stop_event = threading.Event()
        self._mic = MicrophoneStream(self.input_device, sample_rate=self.sample_rate).open()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._mic, self._stop_event, on_final, on_error),
            name="speech-recognizer",
            daemon=True,
        )
        self._thread.start()
        logger.info("Streaming recognition started (%s)", self.language_code)

    def stop(self) -> None:
        """Close the microphone; the worker drains and exits on its own."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._mic is not None:
            self._mic.close()
            self._mic = None
        self._thread = None
        logger.info("Streaming recognition stopped")

    def _run(self, mic: MicrophoneStream, stop_event: threading.Event,
             on_final: FinalHandler, on_error: ErrorHandler) -> None:
        streaming_config = self._streaming_config()
        try:
            while not stop_event.is_set() and not mic.closed:
                audio_requests = (
                    speech.StreamingRecognizeRequest(audio_content=chunk)
                    for chunk in mic.generator()
                )
                responses = self._client.streaming_recognize(
                    config=streaming_config, requests=audio_requests
                )
                try:
                    self._deliver_finals(responses, on_final)
                except OutOfRange as e:
                    # Streams are capped at a few minutes of audio; open a fresh one
                    logger.info("Recognition stream hit its duration limit, reopening: %s", e)
        except Exception as e:
            if stop_event.is_set():
                logger.debug("Recognizer ended after stop: %s", e)
                return
            logger.error("Speech recognition failed: %s", e)
            on_error(e)

    @staticmethod
    def _deliver_finals(responses, on_final: FinalHandler) -> None:
        for response in responses:
            for result in response.results:
                if not result.is_final or not result.alternatives:
                    continue
                transcript = result.alternatives[0].transcript.strip()
                if transcript:
                    logger.debug("Final transcript: %s", transcript)
                    on_final(transcript)
