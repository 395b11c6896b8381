"""
Text-to-speech using Google Cloud TTS, played through PortAudio.
"""
import io
import logging
import threading
import wave

import pyaudio
from google.cloud import texttospeech

from ....config import LANGUAGE_CODE, TTS_VOICE, TTS_SAMPLE_RATE
from ....errors import PlaybackError
from ....utils import with_suppressed_audio_warnings

logger = logging.getLogger("speech_tts")

PLAYBACK_FRAMES = 1024


class GoogleSpeechOutput:
    """Blocking speech output. `say` returns when playback has finished."""

    def __init__(self,
                 voice: str = TTS_VOICE,
                 language_code: str = LANGUAGE_CODE,
                 sample_rate: int = TTS_SAMPLE_RATE):
        self.voice = voice
        self.language_code = language_code
        self.sample_rate = sample_rate
        self._client = None
        self._interrupted = threading.Event()

    def synthesize(self, text: str) -> bytes:
        """Return WAV bytes for the given text."""
        if self._client is None:
            self._client = texttospeech.TextToSpeechClient()

        synthesis_input = texttospeech.SynthesisInput(text=text)
        voice_params = texttospeech.VoiceSelectionParams(
            language_code=self.language_code,
            name=self.voice,
        )
        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
        )
        response = self._client.synthesize_speech(
            input=synthesis_input, voice=voice_params, audio_config=audio_config
        )
        return response.audio_content

    def say(self, text: str) -> None:
        """
        Speak text and block until playback completes.

        Raises:
            PlaybackError: If synthesis or playback fails
        """
        if not text.strip():
            return
        self._interrupted.clear()
        try:
            wav_bytes = self.synthesize(text)
            self._play_wav(wav_bytes)
        except PlaybackError:
            raise
        except Exception as e:
            logger.error(f"Google TTS failed: {e}")
            raise PlaybackError(str(e)) from e

    def interrupt(self) -> None:
        """Cut off current playback at the next buffer boundary."""
        self._interrupted.set()

    @with_suppressed_audio_warnings
    def _play_wav(self, wav_bytes: bytes) -> None:
        pa = pyaudio.PyAudio()
        stream = None
        try:
            with wave.open(io.BytesIO(wav_bytes), 'rb') as wav:
                stream = pa.open(
                    format=pa.get_format_from_width(wav.getsampwidth()),
                    channels=wav.getnchannels(),
                    rate=wav.getframerate(),
                    output=True,
                )
                data = wav.readframes(PLAYBACK_FRAMES)
                while data and not self._interrupted.is_set():
                    stream.write(data)
                    data = wav.readframes(PLAYBACK_FRAMES)
            if self._interrupted.is_set():
                logger.info("Playback interrupted")
        finally:
            if stream is not None:
                stream.stop_stream()
                stream.close()
            pa.terminate()
