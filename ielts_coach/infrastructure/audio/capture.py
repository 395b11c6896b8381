"""
Microphone capture for streaming speech recognition.
"""
import logging
import queue
from typing import Iterator, Optional

import pyaudio

from ...config import SAMPLE_RATE, CHANNELS, CHUNK_MS
from ...errors import UnsupportedCapability
from ...utils import with_suppressed_audio_warnings

logger = logging.getLogger("audio_capture")


@with_suppressed_audio_warnings
def probe_input_device(preferred: Optional[int] = None) -> int:
    """
    Find a usable input device.

    Returns the device index. Raises UnsupportedCapability when PortAudio
    reports no device with input channels.
    """
    try:
        pa = pyaudio.PyAudio()
    except Exception as e:
        raise UnsupportedCapability(f"Audio system unavailable: {e}") from e

    try:
        if preferred is not None:
            info = pa.get_device_info_by_index(preferred)
            if int(info.get('maxInputChannels', 0)) > 0:
                logger.info(f"Using requested input device {preferred}: {info['name']}")
                return preferred
            logger.warning(f"Device {preferred} has no input channels, searching for another")

        try:
            info = pa.get_default_input_device_info()
            logger.info(f"Using default input device {info['index']}: {info['name']}")
            return int(info['index'])
        except (IOError, OSError):
            logger.info("No default input device, scanning all devices")

        for i in range(pa.get_device_count()):
            info = pa.get_device_info_by_index(i)
            if int(info.get('maxInputChannels', 0)) > 0:
                logger.info(f"Found input device {i}: {info['name']}")
                return i
    finally:
        pa.terminate()

    raise UnsupportedCapability("No microphone found: speech capture is not supported on this machine")


class MicrophoneStream:
    """
    Opens a PortAudio input stream and exposes it as a generator of raw
    LINEAR16 chunks. Closing the stream ends the generator.
    """

    def __init__(self,
                 input_device: Optional[int] = None,
                 sample_rate: int = SAMPLE_RATE,
                 channels: int = CHANNELS,
                 chunk_ms: int = CHUNK_MS):
        self.input_device = input_device
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = int(sample_rate * chunk_ms / 1000)
        self._buffer: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._audio: Optional[pyaudio.PyAudio] = None
        self._stream = None
        self.closed = True

    @with_suppressed_audio_warnings
    def open(self) -> "MicrophoneStream":
        self._audio = pyaudio.PyAudio()
        self._stream = self._audio.open(
            format=pyaudio.paInt16,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            input_device_index=self.input_device,
            frames_per_buffer=self.chunk_size,
            stream_callback=self._fill_buffer,
        )
        self.closed = False
        logger.info(f"Microphone opened (device={self.input_device}, rate={self.sample_rate})")
        return self

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._stream is not None:
            self._stream.stop_stream()
            self._stream.close()
            self._stream = None
        if self._audio is not None:
            self._audio.terminate()
            self._audio = None
        # Wake the generator so the recognizer request stream ends
        self._buffer.put(None)
        logger.info("Microphone closed")

    def __enter__(self) -> "MicrophoneStream":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _fill_buffer(self, in_data, frame_count, time_info, status_flags):
        self._buffer.put(in_data)
        return None, pyaudio.paContinue

    def generator(self) -> Iterator[bytes]:
        """Yield audio chunks, batching whatever has accumulated since the last read."""
        while not self.closed:
            chunk = self._buffer.get()
            if chunk is None:
                return
            data = [chunk]
            while True:
                try:
                    chunk = self._buffer.get(block=False)
                except queue.Empty:
                    break
                if chunk is None:
                    yield b"".join(data)
                    return
                data.append(chunk)
            yield b"".join(data)
