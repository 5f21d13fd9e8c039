"""Microphone recorder for Power Mode voice notes (sounddevice, WAV output)."""
import asyncio
import io
import logging
import threading
import wave
from typing import Any, List

from boxscan.config import AUDIO_SAMPLE_RATE, SIMULATE_HARDWARE
from boxscan.core.errors import RecordingError

logger = logging.getLogger(__name__)

# Optional: sounddevice + numpy for a real microphone (PortAudio may be missing -> OSError)
_AUDIO_AVAILABLE = False
try:
    import numpy as np
    import sounddevice as sd
    _AUDIO_AVAILABLE = True
except (ImportError, OSError):
    np = None  # type: ignore
    sd = None  # type: ignore

SAMPLE_WIDTH = 2  # int16
_SIMULATED_SILENCE_SEC = 0.1


def pcm_to_wav(pcm: bytes, sample_rate: int = AUDIO_SAMPLE_RATE, channels: int = 1) -> bytes:
    """Wrap raw little-endian int16 PCM into a WAV container."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return buf.getvalue()


class SoundDeviceRecorder:
    """Records one segment at a time; stop() returns the segment as WAV bytes."""

    def __init__(
        self,
        sample_rate: int = AUDIO_SAMPLE_RATE,
        channels: int = 1,
        chunk_ms: int = 100,
        simulate: bool = SIMULATE_HARDWARE,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._simulate = simulate
        self._stream: Any = None
        self._running = False
        self._chunks: List[bytes] = []
        self._lock = threading.Lock()

    @property
    def is_recording(self) -> bool:
        return self._running

    async def start(self) -> None:
        await asyncio.to_thread(self._open)

    async def stop(self) -> bytes:
        pcm = await asyncio.to_thread(self._close)
        return pcm_to_wav(pcm, self.sample_rate, self.channels)

    def cancel(self) -> None:
        self._close()

    def _open(self) -> None:
        with self._lock:
            if self._running:
                return
            self._chunks = []
            if self._simulate:
                self._running = True
                logger.info("Recorder: simulated recording started")
                return
            if not _AUDIO_AVAILABLE:
                raise RecordingError("sounddevice is not installed or no audio backend")
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            try:
                self._stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                )
                self._stream.start()
            except (sd.PortAudioError, OSError, ValueError) as e:
                self._stream = None
                raise RecordingError(f"Microphone unavailable: {e}") from e
            self._running = True
            logger.info("Recorder: started (%d Hz, %d ch)", self.sample_rate, self.channels)

    def _close(self) -> bytes:
        with self._lock:
            if not self._running:
                return b""
            self._running = False
            stream, self._stream = self._stream, None
            if stream is not None:
                try:
                    stream.stop()
                    stream.close()
                except (sd.PortAudioError, OSError) as e:
                    logger.warning("Recorder: closing stream failed: %s", e)
            if self._simulate:
                return b"\x00\x00" * int(self.sample_rate * _SIMULATED_SILENCE_SEC) * self.channels
            pcm = b"".join(self._chunks)
            self._chunks = []
            return pcm

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running:
            return
        if status:
            logger.debug("Recorder status: %s", status)
        self._chunks.append(np.asarray(indata, dtype=np.int16).tobytes())

