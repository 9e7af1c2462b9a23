"""Audio capture for counseling sessions."""

from __future__ import annotations

import io
import logging
import threading
import wave
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import AudioPayload, CaptureError

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]

_capture_lock = threading.Lock()
_active_recorder: Optional["SessionRecorder"] = None


def list_input_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for device detection.") from exc

    devices = sd.query_devices()
    return [d for d in devices if d.get("max_input_channels", 0) > 0]


def select_preferred_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not candidates:
        raise RuntimeError("No input devices found.")
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
    return candidates[0]


def find_input_device(prefer_name: Optional[str] = None) -> Dict[str, Any]:
    return select_preferred_device(list_input_devices(), prefer_name=prefer_name)


class CaptureDevice(Protocol):
    mime_type: str

    def open(self, on_chunk: ChunkCallback) -> None:
        ...

    def close(self) -> None:
        ...

    def finalize(self, chunks: List[bytes]) -> AudioPayload:
        ...


class SoundDeviceCapture:
    """Microphone capture through a sounddevice input stream (16-bit PCM)."""

    mime_type = "audio/wav"

    def __init__(
        self,
        sample_rate_hz: int = 16000,
        channels: int = 1,
        device_name: Optional[str] = None,
    ) -> None:
        self.sample_rate_hz = sample_rate_hz
        self.channels = channels
        self.device_name = device_name
        self._stream = None

    def open(self, on_chunk: ChunkCallback) -> None:
        try:
            import sounddevice as sd
        except Exception as exc:  # pragma: no cover - environment-dependent
            raise RuntimeError("sounddevice is required for recording.") from exc

        device = find_input_device(self.device_name)

        def _callback(indata, _frames, _time, status):
            if status:
                logger.debug("Capture status: %s", status)
            on_chunk(indata.tobytes())

        stream = sd.InputStream(
            samplerate=self.sample_rate_hz,
            channels=self.channels,
            dtype="int16",
            device=device.get("index"),
            callback=_callback,
        )
        self._stream = stream
        stream.start()
        logger.info("Capture opened on %s", device.get("name", "default device"))

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()

    def finalize(self, chunks: List[bytes]) -> AudioPayload:
        pcm = b"".join(chunks)
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as handle:
            handle.setnchannels(self.channels)
            handle.setsampwidth(2)
            handle.setframerate(self.sample_rate_hz)
            handle.writeframes(pcm)
        frames = len(pcm) // (2 * self.channels)
        return AudioPayload(
            data=buffer.getvalue(),
            mime_type=self.mime_type,
            duration_seconds=frames / self.sample_rate_hz,
        )


class RecorderState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


class SessionRecorder:
    """Idle/recording controller around an exclusively held capture device.

    Only one recorder may capture at a time in the process. The audio is
    available only from ``stop()``; nothing can be read mid-recording.
    """

    def __init__(self, device: CaptureDevice) -> None:
        self._device = device
        self._state = RecorderState.IDLE
        self._chunks: List[bytes] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.RECORDING

    def start(self) -> None:
        global _active_recorder
        with _capture_lock:
            if _active_recorder is not None:
                raise CaptureError("An audio capture is already in progress.")
            with self._lock:
                self._chunks = []
            try:
                self._device.open(self._on_chunk)
            except Exception as exc:
                logger.warning("Capture device unavailable: %s", exc)
                self._release_device()
                with self._lock:
                    self._chunks = []
                raise CaptureError(f"Audio capture unavailable: {exc}") from exc
            _active_recorder = self
            self._state = RecorderState.RECORDING
        logger.info("Recording started")

    def stop(self) -> Optional[AudioPayload]:
        global _active_recorder
        if self._state is not RecorderState.RECORDING:
            return None
        try:
            self._device.close()
        finally:
            with self._lock:
                chunks, self._chunks = self._chunks, []
            with _capture_lock:
                if _active_recorder is self:
                    _active_recorder = None
                self._state = RecorderState.IDLE
        payload = self._device.finalize(chunks)
        logger.info(
            "Recording stopped (%d chunks, %d bytes)", len(chunks), len(payload.data)
        )
        return payload

    def _on_chunk(self, chunk: bytes) -> None:
        with self._lock:
            self._chunks.append(chunk)

    def _release_device(self) -> None:
        try:
            self._device.close()
        except Exception:
            logger.exception("Capture device release failed")
