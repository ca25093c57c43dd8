"""
Audio recording functionality for dictr.

Provides push-to-talk capture: ``start`` opens a stream on the resolved
device, ``stop`` closes it and returns the session's samples as 16 kHz mono.
"""

import logging
import threading
from typing import List, Optional

import numpy as np

from ..exceptions import AudioRecordingError, ResampleError
from .devices import InputDevice, resolve_input_device
from .resample import CANONICAL_SAMPLE_RATE, resample

logger = logging.getLogger(__name__)


class AudioRecorder:
    """
    Audio recorder with push-to-talk functionality.

    The sounddevice callback thread only appends downmixed blocks to a
    lock-guarded list; ``stop`` takes the whole list in one step. The lock is
    never held for anything but an append or that swap.

    Example:
        >>> recorder = AudioRecorder(device="USB")
        >>> recorder.start()
        >>> # ... hotkey held ...
        >>> samples = recorder.stop()  # float32, 16 kHz mono
    """

    def __init__(
        self,
        device: Optional[str] = None,
        target_rate: int = CANONICAL_SAMPLE_RATE
    ) -> None:
        """
        Resolve the input device.

        Args:
            device: Device index, name or description fragment, or None for
                the system default input.
            target_rate: Sample rate returned by ``stop``.

        Raises:
            DeviceNotFoundError: If ``device`` matches no input device.
            NoAudioDeviceError: If there is no input device at all.
        """
        self._device: InputDevice = resolve_input_device(device)
        self._target_rate = target_rate

        self._lock = threading.Lock()
        self._chunks: List[np.ndarray] = []
        self._stream = None

        logger.info(f"Using device: {self._device}")

    @property
    def device(self) -> InputDevice:
        return self._device

    @property
    def device_name(self) -> str:
        return self._device.label

    @property
    def sample_rate(self) -> int:
        """Native sample rate of the capture device."""
        return self._device.sample_rate

    @property
    def channels(self) -> int:
        return self._device.channels

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """
        Start audio recording.

        Raises:
            AudioRecordingError: If a recording is already active or the
                device cannot be opened.
        """
        if self._stream is not None:
            raise AudioRecordingError("Recording already active")

        import sounddevice as sd

        with self._lock:
            self._chunks = []

        try:
            stream = sd.InputStream(
                samplerate=self._device.sample_rate,
                channels=self._device.channels,
                device=self._device.index,
                dtype="float32",
                callback=self._audio_callback,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise AudioRecordingError(f"Could not open input stream on {self._device.label}: {e}") from e
        except Exception as e:
            raise AudioRecordingError(f"Recording failed: {e}") from e

        self._stream = stream
        logger.debug(
            f"Started recording (device={self._device.label}, rate={self._device.sample_rate}Hz)"
        )

    def _audio_callback(self, indata, frames, time_info, status) -> None:
        """Downmix a block to mono and append it. Never raises."""
        if status:
            logger.debug(f"Input stream status: {status}")

        try:
            mono = self._downmix(indata)
        except Exception as e:
            logger.warning(f"Dropping malformed audio block: {e}")
            return

        with self._lock:
            self._chunks.append(mono)

    @staticmethod
    def _downmix(indata) -> np.ndarray:
        block = np.asarray(indata, dtype=np.float32)
        if block.ndim == 1:
            return block.copy()
        if block.ndim != 2 or block.shape[1] == 0:
            raise ValueError(f"unexpected block shape {block.shape}")
        return block.mean(axis=1, dtype=np.float32)

    def _take_samples(self) -> np.ndarray:
        with self._lock:
            chunks, self._chunks = self._chunks, []

        if not chunks:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(chunks)

    def stop(self) -> np.ndarray:
        """
        Stop recording and return the captured audio.

        Safe to call without a preceding ``start``; an empty array is
        returned in that case.

        Returns:
            float32 mono samples at the target rate.

        Raises:
            AudioRecordingError: If the stream cannot be stopped or the
                samples cannot be resampled.
        """
        self._close_stream()

        raw = self._take_samples()
        duration = raw.size / self._device.sample_rate
        logger.debug(f"Captured {duration:.2f}s ({raw.size} samples at {self._device.sample_rate}Hz)")

        if self._device.sample_rate == self._target_rate:
            return raw

        try:
            return resample(raw, self._device.sample_rate, self._target_rate)
        except ResampleError as e:
            raise AudioRecordingError(f"Resampling failed: {e}") from e

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return

        try:
            stream.stop()
        except Exception as e:
            raise AudioRecordingError(f"Failed to stop recording: {e}") from e
        finally:
            stream.close()

    def close(self) -> None:
        """Release the stream and drop any buffered samples."""
        try:
            self._close_stream()
        except AudioRecordingError as e:
            logger.warning(f"Error closing stream: {e}")
        self._take_samples()
